"""
Runtime settings for the sharkviz pipeline.

Defaults describe the bundled data layout (`data/` next to the working
directory). Environment variables override the defaults; the CLI overrides
both for the options it exposes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from .errors import ConfigError

DATA_DIR_ENV = "SHARKVIZ_DATA_DIR"
OUTPUT_DIR_ENV = "SHARKVIZ_OUTPUT_DIR"
MIN_YEAR_ENV = "SHARKVIZ_MIN_YEAR"
MAX_YEAR_ENV = "SHARKVIZ_MAX_YEAR"
FETCH_WORKERS_ENV = "SHARKVIZ_FETCH_WORKERS"
WRITE_PARQUET_ENV = "SHARKVIZ_WRITE_PARQUET"

COASTAL_STATES = (
    "CA", "FL", "TX", "NC", "SC", "GA", "HI", "OR", "WA", "NJ", "NY",
    "MA", "ME", "NH", "RI", "CT", "DE", "MD", "VA", "AL", "MS", "LA",
)

US_COUNTRY_ALIASES = frozenset({"USA", "UNITED STATES"})


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """
    Attributes:
        data_dir: Directory holding the source files (ignored for URL sources).
        output_dir: Where processed tables, the view payload and run metadata go.
        incidents_file / population_file / mortality_file / regulation_file /
            boundaries_file: Source names relative to data_dir, or http(s) URLs.
        min_year, max_year: Closed year range for the body-map dataset.
        coastal_states: State codes summed into the population series.
        country_aliases: Upper-case country names accepted by the body-map loader.
        species_min_count: Species buckets at or below this count are dropped.
        species_top_n: Number of species buckets kept after sorting.
        default_base_population: Rate denominator when the base year is missing.
        fetch_workers: Thread count for concurrent source fetches.
        write_parquet: Write processed tables as Parquet in addition to JSON.
    """

    data_dir: Path = Path("data")
    output_dir: Path = Path("outputs")
    incidents_file: str = "globalSharkAttackFile.csv"
    population_file: str = "historical_state_population_by_year.csv"
    mortality_file: str = "total_mortality_estimate_eez.csv"
    regulation_file: str = "eez_predictors_annual.csv"
    boundaries_file: str = "world-110m.json"
    min_year: int = 1980
    max_year: int = 2019
    coastal_states: tuple[str, ...] = COASTAL_STATES
    country_aliases: frozenset[str] = field(default=US_COUNTRY_ALIASES)
    species_min_count: int = 5
    species_top_n: int = 10
    default_base_population: int = 100_000_000
    fetch_workers: int = 4
    write_parquet: bool = True

    def __post_init__(self) -> None:
        if self.min_year > self.max_year:
            raise ConfigError(f"min_year {self.min_year} is after max_year {self.max_year}")
        if self.fetch_workers < 1:
            raise ConfigError("fetch_workers must be >= 1")

    @property
    def year_range(self) -> tuple[int, int]:
        return self.min_year, self.max_year

    def source_location(self, name: str) -> str:
        """Resolve a source file name to a URL or a path under data_dir."""
        value = getattr(self, f"{name}_file")
        if value.startswith(("http://", "https://")):
            return value
        return str(Path(self.data_dir) / value)

    @classmethod
    def from_env(cls, **overrides) -> Settings:
        base = cls()
        env = {}
        if os.environ.get(DATA_DIR_ENV):
            env["data_dir"] = Path(os.environ[DATA_DIR_ENV])
        if os.environ.get(OUTPUT_DIR_ENV):
            env["output_dir"] = Path(os.environ[OUTPUT_DIR_ENV])
        env["min_year"] = _env_int(MIN_YEAR_ENV, base.min_year)
        env["max_year"] = _env_int(MAX_YEAR_ENV, base.max_year)
        env["fetch_workers"] = _env_int(FETCH_WORKERS_ENV, base.fetch_workers)
        env["write_parquet"] = _env_flag(WRITE_PARQUET_ENV, base.write_parquet)
        env.update({k: v for k, v in overrides.items() if v is not None})
        return replace(base, **env)
