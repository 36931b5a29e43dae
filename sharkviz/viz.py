from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from .aggregate import DIMENSIONS, Dimension, aggregate, incident_rate, summarize_year
from .classify import classify_body_regions, classify_species
from .models import AggregateBucket, IncidentRecord, PopulationSeries
from .rules import REGION_NAMES

STATUS_OK = "ok"
STATUS_NO_DATA = "no_data"
STATUS_ERROR = "error"


def format_population(num: float) -> str:
    """Compact population display: 1.2M, 350K, 900."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.0f}K"
    return str(int(num))


def format_thousands(num: float) -> str:
    return f"{int(round(num)):,}"


def view_status(status: str = STATUS_OK, message: str = "") -> dict:
    return {"status": status, "message": message}


@dataclass
class ViewState:
    """Mutable selection state for the year slider and play control."""

    first_year: int = 1980
    last_year: int = 2019
    year: int = 1980
    playing: bool = False
    show_fatal: bool = True

    def select_year(self, year: int) -> int:
        self.year = min(max(year, self.first_year), self.last_year)
        return self.year

    def advance(self) -> int:
        """Step one year forward; stepping past the last year stops playback there."""
        self.year += 1
        if self.year > self.last_year:
            self.year = self.last_year
            self.playing = False
        return self.year

    def toggle_play(self) -> bool:
        if self.playing:
            self.playing = False
        else:
            if self.year >= self.last_year:
                self.year = self.first_year
            self.playing = True
        return self.playing

    def reset(self) -> None:
        self.playing = False
        self.year = self.first_year

    def toggle_fatal(self) -> bool:
        self.show_fatal = not self.show_fatal
        return self.show_fatal


class PresentationAdapter:
    """Read-only access to pipeline output for the rendering layer.

    Buckets are rebuilt on every request from the loaded records; nothing
    returned here is cached or shared, so callers may request any year in any
    order.
    """

    def __init__(
        self,
        body_map_records: Iterable[IncidentRecord],
        species_records: Iterable[IncidentRecord],
        population: PopulationSeries,
        year_range: tuple[int, int] = (1980, 2019),
        species_min_count: int = 5,
        species_top_n: int = 10,
    ) -> None:
        self._body_map = tuple(body_map_records)
        self._species = tuple(species_records)
        self._population = population
        self._species_min_count = species_min_count
        self._species_top_n = species_top_n
        first, last = year_range
        self.view = ViewState(first_year=first, last_year=last, year=first)

    def get_buckets_for(self, dimension: Dimension, year: Optional[int] = None) -> list[AggregateBucket]:
        if dimension not in DIMENSIONS:
            raise ValueError(f"Unknown dimension: {dimension!r}")
        if dimension == "species":
            return aggregate(
                self._species,
                "species",
                year,
                min_count=self._species_min_count,
                top_n=self._species_top_n,
            )
        return aggregate(self._body_map, dimension, year)

    def get_label(self, raw_text, domain: str = "region") -> str | tuple[str, ...]:
        if domain == "species":
            return classify_species(raw_text)
        if domain == "region":
            return classify_body_regions(raw_text)
        raise ValueError(f"Unknown label domain: {domain!r}")

    def get_rate(self, year: int) -> float:
        count = sum(1 for r in self._body_map if r.year == year)
        return incident_rate(count, self._population.population_for(year))

    def body_map_view(self, year: Optional[int] = None) -> dict:
        year = self.view.year if year is None else year
        summary = summarize_year(self._body_map, self._population, year)
        regions = [
            {**bucket.to_dict(), "name": REGION_NAMES.get(bucket.key, bucket.key)}
            for bucket in self.get_buckets_for("region", year)
        ]
        return {
            **asdict(summary),
            "non_fatal_count": summary.non_fatal_count,
            "population_display": format_population(summary.population),
            "rate_display": f"{summary.rate:.2f}",
            "regions": regions,
        }

    def species_view(self) -> list[dict]:
        return [bucket.to_dict() for bucket in self.get_buckets_for("species")]

    def to_payload(self) -> dict:
        """Serializable snapshot of the incident views for every year in range."""
        first, last = self.view.first_year, self.view.last_year
        return {
            "view_state": asdict(self.view),
            "population": {
                "base": self._population.base_population,
                "max": self._population.max_population,
                "by_year": {str(y): p for y, p in sorted(self._population.values.items())},
            },
            "body_map": {
                **view_status(STATUS_OK if self._body_map else STATUS_NO_DATA),
                "years": [self.body_map_view(y) for y in range(first, last + 1)],
            },
            "species": {
                **view_status(STATUS_OK if self._species else STATUS_NO_DATA),
                "buckets": self.species_view(),
            },
        }
