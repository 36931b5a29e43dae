from __future__ import annotations
import logging
from dataclasses import dataclass
from io import StringIO
from typing import Callable, Iterable
import pandas as pd

from .classify import classify_body_regions, classify_species
from .io import SKIPPED_ROWS_ATTR
from .models import IncidentRecord, LoadResult, PopulationSeries

logger = logging.getLogger(__name__)

COUNTRY_COL = "country"
YEAR_COL = "year"
FATAL_COL = "fatal_y/n"
INJURY_COL = "injury"
SPECIES_COL = "species"
STATE_COL = "state"


@dataclass(frozen=True)
class LoadFilters:
    """Row filters; a None field disables that check."""

    countries: frozenset[str] | None = None
    year_range: tuple[int, int] | None = None
    require_year: bool = True


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    return df


def _to_int(value) -> int | None:
    """Parse a cell as an integer year, returning None if missing/invalid."""
    if value is None or pd.isna(value):
        return None
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None


def _text_column(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    return df[column].fillna("").astype(str)


def _as_frame(raw_rows: pd.DataFrame | Iterable[dict]) -> pd.DataFrame:
    # positional index; concatenated frames may repeat labels
    if isinstance(raw_rows, pd.DataFrame):
        return normalize_columns(raw_rows).reset_index(drop=True)
    return normalize_columns(pd.DataFrame(list(raw_rows)))


def _skipped_rows(raw_rows) -> int:
    if isinstance(raw_rows, pd.DataFrame):
        return int(raw_rows.attrs.get(SKIPPED_ROWS_ATTR, 0))
    return 0


def load_records(
    raw_rows: pd.DataFrame | Iterable[dict],
    filters: LoadFilters,
    text_column: str,
) -> LoadResult:
    """Parse raw incident rows into unclassified IncidentRecords.

    Rows failing the country filter, the year parse or the year range are
    dropped and counted, as are CSV lines the parser already skipped; missing
    fatal flags read as non-fatal and missing locations as "".
    """
    skipped = _skipped_rows(raw_rows)
    df = _as_frame(raw_rows)
    if df.empty:
        return LoadResult(records=(), dropped=skipped)

    keep = pd.Series(True, index=df.index)
    if filters.countries is not None:
        if COUNTRY_COL not in df.columns:
            raise KeyError(f"incidents table missing {COUNTRY_COL}")
        aliases = {c.upper() for c in filters.countries}
        keep &= _text_column(df, COUNTRY_COL).str.strip().str.upper().isin(aliases)

    if YEAR_COL in df.columns:
        years = df[YEAR_COL].map(_to_int).astype("Int64")
    elif filters.require_year or filters.year_range is not None:
        raise KeyError(f"incidents table missing {YEAR_COL}")
    else:
        years = pd.Series(pd.NA, index=df.index, dtype="Int64")

    if filters.require_year:
        keep &= years.notna()
    if filters.year_range is not None:
        lo, hi = filters.year_range
        keep &= years.between(lo, hi).fillna(False).astype(bool)

    fatal = _text_column(df, FATAL_COL).str.strip().str.upper().eq("Y")
    text = _text_column(df, text_column)
    location = _text_column(df, STATE_COL).str.strip()

    records = tuple(
        IncidentRecord(
            year=None if pd.isna(years[idx]) else int(years[idx]),
            raw_text=text[idx],
            fatal=bool(fatal[idx]),
            location_key=location[idx],
        )
        for idx in df.index[keep.to_numpy()]
    )
    dropped = len(df) - len(records) + skipped
    if dropped:
        logger.info(
            "Dropped %d of %d incident rows (%d malformed)", dropped, len(df) + skipped, skipped
        )
    return LoadResult(records=records, dropped=dropped)


def classify_records(
    records: Iterable[IncidentRecord],
    classifier: Callable[[str], str | tuple[str, ...]],
) -> tuple[IncidentRecord, ...]:
    out = []
    for record in records:
        labels = classifier(record.raw_text)
        if isinstance(labels, str):
            labels = (labels,)
        out.append(record.with_labels(labels))
    return tuple(out)


def load_body_map_incidents(
    raw_rows: pd.DataFrame | Iterable[dict],
    countries: Iterable[str],
    year_range: tuple[int, int],
) -> LoadResult:
    filters = LoadFilters(countries=frozenset(countries), year_range=year_range, require_year=True)
    result = load_records(raw_rows, filters, text_column=INJURY_COL)
    return LoadResult(records=classify_records(result.records, classify_body_regions), dropped=result.dropped)


def load_species_incidents(raw_rows: pd.DataFrame | Iterable[dict]) -> LoadResult:
    # Every row is kept; the year is optional for the species chart.
    filters = LoadFilters(require_year=False)
    result = load_records(raw_rows, filters, text_column=SPECIES_COL)
    return LoadResult(records=classify_records(result.records, classify_species), dropped=result.dropped)


def load_population(
    raw_text: str,
    states: Iterable[str],
    year_range: tuple[int, int],
    default_base: int = 100_000_000,
) -> PopulationSeries:
    """Sum headerless `state,year,population` lines per year over the allowed states."""
    lo, hi = year_range
    if not raw_text.strip():
        return PopulationSeries(values={}, base_year=lo, default_base=default_base)
    df = pd.read_csv(
        StringIO(raw_text.strip()),
        header=None,
        names=["state", "year", "population"],
        usecols=[0, 1, 2],
        dtype=str,
        keep_default_na=False,
    )
    df["year"] = df["year"].map(_to_int).astype("Int64")
    df["population"] = df["population"].map(_to_int).astype("Int64")
    allowed = set(states)
    mask = (
        df["state"].str.strip().isin(allowed)
        & df["year"].between(lo, hi).fillna(False).astype(bool)
        & df["population"].notna()
    )
    sums = df.loc[mask].groupby("year")["population"].sum()
    values = {int(year): int(total) for year, total in sums.items()}
    return PopulationSeries(values=values, base_year=lo, default_base=default_base)
