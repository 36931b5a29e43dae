from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

import pandas as pd

from .models import AggregateBucket, IncidentRecord, PopulationSeries
from .rules import BODY_REGION_RULES, UNKNOWN_REGION

Dimension = Literal["year", "region", "species"]
DIMENSIONS: tuple[str, ...] = ("year", "region", "species")

SPECIES_MIN_COUNT = 5
SPECIES_TOP_N = 10
RATE_SCALE = 1_000_000


@dataclass(frozen=True)
class YearSummary:
    year: int
    population: int
    total_count: int
    fatal_count: int
    rate: float

    @property
    def non_fatal_count(self) -> int:
        return self.total_count - self.fatal_count


def _records_frame(records: Iterable[IncidentRecord], year: Optional[int] = None) -> pd.DataFrame:
    df = pd.DataFrame(
        [(r.year, r.fatal, r.labels) for r in records],
        columns=["year", "fatal", "labels"],
    )
    if year is not None:
        df = df[df["year"] == year]
    return df


def _count(df: pd.DataFrame, key: str) -> pd.DataFrame:
    # sort=False keeps first-seen key order, which the species ranking relies on for ties
    grouped = df.groupby(key, sort=False)["fatal"].agg(total="size", fatal="sum")
    return grouped.astype(int)


def _plain(key):
    # numpy scalars -> builtins so buckets serialize cleanly
    return key.item() if hasattr(key, "item") else key


def _to_buckets(counts: pd.DataFrame) -> list[AggregateBucket]:
    return [
        AggregateBucket(key=_plain(key), total_count=int(row.total), fatal_count=int(row.fatal))
        for key, row in zip(counts.index, counts.itertuples(index=False))
    ]


def _by_year(df: pd.DataFrame) -> list[AggregateBucket]:
    df = df.dropna(subset=["year"])
    if df.empty:
        return []
    df = df.assign(year=df["year"].astype(int))
    return _to_buckets(_count(df, "year").sort_index())


def _by_region(df: pd.DataFrame, include_unknown: bool) -> list[AggregateBucket]:
    keys = [rule.category_id for rule in BODY_REGION_RULES]
    if include_unknown:
        keys.append(UNKNOWN_REGION)
    exploded = df.explode("labels").dropna(subset=["labels"])
    exploded = exploded[exploded["labels"].isin(keys)]
    counts = _count(exploded, "labels") if not exploded.empty else pd.DataFrame(columns=["total", "fatal"])
    # every declared region gets a bucket, zero-filled, in rule order
    counts = counts.reindex(keys, fill_value=0)
    return _to_buckets(counts)


def _by_species(df: pd.DataFrame, min_count: int, top_n: int) -> list[AggregateBucket]:
    exploded = df.explode("labels").dropna(subset=["labels"])
    if exploded.empty:
        return []
    counts = _count(exploded, "labels")
    counts = counts[counts["total"] > min_count]
    counts = counts.sort_values("total", ascending=False, kind="stable").head(top_n)
    return _to_buckets(counts)


def aggregate(
    records: Iterable[IncidentRecord],
    group_by: Dimension,
    year: Optional[int] = None,
    *,
    include_unknown: bool = False,
    min_count: int = SPECIES_MIN_COUNT,
    top_n: int = SPECIES_TOP_N,
) -> list[AggregateBucket]:
    """Group classified records into buckets with fatal/non-fatal counts.

    - year: one bucket per year present, ascending.
    - region: one bucket per declared body region, in rule order; a record with
      several regions counts once in each. The unknown bucket is only added
      when include_unknown is set.
    - species: buckets with more than min_count incidents, largest first,
      at most top_n.

    When `year` is given only records from that year are counted. Buckets are
    rebuilt on every call.
    """
    if group_by not in DIMENSIONS:
        raise ValueError(f"Unknown grouping dimension: {group_by!r}")
    df = _records_frame(records, year)
    if group_by == "year":
        return _by_year(df)
    if group_by == "region":
        return _by_region(df, include_unknown)
    return _by_species(df, min_count, top_n)


def incident_rate(incidents: int, population: int) -> float:
    """Incidents per million residents; 0.0 when there is no population to divide by."""
    if population <= 0:
        return 0.0
    return incidents / population * RATE_SCALE


def summarize_year(records: Iterable[IncidentRecord], population: PopulationSeries, year: int) -> YearSummary:
    in_year = [r for r in records if r.year == year]
    fatal = sum(1 for r in in_year if r.fatal)
    pop = population.population_for(year)
    return YearSummary(
        year=year,
        population=pop,
        total_count=len(in_year),
        fatal_count=fatal,
        rate=incident_rate(len(in_year), pop),
    )
