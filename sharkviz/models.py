"""
Record types shared by the loader, classifier and aggregator.

Records and buckets are frozen dataclasses: loading produces them once and
every later step reads them without editing. Re-aggregating for another year
builds new buckets instead of updating old ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class IncidentRecord:
    """One incident row after parsing and filtering."""

    year: Optional[int]
    raw_text: str = ""
    fatal: bool = False
    location_key: str = ""
    # empty until classified
    labels: tuple[str, ...] = ()

    def with_labels(self, labels: tuple[str, ...]) -> IncidentRecord:
        if self.labels:
            raise ValueError("record is already classified")
        if not labels:
            raise ValueError("a classified record needs at least one label")
        return replace(self, labels=tuple(labels))


@dataclass(frozen=True)
class CategoryRule:
    category_id: str
    keywords: tuple[str, ...]
    name: str = ""

    def matches(self, text: str) -> bool:
        """True when any keyword is a substring of the (already lower-cased) text."""
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True)
class AggregateBucket:
    key: object
    total_count: int
    fatal_count: int

    def __post_init__(self) -> None:
        if self.total_count < 0 or self.fatal_count < 0:
            raise ValueError("bucket counts must be non-negative")
        if self.fatal_count > self.total_count:
            raise ValueError("fatal_count cannot exceed total_count")

    @property
    def non_fatal_count(self) -> int:
        return self.total_count - self.fatal_count

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "total_count": self.total_count,
            "fatal_count": self.fatal_count,
            "non_fatal_count": self.non_fatal_count,
        }


@dataclass(frozen=True)
class LoadResult:
    records: tuple[IncidentRecord, ...]
    dropped: int = 0

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class PopulationSeries:
    """Summed coastal population per year, used only as a rate denominator."""

    values: Mapping[int, int] = field(default_factory=dict)
    base_year: int = 1980
    default_base: int = 100_000_000

    def __post_init__(self) -> None:
        # read-only view over a private copy
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @property
    def base_population(self) -> int:
        return self.values.get(self.base_year) or self.default_base

    @property
    def max_population(self) -> int:
        return max(self.values.values(), default=self.base_population)

    def population_for(self, year: int) -> int:
        """Population for `year`, falling back to the baseline when absent or zero."""
        return self.values.get(year) or self.base_population
