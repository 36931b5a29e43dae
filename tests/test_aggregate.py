from __future__ import annotations

import pytest

from sharkviz.aggregate import aggregate, incident_rate, summarize_year
from sharkviz.models import AggregateBucket, IncidentRecord, PopulationSeries
from sharkviz.rules import BODY_REGION_RULES


def _rec(year, labels, fatal=False) -> IncidentRecord:
    return IncidentRecord(year=year, raw_text="", fatal=fatal, labels=tuple(labels))


def _species_records() -> list[IncidentRecord]:
    records = []
    # twelve species with 20, 19, ..., 9 incidents; two extra species at 6 and 5
    for i in range(12):
        records += [_rec(2000, [f"S{i}"], fatal=(n % 4 == 0)) for n in range(20 - i)]
    records += [_rec(2001, ["Six"]) for _ in range(6)]
    records += [_rec(2001, ["Five"]) for _ in range(5)]
    return records


def test_year_buckets_sorted_and_conserved() -> None:
    records = [_rec(2001, ["a"], True), _rec(1999, ["a"]), _rec(2001, ["b"]), _rec(None, ["c"])]
    buckets = aggregate(records, "year")
    assert [b.key for b in buckets] == [1999, 2001]
    assert sum(b.total_count for b in buckets) == 3
    assert buckets[1].fatal_count == 1
    assert buckets[1].non_fatal_count == 1


def test_region_buckets_count_every_label() -> None:
    records = [
        _rec(2000, ["lowerArm", "torso"], fatal=True),
        _rec(2000, ["torso"]),
        _rec(2000, ["unknown"]),
    ]
    buckets = aggregate(records, "region")
    by_key = {b.key: b for b in buckets}

    assert [b.key for b in buckets] == [rule.category_id for rule in BODY_REGION_RULES]
    assert by_key["torso"].total_count == 2
    assert by_key["torso"].fatal_count == 1
    assert by_key["lowerArm"].total_count == 1
    assert by_key["foot"].total_count == 0
    assert "unknown" not in by_key
    # multi-label records can be counted more than once
    assert sum(b.total_count for b in buckets) == 3


def test_region_buckets_include_unknown_on_request() -> None:
    records = [_rec(2000, ["unknown"]), _rec(2000, ["head"])]
    buckets = aggregate(records, "region", include_unknown=True)
    assert buckets[-1].key == "unknown"
    assert buckets[-1].total_count == 1


def test_region_buckets_for_empty_year_are_zero_filled() -> None:
    buckets = aggregate([_rec(2000, ["head"])], "region", year=1990)
    assert len(buckets) == len(BODY_REGION_RULES)
    assert all(b.total_count == 0 and b.fatal_count == 0 for b in buckets)


def test_species_top_n_and_min_count() -> None:
    buckets = aggregate(_species_records(), "species")
    assert len(buckets) == 10
    assert all(b.total_count > 5 for b in buckets)
    assert [b.key for b in buckets] == [f"S{i}" for i in range(10)]
    totals = [b.total_count for b in buckets]
    assert totals == sorted(totals, reverse=True)


def test_species_filter_excludes_count_of_exactly_min() -> None:
    buckets = aggregate(_species_records(), "species", top_n=100)
    keys = {b.key for b in buckets}
    assert "Six" in keys
    assert "Five" not in keys


def test_species_ties_keep_first_seen_order() -> None:
    records = [_rec(2000, ["B"]) for _ in range(7)] + [_rec(2000, ["A"]) for _ in range(7)]
    assert [b.key for b in aggregate(records, "species")] == ["B", "A"]


def test_single_label_conservation_without_post_filter() -> None:
    records = _species_records()
    buckets = aggregate(records, "species", min_count=0, top_n=len(records))
    assert sum(b.total_count for b in buckets) == len(records)


def test_fatal_split_holds_for_every_bucket() -> None:
    for dimension in ("year", "region", "species"):
        for bucket in aggregate(_species_records(), dimension):
            assert bucket.total_count == bucket.fatal_count + bucket.non_fatal_count
            assert bucket.fatal_count >= 0
            assert bucket.non_fatal_count >= 0


def test_year_filter_limits_records() -> None:
    buckets = aggregate(_species_records(), "species", year=2001, min_count=0)
    assert [b.key for b in buckets] == ["Six", "Five"]


def test_aggregate_returns_fresh_buckets() -> None:
    records = [_rec(2000, ["head"])]
    first = aggregate(records, "region")
    second = aggregate(records, "region")
    assert first == second
    assert first is not second


def test_unknown_dimension() -> None:
    with pytest.raises(ValueError):
        aggregate([], "state")


def test_empty_records() -> None:
    assert aggregate([], "year") == []
    assert aggregate([], "species") == []
    assert len(aggregate([], "region")) == len(BODY_REGION_RULES)


def test_bucket_rejects_inconsistent_counts() -> None:
    with pytest.raises(ValueError):
        AggregateBucket(key="x", total_count=1, fatal_count=2)
    with pytest.raises(ValueError):
        AggregateBucket(key="x", total_count=-1, fatal_count=0)


def test_incident_rate_guards_zero_population() -> None:
    assert incident_rate(3, 0) == 0.0
    assert incident_rate(3, 1_000_000) == pytest.approx(3.0)


def test_summarize_year_uses_baseline_for_missing_year() -> None:
    population = PopulationSeries(values={1980: 2_000_000, 1990: 0})
    records = [_rec(1990, ["head"], True), _rec(1990, ["foot"]), _rec(1991, ["foot"])]

    summary = summarize_year(records, population, 1990)
    assert summary.population == 2_000_000
    assert summary.total_count == 2
    assert summary.fatal_count == 1
    assert summary.non_fatal_count == 1
    assert summary.rate == pytest.approx(1.0)
