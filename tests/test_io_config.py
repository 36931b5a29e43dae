from __future__ import annotations

from pathlib import Path

import pytest

from sharkviz.config import Settings
from sharkviz.errors import ConfigError, SourceUnavailable
from sharkviz.io import SKIPPED_ROWS_ATTR, SourceSpec, fetch_sources, load_source, parse_csv_text


def test_parse_csv_text_keeps_strings_and_blanks() -> None:
    df = parse_csv_text("Year,Fatal Y/N\n1999,\n2000,Y\n")
    assert list(df["Year"]) == ["1999", "2000"]
    assert list(df["Fatal Y/N"]) == ["", "Y"]


def test_fetch_sources_returns_every_payload(tmp_path: Path) -> None:
    (tmp_path / "a.csv").write_text("x,y\n1,2\n")
    (tmp_path / "b.txt").write_text("CA,1980,10\n")
    (tmp_path / "c.json").write_text('{"type": "FeatureCollection", "features": []}')

    out = fetch_sources(
        [
            SourceSpec("a", str(tmp_path / "a.csv"), "csv"),
            SourceSpec("b", str(tmp_path / "b.txt"), "text"),
            SourceSpec("c", str(tmp_path / "c.json"), "json"),
        ],
        max_workers=3,
    )
    assert list(out["a"].columns) == ["x", "y"]
    assert out["b"].startswith("CA,1980")
    assert out["c"]["type"] == "FeatureCollection"


def test_missing_source_aborts_fetch(tmp_path: Path) -> None:
    (tmp_path / "a.csv").write_text("x\n1\n")
    specs = [
        SourceSpec("a", str(tmp_path / "a.csv")),
        SourceSpec("missing", str(tmp_path / "nope.csv")),
    ]
    with pytest.raises(SourceUnavailable) as info:
        fetch_sources(specs)
    assert info.value.name == "missing"


def test_malformed_json_is_source_unavailable(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(SourceUnavailable):
        load_source(SourceSpec("boundaries", str(path), "json"))


def test_settings_env_overrides(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SHARKVIZ_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SHARKVIZ_MIN_YEAR", "1990")
    monkeypatch.setenv("SHARKVIZ_WRITE_PARQUET", "no")
    s = Settings.from_env(max_year=2000)
    assert s.data_dir == tmp_path
    assert s.year_range == (1990, 2000)
    assert s.write_parquet is False
    assert s.source_location("incidents") == str(tmp_path / "globalSharkAttackFile.csv")


def test_settings_cli_override_beats_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SHARKVIZ_OUTPUT_DIR", "env_out")
    s = Settings.from_env(output_dir=tmp_path)
    assert s.output_dir == tmp_path


def test_settings_url_sources_are_left_alone() -> None:
    s = Settings(incidents_file="https://example.org/gsaf.csv")
    assert s.source_location("incidents") == "https://example.org/gsaf.csv"


def test_settings_validation(monkeypatch) -> None:
    monkeypatch.setenv("SHARKVIZ_FETCH_WORKERS", "many")
    with pytest.raises(ConfigError):
        Settings.from_env()
    with pytest.raises(ConfigError):
        Settings(min_year=2020, max_year=2019)


def test_parse_csv_text_skips_ragged_lines() -> None:
    df = parse_csv_text("Country,Year,Injury\nUSA,1990,leg\nUSA,1991,arm,extra\nUSA,1992,foot\n")
    assert list(df["Year"]) == ["1990", "1992"]
    assert df.attrs[SKIPPED_ROWS_ATTR] == 1


def test_ragged_csv_source_still_loads(tmp_path: Path) -> None:
    path = tmp_path / "incidents.csv"
    path.write_text("Country,Year\nUSA,1990\nUSA,1991,oops\n")
    df = load_source(SourceSpec("incidents", str(path), "csv"))
    assert len(df) == 1
    assert df.attrs[SKIPPED_ROWS_ATTR] == 1
