from __future__ import annotations
import argparse
import importlib
import json
import logging
from pathlib import Path
import pandas as pd

from .config import Settings
from .errors import DependencyMissing, SourceUnavailable
from .geo import boundary_features, join_mortality
from .io import SourceSpec, fetch_sources, save_run_metadata
from .regulation import (
    REGULATION_LABELS,
    REGULATION_SERIES,
    clean_mortality,
    clean_regulations,
    mortality_by_eez,
    mortality_by_year,
    regulations_by_year,
)
from .transform import load_body_map_incidents, load_population, load_species_incidents
from .viz import STATUS_ERROR, STATUS_NO_DATA, STATUS_OK, PresentationAdapter, view_status

logger = logging.getLogger(__name__)

VIEWS = ("body_map", "species", "choropleth", "regulation")


def get_versions() -> dict:
    pkgs = ["pandas", "numpy", "pyarrow", "geopandas"]
    versions = {}
    for p in pkgs:
        try:
            mod = importlib.import_module(p)
            versions[p] = getattr(mod, "__version__", "unknown")
        except ImportError:
            versions[p] = "not_installed"
    return versions


def source_specs(settings: Settings) -> list[SourceSpec]:
    return [
        SourceSpec("incidents", settings.source_location("incidents"), "csv"),
        SourceSpec("population", settings.source_location("population"), "text"),
        SourceSpec("mortality", settings.source_location("mortality"), "csv"),
        SourceSpec("regulation", settings.source_location("regulation"), "csv"),
        SourceSpec("boundaries", settings.source_location("boundaries"), "json"),
    ]


def build_adapter(tables: dict, settings: Settings) -> tuple[PresentationAdapter, dict]:
    incidents = tables["incidents"]
    body_map = load_body_map_incidents(incidents, settings.country_aliases, settings.year_range)
    species = load_species_incidents(incidents)
    population = load_population(
        tables["population"],
        settings.coastal_states,
        settings.year_range,
        default_base=settings.default_base_population,
    )
    adapter = PresentationAdapter(
        body_map.records,
        species.records,
        population,
        year_range=settings.year_range,
        species_min_count=settings.species_min_count,
        species_top_n=settings.species_top_n,
    )
    stats = {
        "body_map_records": len(body_map),
        "body_map_dropped": body_map.dropped,
        "species_records": len(species),
        "species_dropped": species.dropped,
    }
    return adapter, stats


def build_regulation_view(mortality: pd.DataFrame, regulations: pd.DataFrame) -> dict:
    regs = regulations_by_year(regulations)
    mort = mortality_by_year(mortality)
    if regs.empty and mort.empty:
        return view_status(STATUS_NO_DATA)
    return {
        **view_status(STATUS_OK),
        "series": [name for _, name in REGULATION_SERIES],
        "labels": REGULATION_LABELS,
        "regulations": regs.to_dict(orient="records"),
        "mortality": mort.to_dict(orient="records"),
    }


def build_choropleth_view(boundaries: dict, mortality: pd.DataFrame) -> dict:
    """Choropleth payload; a missing TopoJSON dependency only fails this view."""
    try:
        features = boundary_features(boundaries)
    except DependencyMissing as exc:
        logger.error("Choropleth unavailable: %s", exc)
        return view_status(STATUS_ERROR, f"{exc}. Install the 'geo' extra to render the map.")
    if not features:
        return view_status(STATUS_NO_DATA)
    return {
        **view_status(STATUS_OK),
        "features": join_mortality(features, mortality_by_eez(mortality)),
    }


def empty_payload(message: str) -> dict:
    return {"views": {name: view_status(STATUS_NO_DATA, message) for name in VIEWS}}


def _parsed(name: str, settings: Settings, fn, *args):
    # a table missing a required column is as unusable as one that failed to load
    try:
        return fn(*args)
    except KeyError as exc:
        raise SourceUnavailable(name, settings.source_location(name), f"missing column {exc}") from exc


def run(settings: Settings, year: int | None = None) -> tuple[dict, dict]:
    """Fetch every source, then build all view payloads.

    Raises SourceUnavailable when any source fails; no view is built in that case.
    """
    specs = source_specs(settings)
    tables = fetch_sources(specs, max_workers=settings.fetch_workers)
    adapter, stats = _parsed("incidents", settings, build_adapter, tables, settings)
    mortality = _parsed("mortality", settings, clean_mortality, tables["mortality"])
    regulations = _parsed("regulation", settings, clean_regulations, tables["regulation"])
    if year is not None:
        adapter.view.select_year(year)

    incident_payload = adapter.to_payload()
    payload = {
        "view_state": incident_payload["view_state"],
        "population": incident_payload["population"],
        "views": {
            "body_map": incident_payload["body_map"],
            "species": incident_payload["species"],
            "choropleth": build_choropleth_view(tables["boundaries"], mortality),
            "regulation": build_regulation_view(mortality, regulations),
        },
    }
    stats["sources"] = {spec.name: spec.location for spec in specs}
    return payload, stats


def _json_default(value):
    if hasattr(value, "item"):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _write_table(rows: list[dict], path: Path) -> None:
    if rows:
        pd.DataFrame(rows).to_parquet(path, index=False)


def write_outputs(payload: dict, out_base: Path, write_parquet: bool = True) -> None:
    out_base.mkdir(parents=True, exist_ok=True)
    (out_base / "viz_payload.json").write_text(json.dumps(payload, indent=2, default=_json_default))
    if not write_parquet:
        return
    processed_dir = out_base / "processed"
    processed_dir.mkdir(parents=True, exist_ok=True)
    views = payload["views"]
    if views["body_map"]["status"] == STATUS_OK:
        years = views["body_map"]["years"]
        _write_table(
            [{k: v for k, v in year_view.items() if k != "regions"} for year_view in years],
            processed_dir / "body_map_years.parquet",
        )
        _write_table(
            [{"year": year_view["year"], **region} for year_view in years for region in year_view["regions"]],
            processed_dir / "body_map_regions.parquet",
        )
    if views["species"]["status"] == STATUS_OK:
        _write_table(views["species"]["buckets"], processed_dir / "species_top.parquet")
    if views["regulation"]["status"] == STATUS_OK:
        _write_table(views["regulation"]["regulations"], processed_dir / "regulations_by_year.parquet")
        _write_table(views["regulation"]["mortality"], processed_dir / "mortality_by_year.parquet")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Classify and aggregate shark incident data for the visualizations.")
    ap.add_argument("--data-dir", default=None, help="Directory with the source CSV/JSON files (default: data)")
    ap.add_argument("--out", default=None, help="Output base directory (default: outputs)")
    ap.add_argument("--year", type=int, default=None, help="Initially selected body-map year")
    ap.add_argument("--no-parquet", action="store_true", help="Only write the JSON payload")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_env(
        data_dir=Path(args.data_dir) if args.data_dir else None,
        output_dir=Path(args.out) if args.out else None,
        write_parquet=False if args.no_parquet else None,
    )
    out_base = Path(settings.output_dir)

    try:
        payload, stats = run(settings, year=args.year)
    except SourceUnavailable as exc:
        logger.error("Pipeline aborted: %s", exc)
        write_outputs(empty_payload(str(exc)), out_base, write_parquet=False)
        return 1

    write_outputs(payload, out_base, write_parquet=settings.write_parquet)
    save_run_metadata(out_base / "run_metadata.json", stats.pop("sources"), get_versions(), extra={"load_stats": stats})
    logger.info(
        "Loaded %d body-map incidents (%d dropped), %d species incidents",
        stats["body_map_records"],
        stats["body_map_dropped"],
        stats["species_records"],
    )
    logger.info("Payload written to %s", out_base / "viz_payload.json")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
