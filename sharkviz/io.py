from __future__ import annotations
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Literal
import pandas as pd

from .errors import SourceUnavailable

logger = logging.getLogger(__name__)

SourceKind = Literal["csv", "text", "json"]

# DataFrame.attrs key holding the number of unparseable CSV lines
SKIPPED_ROWS_ATTR = "skipped_rows"


@dataclass(frozen=True)
class SourceSpec:
    name: str
    location: str
    kind: SourceKind = "csv"


def _is_url(location: str) -> bool:
    return urllib.parse.urlparse(location).scheme in {"http", "https"}


def read_source_text(location: str) -> str:
    """Read a local file or http(s) URL as UTF-8 text."""
    if _is_url(location):
        req = urllib.request.Request(
            location,
            headers={
                "User-Agent": "Mozilla/5.0",
                "Accept": "*/*",
            },
        )
        with urllib.request.urlopen(req) as resp:
            return resp.read().decode("utf-8-sig")
    path = Path(location)
    if not path.exists():
        raise FileNotFoundError(f"Missing required file: {path}")
    return path.read_text(encoding="utf-8-sig")


def parse_csv_text(text: str) -> pd.DataFrame:
    # Keep every cell as a string; typing and defaulting happen in the loader.
    # Lines with extra fields are skipped and their count kept in df.attrs.
    skipped: list[list[str]] = []

    def _skip(bad_line: list[str]) -> None:
        skipped.append(bad_line)

    df = pd.read_csv(StringIO(text), dtype=str, keep_default_na=False, engine="python", on_bad_lines=_skip)
    df.attrs[SKIPPED_ROWS_ATTR] = len(skipped)
    if skipped:
        logger.warning("Skipped %d malformed CSV lines", len(skipped))
    return df


def load_source(spec: SourceSpec):
    """Fetch and parse one source; any failure becomes SourceUnavailable."""
    try:
        text = read_source_text(spec.location)
        if spec.kind == "csv":
            return parse_csv_text(text)
        if spec.kind == "json":
            return json.loads(text)
        return text
    except (OSError, urllib.error.URLError, UnicodeDecodeError, ValueError, pd.errors.ParserError) as exc:
        raise SourceUnavailable(spec.name, spec.location, str(exc)) from exc


def fetch_sources(specs: list[SourceSpec], max_workers: int = 4) -> dict[str, object]:
    """Fetch all sources in parallel and return {name: parsed payload}.

    The first failure cancels fetches that have not started and is re-raised;
    results are only returned when every source loaded.
    """
    if not specs:
        return {}
    results: dict[str, object] = {}
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fetch") as pool:
        futures = {pool.submit(load_source, spec): spec for spec in specs}
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for fut in done:
            exc = fut.exception()
            if exc is not None:
                for other in pending:
                    other.cancel()
                raise exc
        for fut, spec in futures.items():
            results[spec.name] = fut.result()
    for spec in specs:
        logger.debug("Loaded source %s from %s", spec.name, spec.location)
    return results


def save_run_metadata(out_path: Path, sources: dict[str, str], versions: dict, extra: dict | None = None) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "sources": sources,
        "generated_at_utc": pd.Timestamp.now(tz="UTC").isoformat(),
        "package_versions": versions,
    }
    if extra:
        payload.update(extra)
    out_path.write_text(json.dumps(payload, indent=2))
