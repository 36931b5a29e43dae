"""
Regulation and mortality tables keyed by (EEZ, year).

Feeds the regulation/mortality area+line chart (per-year sums) and the
choropleth (per-EEZ mortality, binned into the legend thresholds).
"""

from __future__ import annotations

import bisect

import pandas as pd

from .transform import normalize_columns

# source column -> series name, in stacking order (bottom first)
REGULATION_SERIES: tuple[tuple[str, str], ...] = (
    ("fru", "other_finning"),
    ("fcr", "fin_ratio"),
    ("fna", "fins_attached"),
    ("mpa", "mpas"),
    ("sfp", "fishing_bans"),
    ("ss", "shark_sanctuaries"),
)

REGULATION_LABELS = {
    "shark_sanctuaries": "Shark Sanctuaries",
    "fishing_bans": "Shark Fishing Prohibitions",
    "mpas": "Marine Protected Areas",
    "fins_attached": "Fins Naturally Attached",
    "fin_ratio": "Fin-to-Carcass Ratio",
    "other_finning": "Finning Regulation (Unspecified)",
}

REGULATION_NUMERIC = (
    "ss", "fna", "fcr", "faa", "sfp", "fru", "mpa",
    "annual_effort_kwh", "annual_catch_mt", "wb_index",
)
MORTALITY_NUMERIC = ("total_catch", "total_mortality")

MORTALITY_THRESHOLDS = (1_000, 5_000, 10_000, 50_000, 100_000, 1_000_000)
MORTALITY_BIN_LABELS = ("< 1K", "1K - 5K", "5K - 10K", "10K - 50K", "50K - 100K", "100K - 1M", "> 1M")
NO_DATA = "No data"


def _coerce(df: pd.DataFrame, columns: tuple[str, ...]) -> pd.DataFrame:
    df = normalize_columns(df)
    if "year" not in df.columns:
        raise KeyError("table missing year")
    df["year"] = pd.to_numeric(df["year"], errors="coerce")
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
        else:
            df[col] = float("nan")
    if "eez_name" in df.columns:
        df["eez_name"] = df["eez_name"].fillna("").astype(str).str.strip()
    else:
        df["eez_name"] = ""
    return df


def clean_mortality(df: pd.DataFrame) -> pd.DataFrame:
    return _coerce(df, MORTALITY_NUMERIC)


def clean_regulations(df: pd.DataFrame) -> pd.DataFrame:
    return _coerce(df, REGULATION_NUMERIC)


def regulations_by_year(regulations: pd.DataFrame) -> pd.DataFrame:
    """Count of EEZs with each regulation type, one row per year, ascending."""
    df = regulations.dropna(subset=["year"])
    sums = df.groupby("year")[[src for src, _ in REGULATION_SERIES]].sum()
    sums = sums.rename(columns=dict(REGULATION_SERIES)).sort_index().reset_index()
    sums["year"] = sums["year"].astype(int)
    return sums


def mortality_by_year(mortality: pd.DataFrame) -> pd.DataFrame:
    df = mortality.dropna(subset=["year"])
    out = df.groupby("year")["total_mortality"].sum().rename("mortality").sort_index().reset_index()
    out["year"] = out["year"].astype(int)
    return out


def mortality_by_eez(mortality: pd.DataFrame) -> dict[str, float]:
    sums = mortality.groupby("eez_name")["total_mortality"].sum()
    return {str(name): float(total) for name, total in sums.items()}


def mortality_bin(value: float | None) -> int | None:
    """Index of the legend bin for a mortality value; None for missing or non-positive."""
    if value is None or pd.isna(value) or value <= 0:
        return None
    return bisect.bisect_right(MORTALITY_THRESHOLDS, value)


def mortality_bin_label(value: float | None) -> str:
    idx = mortality_bin(value)
    return NO_DATA if idx is None else MORTALITY_BIN_LABELS[idx]
