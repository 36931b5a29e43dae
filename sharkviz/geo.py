"""
Boundary features for the choropleth view.

Plain GeoJSON FeatureCollections are used as-is. TopoJSON topologies need an
expansion step, done through geopandas (GDAL's TopoJSON driver). geopandas is
an optional extra: the import is attempted once and the outcome remembered, so
a missing install costs one failed import and raises DependencyMissing for the
choropleth only.
"""

from __future__ import annotations

import importlib
import json
import logging
import os
import tempfile
from typing import Any

from .errors import DependencyMissing
from .regulation import mortality_bin, mortality_bin_label

logger = logging.getLogger(__name__)

TOPOLOGY_MODULE = "geopandas"

# module name -> imported module, or None after a failed attempt
_optional_modules: dict[str, Any] = {}


def optional_import(name: str):
    if name not in _optional_modules:
        try:
            _optional_modules[name] = importlib.import_module(name)
        except ImportError:
            logger.warning("Optional dependency %s is not installed", name)
            _optional_modules[name] = None
    module = _optional_modules[name]
    if module is None:
        raise DependencyMissing(name, "expand TopoJSON boundaries")
    return module


def is_topology(data: dict) -> bool:
    return isinstance(data, dict) and data.get("type") == "Topology"


def _expand_topology(topology: dict) -> list[dict]:
    gpd = optional_import(TOPOLOGY_MODULE)
    objects = topology.get("objects") or {}
    if not objects:
        return []
    layer = next(iter(objects))
    fd, path = tempfile.mkstemp(suffix=".topojson")
    try:
        with os.fdopen(fd, "w") as handle:
            json.dump(topology, handle)
        frame = gpd.read_file(path, layer=layer)
    finally:
        os.remove(path)
    return json.loads(frame.to_json())["features"]


def boundary_features(data: dict) -> list[dict]:
    """Return GeoJSON features from either a FeatureCollection or a Topology."""
    if is_topology(data):
        return _expand_topology(data)
    return list(data.get("features") or [])


def feature_name(feature: dict) -> str:
    props = feature.get("properties") or {}
    return props.get("name") or "Unknown"


def join_mortality(features: list[dict], mortality_by_eez: dict[str, float]) -> list[dict]:
    """Per-feature mortality summary for the choropleth tooltip and fill."""
    rows = []
    for feature in features:
        name = feature_name(feature)
        value = mortality_by_eez.get(name)
        has_data = value is not None and value > 0
        rows.append(
            {
                "name": name,
                "mortality": value if has_data else None,
                "bin": mortality_bin(value),
                "bin_label": mortality_bin_label(value),
            }
        )
    return rows
