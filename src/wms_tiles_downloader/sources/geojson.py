"""
Read download boundaries from GeoJSON files.

Only the exterior ring of the first polygon of the first feature is used.
Holes, further polygons and further features are ignored.
"""

import json
import logging
from pathlib import Path
from typing import Sequence

from ..errors import GeometryError
from ..tiles.coverage import tiles_from_polygon
from ..tiles.mercator import LngLat, TileID

logger = logging.getLogger(__name__)

POLYGON_TYPES = {"Polygon", "MultiPolygon"}


def _first_geometry(data: dict) -> dict:
    """Pull the first feature's geometry out of a GeoJSON document."""
    doc_type = data.get("type")

    if doc_type == "FeatureCollection":
        features = data.get("features") or []
        if not features:
            raise GeometryError("FeatureCollection has no features")
        if len(features) > 1:
            logger.info("Using the first of %d features", len(features))
        return _first_geometry(features[0])

    if doc_type == "Feature":
        geometry = data.get("geometry")
        if not isinstance(geometry, dict):
            raise GeometryError("Feature has no geometry")
        return geometry

    if doc_type in POLYGON_TYPES:
        return data

    raise GeometryError(f"Unsupported GeoJSON type: {doc_type!r}")


def _first_ring(geometry: dict) -> list:
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if geom_type not in POLYGON_TYPES:
        raise GeometryError(f"Expected Polygon or MultiPolygon, got {geom_type!r}")

    try:
        if geom_type == "MultiPolygon":
            return coords[0][0]
        return coords[0]
    except (IndexError, TypeError, KeyError):
        raise GeometryError(f"{geom_type} has no coordinates") from None


def parse_boundary(data: dict) -> list[LngLat]:
    """
    Extract the boundary ring from a parsed GeoJSON document.

    Accepts a FeatureCollection, a Feature or a bare Polygon/MultiPolygon.

    Raises:
        GeometryError: If no polygon ring can be found
    """
    if not isinstance(data, dict):
        raise GeometryError("GeoJSON document must be an object")

    ring = _first_ring(_first_geometry(data))

    points = []
    for position in ring:
        try:
            points.append(LngLat(float(position[0]), float(position[1])))
        except (IndexError, TypeError, ValueError):
            raise GeometryError(f"Invalid position in ring: {position!r}") from None

    if len(points) < 3:
        raise GeometryError(f"Polygon ring needs at least 3 points, got {len(points)}")

    return points


def load_boundary(path: Path | str) -> list[LngLat]:
    """Read a GeoJSON file and return its boundary ring."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GeometryError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise GeometryError(f"Invalid JSON in {path}: {e}") from e

    points = parse_boundary(data)
    logger.debug("Loaded %d boundary points from %s", len(points), path)
    return points


def tiles_from_geojson(path: Path | str, zooms: Sequence[int]) -> list[TileID]:
    """Get tiles overlapping the first polygon of a GeoJSON file."""
    return tiles_from_polygon(load_boundary(path), zooms)
