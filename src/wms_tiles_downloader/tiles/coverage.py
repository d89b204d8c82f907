"""
Enumerate the tiles covering a region.

Key requirements:
- Tiles for one or more bounding boxes at every requested zoom level
- Optional polygon filter dropping tiles with no overlap
- Deterministic order: box, then zoom, then x, then y (all as given/ascending)

Duplicates coming from repeated zoom levels or overlapping boxes are kept.
"""

import logging
from typing import Iterable, Sequence

import shapely
from shapely.errors import GEOSException
from shapely.geometry import Polygon

from ..errors import GeometryError
from .mercator import LngLat, TileID, br, tile, ul
from .region import GeoBounds, bounds_from_ring, normalize

logger = logging.getLogger(__name__)


class PolygonFilter:
    """
    Planar (degree-space) overlap test between tiles and a boundary polygon.

    This is not a spherical intersection. Tiles touching the boundary only
    along an edge have zero area and are rejected.
    """

    def __init__(self, ring: Sequence[LngLat]):
        polygon = Polygon([(p.lng, p.lat) for p in ring])
        if not polygon.is_valid:
            # Self-intersecting rings become a MultiPolygon keeping every lobe.
            logger.warning("Boundary ring is not a valid polygon, repairing it")
            polygon = shapely.make_valid(polygon)
        self.polygon = polygon

    def intersection_area(self, coord: TileID) -> float:
        top_left = ul(coord)
        bottom_right = br(coord)
        tile_polygon = Polygon([
            (top_left.lng, top_left.lat),
            (bottom_right.lng, top_left.lat),
            (bottom_right.lng, bottom_right.lat),
            (top_left.lng, bottom_right.lat),
        ])
        try:
            return self.polygon.intersection(tile_polygon).area
        except GEOSException as e:
            raise GeometryError(f"Cannot intersect tile {coord} with boundary: {e}") from e

    def __call__(self, coord: TileID) -> bool:
        area = self.intersection_area(coord)
        logger.debug("Tile %s overlap area: %f", coord, area)
        return area != 0


def tiles(
    boxes: Iterable[GeoBounds],
    zooms: Sequence[int],
    polygon: PolygonFilter | None = None,
) -> list[TileID]:
    """
    Get the tiles intersecting normalized boxes at the given zoom levels.

    Args:
        boxes: Boxes already split/clamped by region.normalize
        zooms: Zoom levels, in the order tiles should be emitted
        polygon: Optional filter; tiles it rejects are skipped

    Returns:
        List of TileID
    """
    result = []
    for box in boxes:
        for z in zooms:
            lower_left = tile(box.west, box.south, z)
            upper_right = tile(box.east, box.north, z)

            n = 2 ** z
            x_start = max(lower_left.x, 0)
            y_start = max(upper_right.y, 0)
            x_end = min(upper_right.x + 1, n)
            y_end = min(lower_left.y + 1, n)

            for x in range(x_start, x_end):
                for y in range(y_start, y_end):
                    coord = TileID(x, y, z)
                    if polygon is not None and not polygon(coord):
                        continue
                    result.append(coord)
    return result


def tiles_from_bounds(
    west: float,
    south: float,
    east: float,
    north: float,
    zooms: Sequence[int],
) -> list[TileID]:
    """Get tiles intersecting a geographic bounding box."""
    boxes = normalize(GeoBounds(west, south, east, north))
    return tiles(boxes, zooms)


def tiles_from_polygon(ring: Sequence[LngLat], zooms: Sequence[int]) -> list[TileID]:
    """Get tiles whose area overlaps a polygon ring."""
    boxes = normalize(bounds_from_ring(ring))
    return tiles(boxes, zooms, PolygonFilter(ring))


def count_by_zoom(coords: Iterable[TileID]) -> dict[int, int]:
    """Count tiles per zoom level."""
    counts: dict[int, int] = {}
    for coord in coords:
        counts[coord.z] = counts.get(coord.z, 0) + 1
    return dict(sorted(counts.items()))
