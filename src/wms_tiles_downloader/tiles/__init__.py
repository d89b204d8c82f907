"""Tile math, region normalization and tile enumeration."""

from .mercator import TileID, LngLat, Bbox, xy, ul, br, xy_bounds, tile
from .region import GeoBounds, clamp, normalize, bounds_from_ring
from .coverage import (
    PolygonFilter, tiles, tiles_from_bounds, tiles_from_polygon, count_by_zoom
)

__all__ = [
    'TileID',
    'LngLat',
    'Bbox',
    'GeoBounds',
    'xy',
    'ul',
    'br',
    'xy_bounds',
    'tile',
    'clamp',
    'normalize',
    'bounds_from_ring',
    'PolygonFilter',
    'tiles',
    'tiles_from_bounds',
    'tiles_from_polygon',
    'count_by_zoom',
]
