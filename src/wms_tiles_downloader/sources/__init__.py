"""Boundary sources for tile enumeration."""

from .geojson import load_boundary, parse_boundary, tiles_from_geojson

__all__ = [
    'load_boundary',
    'parse_boundary',
    'tiles_from_geojson',
]
