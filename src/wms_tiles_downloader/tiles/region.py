"""
Normalize geographic regions before tile math runs.

Naive min/max tile math breaks for boxes crossing the antimeridian and
Mercator is undefined past MAX_LATITUDE, so boxes are split and clamped here.
"""

from dataclasses import dataclass
from typing import Iterable

from ..errors import GeometryError
from .mercator import LngLat, MAX_LATITUDE, MAX_LONGITUDE


@dataclass(frozen=True)
class GeoBounds:
    """Geographic bounding box in WGS84."""
    west: float   # min longitude
    south: float  # min latitude
    east: float   # max longitude
    north: float  # max latitude

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east


def clamp(bounds: GeoBounds) -> GeoBounds:
    """Clamp a box to the valid Web Mercator extent."""
    return GeoBounds(
        west=max(-MAX_LONGITUDE, bounds.west),
        south=max(-MAX_LATITUDE, bounds.south),
        east=min(MAX_LONGITUDE, bounds.east),
        north=min(MAX_LATITUDE, bounds.north),
    )


def normalize(bounds: GeoBounds) -> list[GeoBounds]:
    """
    Split a box crossing the antimeridian in two and clamp each part.

    Returns one box, or two (western part first) when west > east.
    """
    if bounds.crosses_antimeridian:
        return [
            clamp(GeoBounds(-MAX_LONGITUDE, bounds.south, bounds.east, bounds.north)),
            clamp(GeoBounds(bounds.west, bounds.south, MAX_LONGITUDE, bounds.north)),
        ]
    return [clamp(bounds)]


def bounds_from_ring(points: Iterable[LngLat]) -> GeoBounds:
    """Extent of a polygon ring."""
    points = list(points)
    if not points:
        raise GeometryError("Polygon ring has no points")

    lngs = [p.lng for p in points]
    lats = [p.lat for p in points]
    return GeoBounds(
        west=min(lngs),
        south=min(lats),
        east=max(lngs),
        north=max(lats),
    )
