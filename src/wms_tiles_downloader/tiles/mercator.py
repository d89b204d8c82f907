"""
Spherical (Web) Mercator tile math.

Key requirements:
- Convert lng/lat to the slippy-map tile containing it
- Convert tile coords back to geographic corners
- Project tile bounds to Mercator meters (what WMS GetMap expects)
"""

from dataclasses import dataclass
import math

EARTH_RADIUS = 6378137.0

# Web Mercator is undefined past this latitude.
MAX_LATITUDE = 85.051129
MAX_LONGITUDE = 180.0


@dataclass(frozen=True)
class TileID:
    """A single tile's coordinates in the Z/X/Y scheme."""
    x: int
    y: int
    z: int

    def __str__(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclass(frozen=True)
class LngLat:
    """A geographic point in degrees."""
    lng: float
    lat: float


@dataclass(frozen=True)
class Bbox:
    """Bounding box in Web Mercator meters."""
    left: float
    bottom: float
    right: float
    top: float

    def to_wms(self) -> str:
        """Format as a WMS ``bbox`` query value."""
        return f"{self.left!r},{self.bottom!r},{self.right!r},{self.top!r}"


def xy(lng_lat: LngLat) -> tuple[float, float]:
    """Project a point to Spherical Mercator (x, y) in meters."""
    lng = math.radians(lng_lat.lng)
    lat = math.radians(lng_lat.lat)
    x = EARTH_RADIUS * lng
    y = EARTH_RADIUS * math.log(math.tan(math.pi * 0.25 + 0.5 * lat))
    return x, y


def ul(tile: TileID) -> LngLat:
    """Upper left (northwest) corner of a tile."""
    n = 2.0 ** tile.z
    lon_deg = tile.x / n * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi * (1 - 2 * tile.y / n)))
    return LngLat(lon_deg, math.degrees(lat_rad))


def br(tile: TileID) -> LngLat:
    """Bottom right (southeast) corner of a tile."""
    return ul(TileID(tile.x + 1, tile.y + 1, tile.z))


def xy_bounds(tile: TileID) -> Bbox:
    """Web Mercator bounding box of a tile."""
    left, top = xy(ul(tile))
    right, bottom = xy(br(tile))
    return Bbox(left, bottom, right, top)


def tile(lng: float, lat: float, zoom: int) -> TileID:
    """
    Get the tile containing a longitude and latitude.

    The result is not clamped to the valid range for the zoom level, so
    callers must clamp it. Latitude must already be within MAX_LATITUDE.
    """
    lat_rad = math.radians(lat)
    n = 2.0 ** zoom
    x = math.floor((lng + 180.0) / 360.0 * n)
    y = math.floor(
        (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n
    )
    return TileID(int(x), int(y), zoom)
