"""
Tests for region clamping, antimeridian splitting and ring extents.
"""

import pytest

from wms_tiles_downloader.errors import GeometryError
from wms_tiles_downloader.tiles.mercator import LngLat, MAX_LATITUDE
from wms_tiles_downloader.tiles.region import (
    GeoBounds, bounds_from_ring, clamp, normalize
)


def test_clamp_inside_is_unchanged():
    bounds = GeoBounds(-10.0, -5.0, 10.0, 5.0)
    assert clamp(bounds) == bounds


def test_clamp_limits():
    """Test that latitude is clamped to the Mercator limit and lng to 180."""
    bounds = clamp(GeoBounds(-200.0, -90.0, 200.0, 90.0))
    assert bounds == GeoBounds(-180.0, -MAX_LATITUDE, 180.0, MAX_LATITUDE)


def test_normalize_regular_box():
    """Test that a box not crossing the antimeridian stays whole."""
    boxes = normalize(GeoBounds(10.0, 20.0, 30.0, 89.0))
    assert boxes == [GeoBounds(10.0, 20.0, 30.0, MAX_LATITUDE)]


def test_normalize_antimeridian_split():
    """Test that west > east splits into a western and an eastern box."""
    boxes = normalize(GeoBounds(170.0, -10.0, -170.0, 10.0))
    assert boxes == [
        GeoBounds(-180.0, -10.0, -170.0, 10.0),
        GeoBounds(170.0, -10.0, 180.0, 10.0),
    ]


def test_normalize_split_parts_are_clamped():
    boxes = normalize(GeoBounds(170.0, -89.0, -170.0, 89.0))
    assert all(b.south == -MAX_LATITUDE and b.north == MAX_LATITUDE for b in boxes)


def test_crosses_antimeridian():
    assert GeoBounds(170.0, 0.0, -170.0, 1.0).crosses_antimeridian
    assert not GeoBounds(-170.0, 0.0, 170.0, 1.0).crosses_antimeridian


def test_bounds_from_ring():
    """Test that the extent is the min/max over all ring points."""
    ring = [
        LngLat(19.0, 50.0),
        LngLat(21.5, 49.5),
        LngLat(20.0, 51.0),
        LngLat(19.0, 50.0),
    ]
    assert bounds_from_ring(ring) == GeoBounds(19.0, 49.5, 21.5, 51.0)


def test_bounds_from_ring_negative_and_zero():
    """Test that zero coordinates are treated like any other value."""
    ring = [LngLat(0.0, 0.0), LngLat(-5.0, 2.0), LngLat(3.0, -1.0)]
    assert bounds_from_ring(ring) == GeoBounds(-5.0, -1.0, 3.0, 2.0)


def test_bounds_from_empty_ring():
    with pytest.raises(GeometryError):
        bounds_from_ring([])
