"""
Exceptions raised by wms-tiles-downloader.

Validation and geometry errors are fatal and raised before any tile work
starts. Tile errors are per-tile: the download orchestrator records them and
carries on with the rest of the batch.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tiles.mercator import TileID


class WMSTilesError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(WMSTilesError):
    """Invalid or missing user input."""


class GeometryError(WMSTilesError):
    """A boundary document could not be read or has no usable polygon."""


class TileError(WMSTilesError):
    """A single tile could not be downloaded or saved."""

    def __init__(self, tile: "TileID", message: str):
        super().__init__(f"{tile}: {message}")
        self.tile = tile
        self.message = message


class TileFetchError(TileError):
    """Network failure, timeout or non-success response for a tile."""

    def __init__(self, tile: "TileID", message: str, status: int | None = None):
        super().__init__(tile, message)
        self.status = status


class TilePersistError(TileError):
    """Tile content could not be written to disk."""
