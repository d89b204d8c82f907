"""
WMS Tiles Downloader - Download Web Mercator tiles from WMS servers.

Usage:
    from wms_tiles_downloader import DownloadConfig, download_tiles

    config = DownloadConfig(url="wms.server.url", layer="roads", zooms=[10],
                            bbox=(19.8, 50.0, 20.1, 50.1))
    config.validate()
    report = download_tiles(config, config.tile_ids())
    print(report.failed_tiles)
"""

__version__ = "0.1.0"

from .tiles import (
    TileID,
    LngLat,
    GeoBounds,
    tiles,
    tiles_from_bounds,
    tiles_from_polygon,
)
from .sources import load_boundary, tiles_from_geojson
from .config import DownloadConfig
from .download import (
    DownloadReport,
    TileOutcome,
    TileState,
    run_downloads,
    download_tiles,
    download_tiles_async,
)
from .errors import (
    WMSTilesError,
    ValidationError,
    GeometryError,
    TileError,
    TileFetchError,
    TilePersistError,
)
from .wms import WMSClient, TileRequest

__all__ = [
    "TileID",
    "LngLat",
    "GeoBounds",
    "tiles",
    "tiles_from_bounds",
    "tiles_from_polygon",
    "tiles_from_geojson",
    "load_boundary",
    "DownloadConfig",
    "DownloadReport",
    "TileOutcome",
    "TileState",
    "run_downloads",
    "download_tiles",
    "download_tiles_async",
    "WMSTilesError",
    "ValidationError",
    "GeometryError",
    "TileError",
    "TileFetchError",
    "TilePersistError",
    "WMSClient",
    "TileRequest",
]
