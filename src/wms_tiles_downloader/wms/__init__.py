"""WMS GetMap client used to fetch and save tiles."""

from .client import WMSClient, TileRequest, Tile

__all__ = [
    'WMSClient',
    'TileRequest',
    'Tile',
]
