"""
Download configuration.

A DownloadConfig is built once (by the CLI or by library callers) and passed
down explicitly; nothing here is module-level state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .errors import ValidationError
from .sources.geojson import tiles_from_geojson
from .tiles.coverage import tiles_from_bounds
from .tiles.mercator import TileID
from .wms.client import SUPPORTED_VERSIONS, TileRequest

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_CONCURRENCY = 16


def parse_auth(value: str) -> tuple[str, str]:
    """Split ``username:password`` basic auth credentials."""
    if ":" not in value:
        raise ValidationError("Invalid auth format. Should be username:password")
    username, _, password = value.partition(":")
    return username, password


def parse_params(values: Iterable[str]) -> dict[str, str]:
    """
    Parse custom query string params.

    Each value may hold several comma-separated ``key=value`` pairs.
    """
    params: dict[str, str] = {}
    for value in values:
        for pair in value.split(","):
            pair = pair.strip()
            if not pair:
                continue
            key, sep, param_value = pair.partition("=")
            if not sep or not key:
                raise ValidationError(f"Invalid param {pair!r}. Should be key=value")
            params[key] = param_value
    return params


@dataclass
class DownloadConfig:
    """Everything needed to enumerate and download tiles."""
    url: str
    layer: str
    zooms: list[int]
    bbox: tuple[float, float, float, float] | None = None
    geojson: Path | None = None
    style: str = ""
    width: int = 256
    height: int = 256
    format: str = "image/png"
    version: str = "1.3.0"
    output: Path = Path(".")
    timeout: int = DEFAULT_TIMEOUT_MS  # milliseconds, per request
    concurrency: int = DEFAULT_CONCURRENCY
    params: dict[str, str] = field(default_factory=dict)
    auth: tuple[str, str] | None = None

    def validate(self) -> None:
        """
        Check the configuration before any work starts.

        Raises:
            ValidationError: Describing the first problem found
        """
        if not self.url:
            raise ValidationError("WMS server url is required")
        if not self.layer:
            raise ValidationError("Layer name is required")
        if not self.zooms:
            raise ValidationError("At least one zoom level is required")
        if any(z < 0 for z in self.zooms):
            raise ValidationError(f"Zoom levels must be non-negative: {self.zooms}")

        if self.bbox is None and self.geojson is None:
            raise ValidationError("Either bbox or geojson should be provided")
        if self.bbox is not None and self.geojson is not None:
            raise ValidationError("Provide either bbox or geojson, not both")
        if self.bbox is not None and len(self.bbox) != 4:
            raise ValidationError("Bbox needs four values: west,south,east,north")

        if self.version not in SUPPORTED_VERSIONS:
            raise ValidationError(
                f"Unsupported WMS version {self.version!r}, expected one of {', '.join(SUPPORTED_VERSIONS)}"
            )
        if self.width <= 0 or self.height <= 0:
            raise ValidationError("Tile width and height must be positive")
        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")
        if self.concurrency < 1:
            raise ValidationError("Concurrency must be at least 1")

    def tile_request(self) -> TileRequest:
        return TileRequest(
            layers=self.layer,
            styles=self.style,
            width=self.width,
            height=self.height,
            format=self.format,
            output_dir=Path(self.output),
        )

    def tile_ids(self) -> list[TileID]:
        """
        Enumerate the tiles covering the configured bbox or GeoJSON boundary.

        Raises:
            GeometryError: If the GeoJSON boundary cannot be read
        """
        if self.bbox is not None:
            west, south, east, north = self.bbox
            return tiles_from_bounds(west, south, east, north, self.zooms)
        return tiles_from_geojson(self.geojson, self.zooms)
