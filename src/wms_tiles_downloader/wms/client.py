"""
WMS GetMap client.

Key features:
- Builds GetMap requests for Web Mercator (EPSG:3857) tiles
- Supports WMS 1.1.1 (srs) and 1.3.0 (crs)
- Custom query string params and basic auth
- Saves tiles as <output_dir>/<z>/<x>/<y>.<ext>
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlencode, urlsplit

import aiohttp

from ..errors import TileFetchError, TilePersistError, ValidationError
from ..tiles.mercator import TileID, xy_bounds

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.1.1", "1.3.0")
CRS = "EPSG:3857"

# Content types a WMS server answers with when it reports a ServiceException.
EXCEPTION_CONTENT_TYPES = {
    "application/vnd.ogc.se_xml",
    "application/vnd.ogc.se+xml",
    "text/xml",
    "application/xml",
}


@dataclass
class TileRequest:
    """Per-tile GetMap parameters shared by every tile of a download."""
    layers: str
    styles: str = ""
    width: int = 256
    height: int = 256
    format: str = "image/png"
    output_dir: Path = Path(".")

    @property
    def extension(self) -> str:
        """File extension derived from the image format (image/png -> png)."""
        subtype = self.format.split(";")[0].strip().rsplit("/", 1)[-1]
        return subtype.split("+")[0] or "img"


@dataclass
class Tile:
    """Downloaded tile content."""
    id: TileID
    content: bytes
    path: Path


class WMSClient:
    """Fetch Web Mercator tiles from a WMS server."""

    def __init__(
        self,
        url: str,
        *,
        version: str = "1.3.0",
        query_params: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        user_agent: str = "wms-tiles-downloader",
    ):
        """
        Initialize client.

        Args:
            url: WMS server url; https is assumed when no scheme is given
            version: WMS version, 1.1.1 or 1.3.0
            query_params: Extra query string params sent with every request
            auth: Basic auth (username, password)
            user_agent: User-Agent header value
        """
        if not url:
            raise ValidationError("WMS server url is required")
        if version not in SUPPORTED_VERSIONS:
            raise ValidationError(
                f"Unsupported WMS version {version!r}, expected one of {', '.join(SUPPORTED_VERSIONS)}"
            )

        if not urlsplit(url).scheme:
            url = f"https://{url}"

        self.url = url
        self.version = version
        self.query_params = dict(query_params or {})
        self.auth = aiohttp.BasicAuth(*auth) if auth else None
        self.user_agent = user_agent

    @property
    def base_params(self) -> dict[str, str]:
        """Query params common to every GetMap request."""
        crs_key = "crs" if self.version == "1.3.0" else "srs"
        params = {
            crs_key: CRS,
            "request": "GetMap",
            "service": "WMS",
            "version": self.version,
        }
        params.update(self.query_params)
        return params

    def _with_query(self, params: dict[str, str]) -> str:
        query = urlencode(sorted(params.items()))
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{query}"

    def base_url(self) -> str:
        """Server url with the common GetMap query string."""
        return self._with_query(self.base_params)

    def tile_url(self, tile_id: TileID, request: TileRequest) -> str:
        """Full GetMap url for one tile."""
        params = self.base_params
        params.update({
            "layers": request.layers,
            "styles": request.styles,
            "width": str(request.width),
            "height": str(request.height),
            "format": request.format,
            "bbox": xy_bounds(tile_id).to_wms(),
        })
        return self._with_query(params)

    def tile_path(self, tile_id: TileID, request: TileRequest) -> Path:
        """Where a tile is saved on disk."""
        return (
            Path(request.output_dir)
            / str(tile_id.z)
            / str(tile_id.x)
            / f"{tile_id.y}.{request.extension}"
        )

    def session(self, concurrency: int = 16) -> aiohttp.ClientSession:
        """Create an HTTP session sized for the given concurrency."""
        connector = aiohttp.TCPConnector(limit=concurrency)
        return aiohttp.ClientSession(
            connector=connector,
            auth=self.auth,
            headers={"User-Agent": self.user_agent},
        )

    async def get_tile(
        self,
        session: aiohttp.ClientSession,
        tile_id: TileID,
        timeout: int,
        request: TileRequest,
    ) -> Tile:
        """
        Fetch a single tile.

        Args:
            session: Session from WMSClient.session()
            tile_id: Tile to fetch
            timeout: Request timeout in milliseconds
            request: GetMap parameters

        Raises:
            TileFetchError: On timeout, transport error, non-200 status or
                a WMS ServiceException response
        """
        url = self.tile_url(tile_id, request)
        logger.debug("GET %s", url)

        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=timeout / 1000),
            ) as response:
                if response.status != 200:
                    raise TileFetchError(tile_id, f"HTTP {response.status}", status=response.status)

                content = await response.read()

                if (
                    response.content_type in EXCEPTION_CONTENT_TYPES
                    and response.content_type != request.format
                ):
                    detail = content.decode("utf-8", errors="replace").strip()
                    raise TileFetchError(
                        tile_id,
                        f"Service exception: {detail[:200]}",
                        status=response.status,
                    )
        except asyncio.TimeoutError:
            raise TileFetchError(tile_id, f"Timeout after {timeout} ms") from None
        except aiohttp.ClientError as e:
            raise TileFetchError(tile_id, str(e) or type(e).__name__) from e

        return Tile(id=tile_id, content=content, path=self.tile_path(tile_id, request))

    def save_tile(self, tile: Tile) -> Path:
        """
        Write tile content to disk, creating parent directories.

        Raises:
            TilePersistError: If the file cannot be written
        """
        try:
            tile.path.parent.mkdir(parents=True, exist_ok=True)
            tile.path.write_bytes(tile.content)
        except OSError as e:
            raise TilePersistError(tile.id, f"Cannot write {tile.path}: {e}") from e
        return tile.path
