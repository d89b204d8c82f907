"""
Tests for the WMS GetMap client.
"""

from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

from wms_tiles_downloader.errors import TileFetchError, TilePersistError, ValidationError
from wms_tiles_downloader.tiles.mercator import TileID
from wms_tiles_downloader.wms.client import Tile, TileRequest, WMSClient

from conftest import PNG


def query_of(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query, keep_blank_values=True).items()}


def test_base_url():
    """Test the default GetMap base url."""
    client = WMSClient("wms.server.url", version="1.3.0")
    assert client.base_url() == (
        "https://wms.server.url?crs=EPSG%3A3857&request=GetMap&service=WMS&version=1.3.0"
    )


def test_base_url_version_111_uses_srs():
    client = WMSClient("http://wms.server.url/ows", version="1.1.1")
    query = query_of(client.base_url())
    assert query["srs"] == "EPSG:3857"
    assert "crs" not in query
    assert client.base_url().startswith("http://wms.server.url/ows?")


def test_base_url_keeps_existing_query():
    client = WMSClient("http://host/cgi-bin/mapserv?map=world.map")
    assert client.base_url().startswith("http://host/cgi-bin/mapserv?map=world.map&")


def test_custom_params_override_defaults():
    client = WMSClient("wms.server.url", query_params={"transparent": "true", "crs": "EPSG:900913"})
    query = query_of(client.base_url())
    assert query["transparent"] == "true"
    assert query["crs"] == "EPSG:900913"


def test_invalid_version():
    with pytest.raises(ValidationError, match="Unsupported WMS version"):
        WMSClient("wms.server.url", version="1.0.0")


def test_missing_url():
    with pytest.raises(ValidationError):
        WMSClient("")


def test_tile_url():
    """Test that the tile url carries layer params and a Mercator bbox."""
    client = WMSClient("wms.server.url")
    request = TileRequest(layers="roads", styles="night", width=512, height=512, format="image/jpeg")
    query = query_of(client.tile_url(TileID(1, 0, 1), request))

    assert query["layers"] == "roads"
    assert query["styles"] == "night"
    assert query["width"] == "512"
    assert query["height"] == "512"
    assert query["format"] == "image/jpeg"
    left, bottom, right, top = (float(v) for v in query["bbox"].split(","))
    assert left == pytest.approx(0.0, abs=1e-6)
    assert bottom == pytest.approx(0.0, abs=1e-6)
    assert right == pytest.approx(20037508.342789244)
    assert top == pytest.approx(20037508.342789244)


def test_tile_path():
    client = WMSClient("wms.server.url")
    request = TileRequest(layers="roads", output_dir=Path("tiles"))
    assert client.tile_path(TileID(3, 5, 4), request) == Path("tiles/4/3/5.png")


@pytest.mark.parametrize("image_format, extension", [
    ("image/png", "png"),
    ("image/jpeg", "jpeg"),
    ("image/png; mode=8bit", "png"),
    ("image/svg+xml", "svg"),
])
def test_extension(image_format, extension):
    assert TileRequest(layers="x", format=image_format).extension == extension


@pytest.mark.asyncio
async def test_get_tile(wms_server, tmp_path):
    """Test fetching a tile from the stub server."""
    client = WMSClient(wms_server.url)
    request = TileRequest(layers="roads", output_dir=tmp_path)

    async with client.session() as session:
        tile = await client.get_tile(session, TileID(1, 0, 1), 1000, request)

    assert tile.content == PNG
    assert tile.path == tmp_path / "1" / "1" / "0.png"

    query = wms_server.queries[0]
    assert query["request"] == "GetMap"
    assert query["service"] == "WMS"
    assert query["crs"] == "EPSG:3857"
    assert query["layers"] == "roads"
    assert len(query["bbox"].split(",")) == 4


@pytest.mark.asyncio
async def test_get_tile_http_error(wms_server, tmp_path):
    client = WMSClient(wms_server.url)
    request = TileRequest(layers="broken", output_dir=tmp_path)

    async with client.session() as session:
        with pytest.raises(TileFetchError) as exc_info:
            await client.get_tile(session, TileID(0, 0, 0), 1000, request)

    assert exc_info.value.status == 500
    assert exc_info.value.tile == TileID(0, 0, 0)


@pytest.mark.asyncio
async def test_get_tile_service_exception(wms_server, tmp_path):
    """Test that an XML ServiceException with status 200 is a failure."""
    client = WMSClient(wms_server.url)
    request = TileRequest(layers="exception", output_dir=tmp_path)

    async with client.session() as session:
        with pytest.raises(TileFetchError, match="Layer not defined"):
            await client.get_tile(session, TileID(0, 0, 0), 1000, request)


@pytest.mark.asyncio
async def test_get_tile_timeout(wms_server, tmp_path):
    client = WMSClient(wms_server.url)
    request = TileRequest(layers="slow", output_dir=tmp_path)

    async with client.session() as session:
        with pytest.raises(TileFetchError, match="Timeout after 50 ms"):
            await client.get_tile(session, TileID(0, 0, 0), 50, request)


@pytest.mark.asyncio
async def test_get_tile_connection_error(tmp_path):
    client = WMSClient("http://127.0.0.1:1/wms")
    request = TileRequest(layers="roads", output_dir=tmp_path)

    async with client.session() as session:
        with pytest.raises(TileFetchError):
            await client.get_tile(session, TileID(0, 0, 0), 1000, request)


@pytest.mark.asyncio
async def test_get_tile_basic_auth(wms_server, tmp_path):
    request = TileRequest(layers="private", output_dir=tmp_path)

    client = WMSClient(wms_server.url, auth=("user", "secret"))
    async with client.session() as session:
        tile = await client.get_tile(session, TileID(0, 0, 0), 1000, request)
    assert tile.content == PNG

    anonymous = WMSClient(wms_server.url)
    async with anonymous.session() as session:
        with pytest.raises(TileFetchError, match="HTTP 401"):
            await anonymous.get_tile(session, TileID(0, 0, 0), 1000, request)


def test_save_tile(tmp_path):
    client = WMSClient("wms.server.url")
    tile = Tile(id=TileID(1, 0, 1), content=PNG, path=tmp_path / "1" / "1" / "0.png")

    path = client.save_tile(tile)

    assert path.read_bytes() == PNG


def test_save_tile_error(tmp_path):
    """Test that I/O failures raise TilePersistError."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    client = WMSClient("wms.server.url")
    tile = Tile(id=TileID(0, 0, 0), content=PNG, path=blocker / "0" / "0" / "0.png")

    with pytest.raises(TilePersistError) as exc_info:
        client.save_tile(tile)

    assert exc_info.value.tile == TileID(0, 0, 0)
