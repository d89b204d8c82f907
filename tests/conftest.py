"""
Shared fixtures: a stub WMS server driven by the requested layer name.
"""

import asyncio

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class StubWMS:
    """
    Minimal GetMap endpoint.

    Layers:
        broken      - HTTP 500
        exception   - OGC ServiceException with status 200
        slow        - responds after 0.5 s
        west-fails  - 404 for tiles west of the prime meridian
        private     - 401 unless basic auth user:secret is sent
        anything else returns a PNG
    """

    def __init__(self):
        self.url = None
        self.queries: list[dict[str, str]] = []

    async def handle(self, request: web.Request) -> web.Response:
        query = dict(request.query)
        self.queries.append(query)
        layers = query.get("layers")

        if layers == "broken":
            return web.Response(status=500, text="boom")
        if layers == "exception":
            return web.Response(
                text="<ServiceExceptionReport><ServiceException>Layer not defined</ServiceException></ServiceExceptionReport>",
                content_type="application/vnd.ogc.se_xml",
            )
        if layers == "slow":
            await asyncio.sleep(0.5)
        if layers == "west-fails" and float(query["bbox"].split(",")[0]) < 0:
            return web.Response(status=404, text="not found")
        if layers == "private":
            # base64("user:secret")
            if request.headers.get("Authorization") != "Basic dXNlcjpzZWNyZXQ=":
                return web.Response(status=401)

        return web.Response(body=PNG, content_type="image/png")


@pytest_asyncio.fixture
async def wms_server():
    stub = StubWMS()
    app = web.Application()
    app.router.add_get("/wms", stub.handle)
    async with TestServer(app) as server:
        stub.url = str(server.make_url("/wms"))
        yield stub
