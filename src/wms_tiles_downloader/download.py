"""
Bounded-concurrency tile downloads.

Key requirements:
- One task per tile, at most `concurrency` attempts in flight
- A slot is released and progress advanced once per tile, whatever happens
- A failing tile is recorded and never affects its siblings
- No retries; failed tiles are listed in the report for external retries
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Protocol

from .config import DEFAULT_CONCURRENCY, DownloadConfig
from .errors import ValidationError
from .tiles.mercator import TileID
from .wms.client import WMSClient

logger = logging.getLogger(__name__)


class TileState(str, Enum):
    """Lifecycle of a single tile download."""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProgressObserver(Protocol):
    """Receives one advance per finished tile."""

    def advance(self, n: int = 1) -> None:
        ...


@dataclass
class TileOutcome:
    """Result of downloading one tile."""
    tile: TileID
    state: TileState = TileState.PENDING
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.state is TileState.SUCCEEDED


@dataclass
class DownloadReport:
    """Outcome of every tile in a download run, in input order."""
    outcomes: list[TileOutcome] = field(default_factory=list)
    completed: int = 0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> list[TileOutcome]:
        return [o for o in self.outcomes if o.state is TileState.SUCCEEDED]

    @property
    def failed(self) -> list[TileOutcome]:
        return [o for o in self.outcomes if o.state is TileState.FAILED]

    @property
    def failed_tiles(self) -> list[TileID]:
        return [o.tile for o in self.failed]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 100.0
        return (self.success_count / self.total) * 100


async def run_downloads(
    tiles: Iterable[TileID],
    attempt: Callable[[TileID], Awaitable[object]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    progress: ProgressObserver | None = None,
) -> DownloadReport:
    """
    Attempt every tile once with at most `concurrency` attempts running.

    Args:
        tiles: Tiles to download
        attempt: Coroutine function fetching (and saving) one tile; it
            signals failure by raising
        concurrency: Size of the slot pool
        progress: Advanced by one each time an attempt finishes

    Returns:
        DownloadReport once every attempt has finished
    """
    if concurrency < 1:
        raise ValidationError("Concurrency must be at least 1")

    report = DownloadReport()
    semaphore = asyncio.Semaphore(concurrency)
    pending: set[asyncio.Task] = set()

    async def run_one(outcome: TileOutcome) -> None:
        # The caller acquired the slot; it must be released on every exit path.
        try:
            await attempt(outcome.tile)
        except Exception as e:
            outcome.state = TileState.FAILED
            outcome.error = e
            logger.warning("Tile %s failed: %s", outcome.tile, e)
        else:
            outcome.state = TileState.SUCCEEDED
        finally:
            report.completed += 1
            semaphore.release()
            if progress is not None:
                progress.advance(1)

    for coord in tiles:
        outcome = TileOutcome(coord)
        report.outcomes.append(outcome)

        await semaphore.acquire()
        outcome.state = TileState.IN_FLIGHT
        task = asyncio.create_task(run_one(outcome))
        pending.add(task)
        task.add_done_callback(pending.discard)

    # Wait for the stragglers
    if pending:
        await asyncio.gather(*pending)

    logger.info(
        "Downloaded %d/%d tiles (%d failed)",
        report.success_count, report.total, report.failure_count
    )
    return report


async def download_tiles_async(
    config: DownloadConfig,
    tiles: Iterable[TileID],
    *,
    client: WMSClient | None = None,
    progress: ProgressObserver | None = None,
) -> DownloadReport:
    """Fetch each tile from the WMS server and save it under config.output."""
    if client is None:
        client = WMSClient(
            config.url,
            version=config.version,
            query_params=config.params,
            auth=config.auth,
        )
    request = config.tile_request()

    async with client.session(config.concurrency) as session:

        async def fetch_and_save(tile_id: TileID) -> None:
            tile = await client.get_tile(session, tile_id, config.timeout, request)
            client.save_tile(tile)

        return await run_downloads(
            tiles,
            fetch_and_save,
            concurrency=config.concurrency,
            progress=progress,
        )


def download_tiles(
    config: DownloadConfig,
    tiles: Iterable[TileID],
    *,
    client: WMSClient | None = None,
    progress: ProgressObserver | None = None,
) -> DownloadReport:
    """
    Synchronous wrapper for download_tiles_async.
    """
    return asyncio.run(download_tiles_async(
        config,
        tiles,
        client=client,
        progress=progress,
    ))


def write_failed_tiles(report: DownloadReport, path: Path) -> int:
    """Write failed tiles as z/x/y lines. Returns the number written."""
    failed = report.failed_tiles
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{coord}\n" for coord in failed), encoding="utf-8")
    return len(failed)
