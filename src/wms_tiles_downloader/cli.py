"""
Command-line interface for wms-tiles-downloader.

Commands:
- get: Download tiles for a bbox or GeoJSON boundary from a WMS server
"""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
)
from rich.table import Table

from .config import (
    DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT_MS, DownloadConfig, parse_auth, parse_params
)
from .download import download_tiles, write_failed_tiles
from .errors import GeometryError, ValidationError
from .tiles.coverage import count_by_zoom

console = Console()


class CommaSeparated(click.ParamType):
    """Comma-separated list of numbers, e.g. ``1,2,3``."""

    def __init__(self, item_type: type, name: str):
        self.item_type = item_type
        self.name = name

    def convert(self, value, param, ctx):
        if isinstance(value, (list, tuple)):
            return list(value)
        try:
            return [self.item_type(v) for v in str(value).split(",") if v.strip()]
        except ValueError:
            self.fail(f"{value!r} is not a comma-separated list of {self.name}s", param, ctx)


ZOOM_LIST = CommaSeparated(int, "integer")
FLOAT_LIST = CommaSeparated(float, "number")


class RichProgressObserver:
    """Adapts a rich progress task to the download progress observer."""

    def __init__(self, progress: Progress, task_id):
        self.progress = progress
        self.task_id = task_id

    def advance(self, n: int = 1) -> None:
        self.progress.advance(self.task_id, n)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_plan(config: DownloadConfig, tile_ids: list) -> None:
    """Show how many tiles will be requested per zoom level."""
    table = Table(title=f"Tiles for layer {config.layer}")
    table.add_column("Zoom", justify="right")
    table.add_column("Tiles", justify="right", style="cyan")
    for zoom, count in count_by_zoom(tile_ids).items():
        table.add_row(str(zoom), str(count))
    table.add_row("[bold]Total[/]", f"[bold]{len(tile_ids)}[/]")
    console.print(table)


@click.group()
@click.version_option(package_name="wms-tiles-downloader")
def main():
    """WMS Tiles Downloader - Download Web Mercator tiles from WMS servers."""
    pass


@main.command()
@click.option('-u', '--url', required=True, help='WMS server url')
@click.option('-l', '--layer', required=True, help='Layer name')
@click.option('-z', '--zoom', 'zooms', required=True, type=ZOOM_LIST,
              help='Comma-separated list of zooms')
@click.option('-b', '--bbox', type=FLOAT_LIST,
              help='Comma-separated bbox coords: west,south,east,north')
@click.option('--geojson', type=click.Path(path_type=Path),
              help='GeoJSON file with boundaries to download tiles for')
@click.option('-s', '--style', default='', help='Layer style')
@click.option('--width', type=int, default=256, show_default=True, help='Tile width')
@click.option('--height', type=int, default=256, show_default=True, help='Tile height')
@click.option('--format', 'image_format', default='image/png', show_default=True,
              help='Tile format')
@click.option('--version', 'wms_version', default='1.3.0', show_default=True,
              help='WMS server version')
@click.option('-o', '--output', type=click.Path(path_type=Path), default=Path('.'),
              help='Output directory for downloaded tiles')
@click.option('-t', '--timeout', type=int, default=DEFAULT_TIMEOUT_MS, show_default=True,
              help='HTTP request timeout (in milliseconds)')
@click.option('--concurrency', type=int, default=DEFAULT_CONCURRENCY, show_default=True,
              help='Limit of concurrent requests to the WMS server')
@click.option('--params', multiple=True,
              help='Custom query string params: key=value[,key=value]')
@click.option('--auth', help='Basic auth credentials in the form of username:password')
@click.option('--dry-run', is_flag=True, help='List the tiles without downloading them')
@click.option('--failed-output', type=click.Path(path_type=Path),
              help='Write failed tiles (z/x/y per line) to this file')
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
def get(url: str, layer: str, zooms: list[int], bbox: list[float] | None,
        geojson: Path | None, style: str, width: int, height: int, image_format: str,
        wms_version: str, output: Path, timeout: int, concurrency: int,
        params: tuple[str, ...], auth: str | None, dry_run: bool,
        failed_output: Path | None, verbose: bool):
    """Download tiles from a WMS server.

    Tiles are enumerated for every zoom level in --zoom, covering either the
    --bbox or the first polygon of the --geojson file, and saved as
    OUTPUT/z/x/y.<ext>.

    \b
    Tiles that fail to download are reported at the end and can be
    written to a file with --failed-output; the rest of the batch is
    never interrupted.
    """
    setup_logging(verbose)

    # Validate everything before enumerating or fetching
    try:
        config = DownloadConfig(
            url=url,
            layer=layer,
            zooms=zooms,
            bbox=tuple(bbox) if bbox else None,
            geojson=geojson,
            style=style,
            width=width,
            height=height,
            format=image_format,
            version=wms_version,
            output=output,
            timeout=timeout,
            concurrency=concurrency,
            params=parse_params(params),
            auth=parse_auth(auth) if auth else None,
        )
        config.validate()
        tile_ids = config.tile_ids()
    except (ValidationError, GeometryError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise click.Abort()

    if not tile_ids:
        console.print("[yellow]⚠ No tiles intersect the given region[/]")
        return

    print_plan(config, tile_ids)

    if dry_run:
        for coord in tile_ids:
            click.echo(str(coord))
        return

    console.print(f"[bold]Downloading from:[/] {url}")
    console.print(f"[bold]Output:[/] {config.output}")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Fetching {layer}...", total=len(tile_ids))
        report = download_tiles(
            config,
            tile_ids,
            progress=RichProgressObserver(progress, task),
        )

    console.print(f"  ✓ Downloaded [cyan]{report.success_count}[/] tiles")

    if report.failure_count > 0:
        console.print(f"  [yellow]⚠ Failed to download {report.failure_count} tiles[/]")
        if verbose:
            for outcome in report.failed:
                console.print(f"    {outcome.tile}: {escape(str(outcome.error))}")

    if failed_output is not None:
        written = write_failed_tiles(report, failed_output)
        console.print(f"  Wrote {written} failed tiles to {failed_output}")


if __name__ == '__main__':
    main()
