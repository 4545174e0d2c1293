"""CLI entry point for the episode player."""

import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()  # Load .env file automatically

import click
import requests
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api import CatalogClient, CatalogError
from .config import Config
from .manifest import BandwidthEstimator, ManifestLoader, parse_master_playlist, select_variant
from .models import AUTO_VARIANT, Variant
from .source import SourceKind, resolve

console = Console()


def print_banner():
    """Print the application banner."""
    console.print(Panel.fit(
        "[bold magenta]Episode Player[/bold magenta]\n"
        "[dim]Adaptive streaming playback with resume, skips and autoplay[/dim]",
        border_style="magenta"
    ))


def print_variants(variants: list[Variant], chosen: int):
    """Print the renditions of an adaptive manifest."""
    table = Table(title="Variants")
    table.add_column("Index", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Resolution", style="green")
    table.add_column("Bitrate", style="yellow")
    table.add_column("URI", style="white", max_width=60)

    for variant in variants:
        marker = " [bold green]✓[/bold green]" if variant.index == chosen else ""
        resolution = f"{variant.width}x{variant.height}" if variant.height else "-"
        bitrate = f"{variant.bitrate / 1000:.0f} kbps" if variant.bitrate else "-"
        table.add_row(str(variant.index) + marker, variant.label, resolution, bitrate, variant.uri)

    console.print(table)


def run_window(build):
    """Create the Qt application, show the window `build()` returns, run the loop."""
    from .gui_main import create_application

    app = create_application()
    window = build()
    window.show()
    sys.exit(app.exec())


@click.group()
def cli():
    """Episode Player - adaptive video playback for a content catalog."""


@cli.command()
@click.argument("content_id")
@click.argument("episode_id")
@click.option("--api-url", envvar="EPISODE_PLAYER_API_URL",
              help="Base URL of the catalog API")
@click.option("--fullscreen", is_flag=True, help="Start in fullscreen")
def watch(content_id: str, episode_id: str, api_url: str | None, fullscreen: bool):
    """Watch a catalog episode, resuming from the saved position."""
    from .gui import WatchWindow

    config = Config(api_url=api_url) if api_url else Config()

    def build():
        window = WatchWindow(content_id=content_id, episode_id=episode_id, config=config)
        if fullscreen:
            window.player.controller.toggle_fullscreen()
        return window

    run_window(build)


@cli.command()
@click.argument("locator")
@click.option("--title", help="Title shown above the player")
@click.option("--start", type=float, default=0.0,
              help="Start position (seconds)")
@click.option("--opening", type=(float, float), default=None,
              help="Opening window START END (seconds) for the skip button")
@click.option("--ending", "ending_start", type=float, default=None,
              help="Ending start (seconds); only shown with a next episode")
@click.option("--paused", is_flag=True, help="Do not start playing on load")
def play(
    locator: str,
    title: str | None,
    start: float,
    opening: tuple[float, float] | None,
    ending_start: float | None,
    paused: bool
):
    """Play a file or URL directly, without the catalog."""
    from .gui import WatchWindow

    def build():
        window = WatchWindow()
        window.open_locator(
            locator,
            title=title,
            start=start,
            opening=opening,
            ending_start=ending_start,
            autoplay=not paused,
        )
        return window

    run_window(build)


@cli.command()
@click.argument("locator")
@click.option("--episode", "episode_id", help="Also list the catalog's alternative sources for this episode")
@click.option("--bandwidth", type=float, default=None,
              help="Bandwidth estimate (bits/s) used to pick the start variant")
def probe(locator: str, episode_id: str | None, bandwidth: float | None):
    """Show how a locator would be played."""
    print_banner()
    config = Config()

    kind = resolve(locator)
    console.print(f"\n[bold]Source kind:[/bold] {kind.value}")

    try:
        if kind == SourceKind.ADAPTIVE_MANIFEST:
            path = Path(locator).expanduser()
            estimator = BandwidthEstimator(config.initial_bandwidth_estimate)
            if "://" not in locator and path.exists():
                variants = parse_master_playlist(path.read_text(), path.resolve().as_uri())
            else:
                loader = ManifestLoader(timeout=config.request_timeout)
                try:
                    variants, sample = loader.load(locator)
                finally:
                    loader.close()
                if sample:
                    estimator.add_sample(sample)
                    console.print(f"  Measured throughput: {sample / 1000:.0f} kbps")

            estimate = bandwidth if bandwidth is not None else estimator.estimate
            chosen = select_variant(
                variants,
                estimate,
                AUTO_VARIANT,
                config.abr_bandwidth_factor,
                config.abr_bandwidth_up_factor,
            )
            console.print(f"  Start variant at {estimate / 1000:.0f} kbps: {chosen}\n")
            print_variants(variants, chosen)

        if episode_id:
            client = CatalogClient(config)
            try:
                sources = client.get_episode_sources(episode_id)
            finally:
                client.close()
            table = Table(title=f"Sources for episode {episode_id}")
            table.add_column("Server", style="cyan")
            table.add_column("Kind", style="green")
            table.add_column("URL", style="white", max_width=70)
            for source in sources:
                url = source.get("url") or source.get("videoUrl") or ""
                table.add_row(str(source.get("server") or source.get("name") or "-"), resolve(url).value, url)
            console.print(table)

    except (requests.RequestException, CatalogError, ValueError, OSError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
