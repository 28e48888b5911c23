"""
Command-line interface for the audio selector.

Search the audio folder and play a pick, or add files from a direct link.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from shared.config import load_config, save_config, default_config_path
from shared.constants import MSG_UNEXPECTED
from shared.errors import SelectorError
from shared.models import SelectorConfig
from selector import commands
from selector.catalog import CatalogIndex
from selector.codec import FfmpegTranscoder, FfmpegVoiceEncoder
from selector.dispatcher import PlaybackDispatcher
from selector.transports import ConsoleTransport
from ingest.fetcher import RemoteFetcher
from ingest.pipeline import IngestionPipeline
from ingest.sniffer import MagicSniffer

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool, log_file: Optional[str] = None) -> None:
    handlers = [RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)]
    if log_file:
        file_handler = logging.FileHandler(Path(log_file).expanduser(), encoding='utf-8')
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        handlers.append(file_handler)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def build_dispatcher(config: SelectorConfig) -> PlaybackDispatcher:
    return PlaybackDispatcher(
        config.catalog_dir,
        transcoder=FfmpegTranscoder(),
        encoder=FfmpegVoiceEncoder(bitrate=config.voice_bitrate),
        voice_platforms=config.voice_platforms,
        sample_rate=config.voice_sample_rate,
    )


def build_pipeline(config: SelectorConfig) -> IngestionPipeline:
    fetcher = RemoteFetcher(timeout=config.network_timeout, chunk_size=config.chunk_size)
    return IngestionPipeline(fetcher, MagicSniffer())


def _reply(message: Optional[str]) -> None:
    if message:
        console.print(message, markup=False, highlight=False)


class AppContext:
    def __init__(self, config_path: Optional[Path], verbose: bool):
        self.config_path = config_path
        self.verbose = verbose
        self._config: Optional[SelectorConfig] = None

    @property
    def config(self) -> SelectorConfig:
        if self._config is None:
            self._config = load_config(self.config_path)
            setup_logging(self.verbose, self._config.log_file)
        return self._config


@click.group()
@click.version_option(version="1.0.0")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help=f'Config file (default: {default_config_path()})')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """
    🎵 Local Audio Selector

    Search a folder of audio files, pick one to play, or upload new ones.
    """
    setup_logging(verbose)
    ctx.obj = AppContext(config_path, verbose)


@cli.command()
@click.argument('path', type=click.Path(file_okay=False, path_type=Path))
@click.option('--allow-upload/--no-upload', default=False, help='Allow uploads from links')
@click.option('--whitelist', multiple=True, help='User allowed to upload (repeatable; none = everyone)')
@click.option('--max-upload-mb', type=click.IntRange(min=1), help='Reject uploads larger than this')
@click.option('--voice-platform', multiple=True, help='Platform that only accepts voice clips (repeatable)')
@click.pass_obj
def init(app, path, allow_upload, whitelist, max_upload_mb, voice_platform):
    """Create the configuration for the audio folder PATH."""
    folder = path.expanduser().absolute()
    folder.mkdir(parents=True, exist_ok=True)

    config = SelectorConfig(
        path=str(folder),
        allow_upload=allow_upload,
        whitelist=list(whitelist),
        max_upload_bytes=max_upload_mb * 1024 * 1024 if max_upload_mb else None,
        voice_platforms=list(voice_platform),
    )
    config_file = save_config(config, app.config_path)

    console.print(Panel.fit(
        "[bold green]✅ Setup Complete![/bold green]\n\n"
        f"Folder: {folder}\n"
        f"Uploads: {'on' if allow_upload else 'off'}\n"
        f"Config: {config_file}",
        border_style="green"
    ))


@cli.command(name='list')
@click.pass_obj
def list_catalog(app):
    """List every file in the audio folder."""
    try:
        catalog = CatalogIndex(app.config.catalog_dir)
        entries = catalog.search("")
    except SelectorError as e:
        logger.warning("Listing failed: %s", e, exc_info=True)
        console.print(f"[red]{e.user_message}[/red]")
        return

    if not entries:
        console.print("[yellow]The audio folder is empty.[/yellow]")
        return

    table = Table(title=f"{app.config.catalog_dir} ({len(entries)} files)")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold white")
    table.add_column("File", style="green")
    for number, entry in enumerate(entries, start=1):
        table.add_row(str(number), entry.display_name, entry.raw_name)
    console.print(table)


@cli.command()
@click.argument('pattern')
@click.option('--user', help='Requester identity (default: $USER)')
@click.option('--platform', default='console', show_default=True,
              help='Transport platform name; voice platforms get transcoded clips')
@click.pass_obj
def search(app, pattern, user, platform):
    """Search file names by regular expression and play one."""
    try:
        config = app.config
        transport = ConsoleTransport(user_id=user, platform=platform, console=console)
        reply = commands.search_and_play(
            pattern, transport, CatalogIndex(config.catalog_dir), build_dispatcher(config), config
        )
    except SelectorError as e:
        logger.warning("Search failed: %s", e, exc_info=True)
        reply = e.user_message
    except Exception:
        logger.exception("Unexpected error during search")
        reply = MSG_UNEXPECTED
    _reply(reply)


@cli.command()
@click.argument('link')
@click.argument('name', required=False)
@click.option('--user', help='Uploader identity (default: $USER)')
@click.pass_obj
def upload(app, link, name, user):
    """
    Download LINK into the audio folder.

    LINK must point straight at an audio file. Without NAME the file is
    named after the uploader and the current time.
    """
    try:
        config = app.config
        transport = ConsoleTransport(user_id=user, console=console)
        with console.status("Downloading..."):
            reply = commands.upload(link, name, transport, build_pipeline(config), config)
    except SelectorError as e:
        logger.warning("Upload failed: %s", e, exc_info=True)
        reply = e.user_message
    except Exception:
        logger.exception("Unexpected error during upload")
        reply = MSG_UNEXPECTED
    _reply(reply)


if __name__ == '__main__':
    cli()
