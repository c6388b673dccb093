"""Main CLI entry point for media-reconcile."""

import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import click

from media_reconcile import __version__
from media_reconcile.config import Settings, get_settings
from media_reconcile.lookup import lookup
from media_reconcile.models import (
    LookupSource,
    MediaFolder,
    PersistedSource,
    SeasonModel,
    SeasonSource,
)
from media_reconcile.reconcile_service import ReconcileService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)

FOLDER_ARGUMENT = click.Path(exists=True, file_okay=False, path_type=Path)


def _folder_path(path: Path) -> str:
    return path.resolve().as_posix()


def _create_service(ctx: click.Context) -> ReconcileService:
    settings: Settings = ctx.obj
    service = ReconcileService(settings)
    ctx.call_on_close(service.close)
    return service


def _open_folder(service: ReconcileService, folder: Path) -> MediaFolder:
    """Open a folder on a worker thread so Ctrl+C cancels a running bootstrap."""
    cancel_event = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(
            service.open_media_folder, _folder_path(folder), cancel_event
        )
        try:
            return future.result()
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
            cancel_event.set()
            click.echo("👋 Bootstrap cancelled")
            sys.exit(130)


def _echo_seasons(seasons: list[SeasonModel]) -> None:
    for season_model in seasons:
        season = season_model.season
        title = f" - {season.name}" if season.name else ""
        click.echo(f"Season {season.season_number}{title}")
        for episode_model in season_model.episodes:
            episode = episode_model.episode
            click.echo(f"  E{episode.episode_number:02d} {episode.name}".rstrip())
            if not episode_model.files:
                click.echo("    (no files)")
            for tagged in episode_model.files:
                target = f" -> {tagged.new_path}" if tagged.new_path else ""
                click.echo(f"    [{tagged.kind}] {tagged.path}{target}")


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Media Reconcile.

    Reconciles the files of a TV show folder with its season and episode
    metadata and previews rename and recognition plans.
    """
    try:
        settings = get_settings()
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)
    ctx.obj = settings


@cli.command()
@click.argument("folder", type=FOLDER_ARGUMENT)
@click.argument("anchor")
@click.pass_context
def match(ctx: click.Context, folder: Path, anchor: str) -> None:
    """List the files that belong to ANCHOR inside FOLDER."""
    service = _create_service(ctx)
    folder_path = _folder_path(folder)
    files = service.list_files(folder_path)

    matches = service.match_associated_files(folder_path, files, anchor)
    if not matches:
        click.echo(f"No associated files for {anchor}")
        return
    for tagged in matches:
        click.echo(f"[{tagged.kind}] {tagged.path}")


@cli.command()
@click.argument("folder", type=FOLDER_ARGUMENT)
@click.pass_context
def bootstrap(ctx: click.Context, folder: Path) -> None:
    """Recognize FOLDER from its .nfo descriptors and store the result."""
    service = _create_service(ctx)

    media_folder = _open_folder(service, folder)
    show = media_folder.show
    if show is None:
        click.echo(f"❌ Folder is not recognizable: {media_folder.path}", err=True)
        sys.exit(1)

    episode_count = sum(len(season.episodes) for season in show.seasons)
    click.echo(f"✅ {show.name} (id {show.id})")
    click.echo(f"📺 {len(show.seasons)} season(s), {episode_count} episode(s)")
    click.echo(f"🔗 {len(media_folder.mappings)} file mapping(s)")


@cli.command()
@click.argument("folder", type=FOLDER_ARGUMENT)
@click.option(
    "--lookup",
    "use_lookup",
    is_flag=True,
    help="Re-run the SxxEyy file name rules instead of stored mappings.",
)
@click.pass_context
def preview(ctx: click.Context, folder: Path, use_lookup: bool) -> None:
    """Show the season and episode tree of FOLDER."""
    service = _create_service(ctx)
    media_folder = _open_folder(service, folder)
    if media_folder.show is None:
        click.echo(f"❌ Folder is not recognizable: {media_folder.path}", err=True)
        sys.exit(1)

    source: SeasonSource
    if use_lookup:
        table = service.extension_table
        source = LookupSource(
            resolver=lambda files, season, episode: lookup(
                files, season, episode, table
            )
        )
    else:
        source = PersistedSource(mappings=media_folder.mappings)

    seasons = service.build_season_models(
        media_folder.show, media_folder.path, media_folder.files, source
    )
    _echo_seasons(seasons)


@cli.command()
@click.argument("folder", type=FOLDER_ARGUMENT)
@click.option(
    "--dry-run", is_flag=True, help="Show the staged plan without storing it."
)
@click.pass_context
def recognize(ctx: click.Context, folder: Path, dry_run: bool) -> None:
    """Map the episode files of FOLDER by the SxxEyy rules and store them."""
    service = _create_service(ctx)
    media_folder = _open_folder(service, folder)
    if media_folder.show is None:
        click.echo(f"❌ Folder is not recognizable: {media_folder.path}", err=True)
        sys.exit(1)

    staged = service.stage_lookup_recognition(media_folder.path)
    if staged.task_id is None:
        click.echo(f"❌ {staged.error}", err=True)
        sys.exit(1)

    _echo_seasons(service.preview_task(staged.task_id) or [])
    if dry_run:
        service.discard_task(staged.task_id)
        click.echo("🔍 Dry run, nothing stored")
        return

    result = service.confirm_recognize(staged.task_id)
    if not result.success:
        click.echo(f"❌ {result.error}", err=True)
        sys.exit(1)
    click.echo(f"✅ {result.message}")


if __name__ == "__main__":
    cli()
