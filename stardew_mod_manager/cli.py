"""Command-line interface for stardew-mod-manager."""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .api import RegistryError
from .config import ConfigError, ManagerConfig, load_config
from .extractor import ExtractionError
from .game import GameNotFoundError, load_game_data
from .manifest import ManifestError
from .profiles import ProfileError
from .service import ModManagerService, ModView
from .tasks import TaskManager

console = Console()

ERRORS = (
    ConfigError,
    ExtractionError,
    GameNotFoundError,
    ManifestError,
    OSError,
    ProfileError,
    RegistryError,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")
    sys.exit(1)


def _service(ctx: click.Context) -> ModManagerService:
    """Build the service on first use so --help works without a game install."""
    if "service" not in ctx.obj:
        config: ManagerConfig = ctx.obj["config"]
        try:
            game = load_game_data(ctx.obj["game_dir"] or config.game_dir)
        except (GameNotFoundError, OSError) as e:
            _fail(e)
        ctx.obj["service"] = ModManagerService(game, config)
    return ctx.obj["service"]


@click.group()
@click.option(
    "--game-dir",
    envvar="SVMM_GAME_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    help="Stardew Valley install directory (or set SVMM_GAME_DIR env var)",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding config.json",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def main(
    ctx: click.Context, game_dir: Path | None, config_dir: Path | None, verbose: bool
) -> None:
    """Manage Stardew Valley mods and profiles."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_dir)
    except ConfigError as e:
        _fail(e)
    ctx.obj["game_dir"] = game_dir


@main.command()
@click.option("--installation-path", help="Stardew Valley install directory")
@click.option("--downloads-dir", help="Folder searched for downloaded archives")
@click.option("--registry-url", help="Mod registry API URL")
@click.option("--timeout", type=float, help="Registry request timeout in seconds")
@click.pass_context
def configure(
    ctx: click.Context,
    installation_path: str | None,
    downloads_dir: str | None,
    registry_url: str | None,
    timeout: float | None,
) -> None:
    """Show or change saved settings."""
    config: ManagerConfig = ctx.obj["config"]
    changed = False
    if installation_path is not None:
        config.installation_path = installation_path
        changed = True
    if downloads_dir is not None:
        config.downloads_dir = downloads_dir
        changed = True
    if registry_url is not None:
        config.registry_url = registry_url
        changed = True
    if timeout is not None:
        config.request_timeout = timeout
        changed = True

    if changed:
        try:
            config.save()
        except OSError as e:
            _fail(e)
        console.print(f"[dim]Saved {config.config_file}[/dim]")

    for key, value in config.to_dict().items():
        console.print(f"[bold]{key}:[/bold] {value}")


def _mod_table(title: str, mods: list[ModView]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version", style="green")
    table.add_column("Author", style="blue")
    for mod in mods:
        table.add_row(mod.id, mod.name[:40], mod.version, mod.author[:30])
    return table


@main.command(name="list")
@click.option("--downloads", is_flag=True, help="Also list mod archives in the downloads folder")
@click.pass_context
def list_mods(ctx: click.Context, downloads: bool) -> None:
    """List active and inactive mods of the current profile."""
    svc = _service(ctx)

    with TaskManager() as tasks:
        mods_task = tasks.submit("list_mods", svc.list_mods)
        downloads_task = tasks.submit("find_downloads", svc.find_downloads) if downloads else None
        try:
            result = tasks.wait(mods_task)
            archives = tasks.wait(downloads_task) if downloads_task else []
        except ERRORS as e:
            _fail(e)
        for task_id in (mods_task, downloads_task):
            if task_id:
                tasks.discard(task_id)

    console.print(f"[bold]Profile:[/bold] {result.profile}")
    console.print(_mod_table(f"Active mods ({len(result.active)})", result.active))
    console.print(_mod_table(f"Inactive mods ({len(result.inactive)})", result.inactive))

    if downloads:
        _print_archives(archives)


@main.command()
@click.argument("mod_id")
@click.pass_context
def show(ctx: click.Context, mod_id: str) -> None:
    """
    Show details of a mod.

    MOD_ID: Unique ID of the mod
    """
    try:
        mod = _service(ctx).get_mod(mod_id)
    except ERRORS as e:
        _fail(e)

    console.print(f"[bold]{mod.name}[/bold] {mod.version} by {mod.author}")
    console.print(f"[bold]ID:[/bold] {mod.id}")
    console.print(f"[bold]Status:[/bold] {'active' if mod.active else 'inactive'}")
    console.print(f"[bold]Path:[/bold] {mod.path}")
    if mod.description:
        console.print(mod.description)
    for label, url in (("Nexus", mod.nexus), ("GitHub", mod.github), ("ModDrop", mod.moddrop)):
        if url:
            console.print(f"[bold]{label}:[/bold] {url}")


@main.command()
@click.argument("mod_id")
@click.pass_context
def toggle(ctx: click.Context, mod_id: str) -> None:
    """
    Enable a disabled mod or disable an enabled one.

    MOD_ID: Unique ID of the mod
    """
    try:
        result = _service(ctx).toggle_mod(mod_id)
    except ERRORS as e:
        _fail(e)

    state = "[green]enabled[/green]" if result.active else "[yellow]disabled[/yellow]"
    console.print(f"{result.mod.name} {state}")


@main.command()
@click.pass_context
def profiles(ctx: click.Context) -> None:
    """List profiles."""
    svc = _service(ctx)
    try:
        names = svc.profiles.list_profiles()
        active = svc.profiles.get_active_profile()
    except ERRORS as e:
        _fail(e)

    for name in names:
        marker = "[green]*[/green]" if name == active else " "
        console.print(f"{marker} {name}")


@main.command()
@click.argument("profile")
@click.pass_context
def switch(ctx: click.Context, profile: str) -> None:
    """
    Switch to another profile.

    PROFILE: Name of the profile to load
    """
    try:
        result = _service(ctx).switch_profile(profile)
    except ERRORS as e:
        _fail(e)

    console.print(
        f"[green]Switched to {result.current}[/green] "
        f"[dim]({result.stashed} stashed in {result.previous}, {result.restored} restored)[/dim]"
    )


@main.command()
@click.argument("mod_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def remove(ctx: click.Context, mod_id: str, yes: bool) -> None:
    """
    Move a mod into the deleted folder.

    MOD_ID: Unique ID of the mod
    """
    if not yes:
        click.confirm(f"Remove {mod_id}?", abort=True)
    try:
        location = _service(ctx).remove_mod(mod_id)
    except ERRORS as e:
        _fail(e)

    console.print(f"[green]Removed {mod_id}[/green] [dim](moved to {location})[/dim]")


@main.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def install(ctx: click.Context, archive: Path) -> None:
    """
    Install mods from an archive.

    ARCHIVE: Path to a .zip, .7z or .rar file
    """
    try:
        result = _service(ctx).install(archive)
    except ERRORS as e:
        _fail(e)

    console.print(f"[green]Extracted {archive.name}[/green] [dim]to {result.target_dir}[/dim]")
    for mod in result.mods:
        console.print(f"  - {mod.name} {mod.version} [dim]({mod.id})[/dim]")


def _print_archives(archives) -> None:
    if not archives:
        console.print("[dim]No mod archives found.[/dim]")
        return

    table = Table(title="Downloaded archives")
    table.add_column("Archive", style="cyan")
    table.add_column("Created")
    table.add_column("Mods")
    for archive in archives:
        created = datetime.fromtimestamp(archive.created_at).strftime("%y-%m-%d %H:%M")
        table.add_row(
            archive.name,
            created,
            ", ".join(f"{m.name} ({m.id})" for m in archive.mods),
        )
    console.print(table)


@main.command()
@click.option(
    "--downloads-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder to search (default: config downloads_dir or ~/Downloads)",
)
@click.pass_context
def downloads(ctx: click.Context, downloads_dir: Path | None) -> None:
    """List downloaded archives that contain mods."""
    try:
        archives = _service(ctx).find_downloads(downloads_dir)
    except ERRORS as e:
        _fail(e)
    _print_archives(archives)


@main.command(name="delete-download")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def delete_download(ctx: click.Context, archive: Path) -> None:
    """
    Delete a downloaded archive.

    ARCHIVE: Path to the archive
    """
    try:
        _service(ctx).delete_download(archive)
    except ERRORS as e:
        _fail(e)
    console.print(f"[green]Deleted {archive.name}[/green]")


@main.command()
@click.pass_context
def missing(ctx: click.Context) -> None:
    """List dependencies the active mods need but are not installed."""
    console.print("[dim]Checking dependencies...[/dim]")
    try:
        views, error = _service(ctx).missing_dependency_views()
    except ERRORS as e:
        _fail(e)

    if error:
        console.print(f"[yellow]Could not reach the mod registry:[/yellow] {error}")

    if not views:
        console.print("[green]No missing dependencies.[/green]")
        return

    table = Table(title="Missing dependencies")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Required")
    table.add_column("Needed by")
    table.add_column("URL", style="blue")
    for view in views:
        table.add_row(
            view.id,
            view.name or "-",
            "[red]yes[/red]" if view.required else "no",
            ", ".join(view.required_by),
            view.url or "-",
        )
    console.print(table)


if __name__ == "__main__":
    main()
