"""pkgcompat command line interface."""

import asyncio
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pkgcompat.directory import DirectoryInstaller, PackageDirectory
from pkgcompat.errors import InstallerFailure, PkgCompatError
from pkgcompat.fetcher import fetch_archive_contents
from pkgcompat.models import Package, UpgradeCandidate
from pkgcompat.registry import (
    find_available,
    find_installed,
    list_available,
    list_installed,
    merge_snapshots,
    unsatisfied_requirements,
)
from pkgcompat.sources import load_snapshot
from pkgcompat.upgrades import apply_upgrades, compute_upgrades
from pkgcompat.utils import format_size

logger = logging.getLogger(__name__)

cli = typer.Typer(help="Inspect package registries and upgrade installed packages.", no_args_is_help=True)
console = Console()

INSTALLED_OPTION = typer.Option(None, "--installed", help="Installed snapshot file (default: scan --root)")
ROOT_OPTION = typer.Option(None, "--root", help="Install root (default: $PKGCOMPAT_PACKAGE_DIR)")
AVAILABLE_OPTION = typer.Option(
    [], "--available", "-a", help="Available snapshot file or archive URL; may be repeated"
)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except InstallerFailure as e:
        raise _fail(f"{e}: {e.__cause__}") from e
    except PkgCompatError as e:
        raise _fail(str(e)) from e


def _load_installed(installed: Path | None, root: Path | None) -> dict:
    if installed is not None:
        return load_snapshot(installed)
    return PackageDirectory(root).snapshot()


def _load_available(sources: Sequence[str]) -> dict:
    if not sources:
        raise _fail("At least one --available snapshot or archive URL is required.")

    snapshots = []
    for source in sources:
        if source.startswith(("http://", "https://")):
            _, snapshot = asyncio.run(fetch_archive_contents(source))
            if snapshot is None:
                raise _fail(f"Could not fetch the registry index of {source}")
        else:
            snapshot = load_snapshot(Path(source))
        snapshots.append(snapshot)
    return merge_snapshots(*snapshots)


def _package_table(title: str, packages: Sequence[Package]) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Version", style="green", no_wrap=True)
    table.add_column("Summary")
    for package in packages:
        table.add_row(package.name, package.version_str, escape(package.summary or ""))
    return table


def _upgrade_table(title: str, upgrades: Sequence[UpgradeCandidate]) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Installed", no_wrap=True)
    table.add_column("Available", style="green", no_wrap=True)
    for upgrade in upgrades:
        table.add_row(upgrade.name, upgrade.installed.version_str, upgrade.available.version_str)
    return table


@cli.command()
def installed(
    installed: Path | None = INSTALLED_OPTION,
    root: Path | None = ROOT_OPTION,
):
    """List installed packages."""
    with _reporting_errors():
        packages = list_installed(_load_installed(installed, root))
    console.print(_package_table(f"Installed packages ({len(packages)})", packages))


@cli.command()
def available(available: list[str] = AVAILABLE_OPTION):
    """List packages offered by one or more archives."""
    with _reporting_errors():
        packages = list_available(_load_available(available))
    console.print(_package_table(f"Available packages ({len(packages)})", packages))


@cli.command()
def show(
    name: str = typer.Argument(..., help="Package name"),
    installed: Path | None = INSTALLED_OPTION,
    root: Path | None = ROOT_OPTION,
    available: list[str] = AVAILABLE_OPTION,
):
    """Show installed and available versions of a package."""
    with _reporting_errors():
        installed_snapshot = _load_installed(installed, root)
        current = find_installed(name, installed_snapshot)
        offered = find_available(name, _load_available(available)) if available else []

        if current is None and not offered:
            raise _fail(f"Package {name!r} is neither installed nor available.")

        if current is not None:
            console.print(f"[bold]{escape(current.name)}[/bold] {current.version_str} (installed)")
            if current.summary:
                console.print(f"  {escape(current.summary)}")
            console.print(f"  Directory: {escape(str(current.install_directory or '-'))}")
            if current.install_directory is not None:
                size = PackageDirectory(root).disk_usage(current)
                console.print(f"  Size: {format_size(size)}")
            for req in current.requirements:
                console.print(f"  Requires: {escape(str(req))}")
            for req in unsatisfied_requirements(current, installed_snapshot):
                console.print(f"  [yellow]Unsatisfied:[/yellow] {escape(str(req))}")

        if offered:
            console.print(_package_table(f"Available versions of {name}", offered))


@cli.command()
def outdated(
    installed: Path | None = INSTALLED_OPTION,
    root: Path | None = ROOT_OPTION,
    available: list[str] = AVAILABLE_OPTION,
):
    """List installed packages with a newer version available."""
    with _reporting_errors():
        upgrades = compute_upgrades(_load_installed(installed, root), _load_available(available))
    if not upgrades:
        console.print("All packages are up to date.")
        return
    console.print(_upgrade_table(f"Upgradable packages ({len(upgrades)})", upgrades))


@cli.command()
def upgrade(
    names: list[str] | None = typer.Argument(None, help="Packages to upgrade (default: all)"),
    installed: Path | None = INSTALLED_OPTION,
    root: Path | None = ROOT_OPTION,
    available: list[str] = AVAILABLE_OPTION,
    archive_dir: Path | None = typer.Option(
        None, "--archive-dir", help="Unpacked package sources (default: $PKGCOMPAT_ARCHIVE_DIR)"
    ),
    preserve_obsolete: bool = typer.Option(False, help="Keep the old versions installed"),
    dry_run: bool = typer.Option(False, help="Only show what would be upgraded"),
):
    """Upgrade installed packages to the newest available versions."""
    with _reporting_errors():
        upgrades = compute_upgrades(
            _load_installed(installed, root),
            _load_available(available),
            candidates=names or None,
        )
        if not upgrades:
            console.print("All packages are up to date.")
            return

        console.print(_upgrade_table(f"Upgrades ({len(upgrades)})", upgrades))
        if dry_run:
            return

        installer = DirectoryInstaller(PackageDirectory(root), archive_dir)
        apply_upgrades(upgrades, installer, preserve_obsolete=preserve_obsolete)
    console.print(f"[green]Upgraded {len(upgrades)} package(s).[/green]")


def main() -> None:
    """Main entry point for the pkgcompat CLI."""
    cli()


if __name__ == "__main__":
    main()
