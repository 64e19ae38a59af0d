"""CLI interface for Heretic."""

from __future__ import annotations

import json
import logging
import sys

import click

from heretic import __version__
from heretic.core.engine import PurgeEngine, logging_sink, normalize_targets
from heretic.core.errors import ConfigurationError, ScanError
from heretic.core.job import PurgeJob
from heretic.core.projects import AddOutcome, ProjectList, ProjectStore
from heretic.core.scanner import discover_projects
from heretic.core.tracker import Tracker
from heretic.models.event import EventKind, PurgeEvent
from heretic.models.result import PurgeResult
from heretic.settings import Settings
from heretic.utils import format_bytes, format_elapsed, format_relative_time

_RULE = "═" * 44


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _load_projects() -> ProjectList:
    return ProjectList(ProjectStore())


def _resolve_targets(settings: Settings, names: tuple[str, ...], bin_: bool | None, obj: bool | None) -> list[str]:
    """Combine saved targets with the --target/--bin/--obj options."""
    targets = list(names) if names else list(settings.get("purge.targets"))
    for name, enabled in (("bin", bin_), ("obj", obj)):
        if enabled is True and name not in targets:
            targets.append(name)
        elif enabled is False and name in targets:
            targets.remove(name)
    return targets


def _resolve_roots(roots: tuple[str, ...]) -> list[str]:
    return list(roots) if roots else _load_projects().paths


def _describe_targets(targets: tuple[str, ...]) -> str:
    quoted = [f"'{t}'" for t in targets]
    if len(quoted) == 1:
        return quoted[0]
    return ", ".join(quoted[:-1]) + f" and {quoted[-1]}"


def target_options(func):
    """Shared --bin/--obj/--target options for purge and preview."""
    func = click.option("--target", "-t", "names", multiple=True, help="Folder name to purge (repeatable)")(func)
    func = click.option("--obj/--no-obj", "obj", default=None, help="Include or exclude 'obj' folders")(func)
    func = click.option("--bin/--no-bin", "bin_", default=None, help="Include or exclude 'bin' folders")(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="heretic")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Heretic — purge bin/obj build folders from your projects."""
    _setup_logging(verbose)


# ── purge ────────────────────────────────────────────────────────────────

def _print_event(event: PurgeEvent) -> None:
    match event.kind:
        case EventKind.INFO if not event.target:
            click.echo(click.style(f"\n═══ {event.message} ═══", fg="cyan", bold=True))
        case EventKind.FOUND:
            click.echo(click.style(f"  {event.message}", fg="bright_black"))
        case EventKind.INFO:
            click.echo(f"  {event.message}")
        case EventKind.DELETED:
            click.echo(f"    {click.style('✓', fg='green')} {event.message}")
        case EventKind.ERROR:
            click.echo(click.style(f"    ✗ {event.message}", fg="red"))
        case EventKind.SKIPPED:
            click.echo(click.style(f"\n  {event.message}", fg="yellow"))
        case EventKind.SUMMARY:
            pass


def _print_summary(result: PurgeResult) -> None:
    color = "green" if result.completed else "yellow"
    title = "✓ PURGE COMPLETE!" if result.completed else "✗ PURGE CANCELLED"
    click.echo(click.style(f"\n{_RULE}", fg=color))
    click.echo(click.style(title, fg=color, bold=True))
    click.echo(f"  • Folders deleted: {result.folders_deleted}")
    errors = f"  • Errors encountered: {result.errors}"
    click.echo(click.style(errors, fg="yellow") if result.errors else errors)
    if result.bytes_freed > 0:
        freed = click.style(format_bytes(result.bytes_freed), fg="green", bold=True)
        click.echo(f"  • Approximate space freed: {freed}")
    click.echo(f"  • Elapsed: {format_elapsed(result.elapsed)}")
    click.echo(click.style(_RULE, fg=color))


def _wait_for(job: PurgeJob) -> PurgeResult | None:
    """Wait for a background purge.

    The first Ctrl-C requests cancellation; a second one quits without
    waiting for the current folder to finish.
    """
    while not job.done:
        try:
            job.wait(0.25)
        except KeyboardInterrupt:
            if job.cancelled:
                raise
            click.echo(
                click.style("\nCancelling after the current folder... (Ctrl-C again to quit)", fg="yellow"),
                err=True,
            )
            job.cancel()
    return job.wait()


@main.command()
@click.argument("roots", nargs=-1, type=click.Path(file_okay=False))
@target_options
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def purge(
    roots: tuple[str, ...],
    bin_: bool | None,
    obj: bool | None,
    names: tuple[str, ...],
    yes: bool,
    as_json: bool,
) -> None:
    """Delete build folders below ROOTS (default: the saved project paths)."""
    settings = Settings()
    root_list = _resolve_roots(roots)

    try:
        targets = normalize_targets(_resolve_targets(settings, names, bin_, obj))
        if not root_list:
            raise ConfigurationError("No project paths to purge. Add one with 'heretic paths add' first.")
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not yes and not as_json and settings.get("purge.confirm"):
        click.echo(
            f"\nThis will DELETE all {_describe_targets(targets)} folders in {len(root_list)} project path(s).\n"
            "This action cannot be undone!\n"
        )
        if not click.confirm("Are you sure you want to continue?", default=False):
            click.echo("Aborted.")
            return

    events: list[PurgeEvent] = []
    if as_json:
        event_log = logging_sink(logging.getLogger("heretic.events"))

        def on_event(event: PurgeEvent) -> None:
            events.append(event)
            event_log(event)

    else:
        on_event = _print_event

    job = PurgeJob.start(PurgeEngine(), root_list, targets, on_event=on_event)
    result = _wait_for(job)
    if result is None:
        return

    Tracker().record(result)

    if as_json:
        data = {"result": result.to_dict(), "events": [e.to_dict() for e in events]}
        click.echo(json.dumps(data, indent=2))
        return

    _print_summary(result)
    click.echo(f"\n{job.completion_message()}\n")


# ── preview ──────────────────────────────────────────────────────────────

@main.command()
@click.argument("roots", nargs=-1, type=click.Path(file_okay=False))
@target_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def preview(
    roots: tuple[str, ...],
    bin_: bool | None,
    obj: bool | None,
    names: tuple[str, ...],
    as_json: bool,
) -> None:
    """Show what a purge would delete (never deletes)."""
    settings = Settings()
    root_list = _resolve_roots(roots)
    try:
        result = PurgeEngine().preview(root_list, _resolve_targets(settings, names, bin_, obj))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(f"\n{click.style('🔍', bold=True)} Purge preview\n")
    for name in result.targets:
        click.echo(f"  '{name}' folders found: {result.counts.get(name, 0)}")
    click.echo(f"\n  Total folders:    {result.total_folders}")
    click.echo(f"  Approximate size: {click.style(format_bytes(result.total_bytes), fg='green', bold=True)}")
    if result.scan_errors:
        click.echo(click.style(f"  Scan errors:      {result.scan_errors}", fg="yellow"))
    click.echo()


# ── paths ────────────────────────────────────────────────────────────────

@main.group()
def paths() -> None:
    """Manage the saved project paths."""


@paths.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def paths_list(as_json: bool) -> None:
    """List saved project paths with their status."""
    projects = _load_projects()
    rows = projects.validate()

    if as_json:
        click.echo(json.dumps([{"path": p, "valid": ok} for p, ok in rows], indent=2))
        return

    if not rows:
        click.echo("No project paths saved.")
        return

    click.echo(f"\nProject Paths ({len(rows)}):\n")
    for path, ok in rows:
        status = click.style("✓ Valid  ", fg="green") if ok else click.style("✗ Invalid", fg="red")
        click.echo(f"  {status}  {path}")
    click.echo()


@paths.command("add")
@click.argument("new_paths", nargs=-1, required=True)
def paths_add(new_paths: tuple[str, ...]) -> None:
    """Add one or more project paths."""
    projects = _load_projects()
    failed = False
    for path in new_paths:
        match projects.add(path):
            case AddOutcome.ADDED:
                click.echo(f"  {click.style('+', fg='green')} Added: {path.strip()}")
            case AddOutcome.DUPLICATE:
                click.echo(f"  {click.style('·', fg='bright_black')} Already in the list: {path.strip()}")
            case AddOutcome.INVALID:
                click.echo(f"  {click.style('✗', fg='red')} The specified path does not exist: {path}", err=True)
                failed = True
            case AddOutcome.EMPTY:
                click.echo(f"  {click.style('✗', fg='red')} Please enter a folder path.", err=True)
                failed = True
    if failed:
        sys.exit(1)


@paths.command("remove")
@click.argument("old_paths", nargs=-1, required=True)
def paths_remove(old_paths: tuple[str, ...]) -> None:
    """Remove project paths from the list."""
    removed = _load_projects().remove(old_paths)
    click.echo(f"Removed {removed} path(s)")


@paths.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def paths_clear(yes: bool) -> None:
    """Remove every project path."""
    projects = _load_projects()
    if not len(projects):
        click.echo("No paths to clear.")
        return
    if not yes and not click.confirm(f"Are you sure you want to remove all {len(projects)} path(s)?"):
        click.echo("Aborted.")
        return
    click.echo(f"Cleared {projects.clear()} path(s)")


@paths.command("prune")
def paths_prune() -> None:
    """Remove paths that no longer exist."""
    projects = _load_projects()
    invalid = projects.invalid()
    if not invalid:
        click.echo("All paths are valid!")
        return
    for path in invalid:
        click.echo(f"  {click.style('-', fg='red')} {path}")
    click.echo(f"Removed {projects.remove_invalid()} invalid path(s)")


@paths.command("validate")
def paths_validate() -> None:
    """Exit with status 1 if any saved path no longer exists."""
    invalid = _load_projects().invalid()
    for path in invalid:
        click.echo(f"  {click.style('✗', fg='red')} {path}")
    if invalid:
        sys.exit(1)
    click.echo("All paths are valid!")


@paths.command("discover")
@click.argument("search_root", type=click.Path(file_okay=False))
@click.option("--pattern", "-p", default="*.csproj", show_default=True, help="Project file pattern")
def paths_discover(search_root: str, pattern: str) -> None:
    """Add every folder below SEARCH_ROOT that contains a project file."""
    click.echo(f"\n{click.style('🔍', bold=True)} Searching for projects...\n")
    try:
        found = discover_projects(search_root, pattern)
    except ScanError as e:
        click.echo(f"Error searching for projects: {e}", err=True)
        sys.exit(1)

    if not found:
        click.echo(f"No {pattern} files found in the selected directory.")
        return

    added, skipped = _load_projects().add_many(found)
    click.echo(f"  Found {len(found)} project(s)")
    click.echo(f"  Added: {added}")
    click.echo(f"  Already in list: {skipped}\n")


@paths.command("location")
def paths_location() -> None:
    """Show where the project list is stored."""
    store = ProjectStore()
    suffix = "" if store.exists() else click.style(" (not created yet)", fg="bright_black")
    click.echo(f"{store.location}{suffix}")


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Show or change default purge settings."""


@config.command("show")
def config_show() -> None:
    """Show the current settings."""
    settings = Settings()
    click.echo(f"  Targets:  {', '.join(settings.get('purge.targets'))}")
    click.echo(f"  Confirm:  {'yes' if settings.get('purge.confirm') else 'no'}")
    click.echo(click.style(f"  File:     {settings.path}", fg="bright_black"))


@config.command("targets")
@click.argument("names", nargs=-1, required=True)
def config_targets(names: tuple[str, ...]) -> None:
    """Set the folder names purged by default."""
    try:
        targets = normalize_targets(names)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    Settings().set("purge.targets", list(targets))
    click.echo(f"Default targets: {', '.join(targets)}")


@config.command("confirm")
@click.argument("enabled", type=click.BOOL)
def config_confirm(enabled: bool) -> None:
    """Turn the confirmation prompt before purging on or off."""
    Settings().set("purge.confirm", enabled)
    click.echo(f"Confirmation {'enabled' if enabled else 'disabled'}")


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show space freed statistics."""
    tracker = Tracker()
    data = tracker.get_stats(period)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{click.style('📊', bold=True)} Statistics ({period})\n")
    click.echo(f"  Bytes freed:     {click.style(format_bytes(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Folders deleted: {data['folders_deleted']:,}")
    click.echo(f"  Errors:          {data['errors']:,}")
    click.echo(f"  Purges:          {data['session_count']} ({data['aborted_count']} cancelled)")
    click.echo(f"  Lifetime total:  {click.style(format_bytes(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")

    last = tracker.get_last_purge_time()
    if last:
        click.echo(f"  Last purge:      {format_relative_time(last)}")
    click.echo()
