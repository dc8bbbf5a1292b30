"""nlm CLI — link local packages into projects through a shared store."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from nlm import __version__

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("nlm")


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    handler = RichHandler(console=err_console, show_path=debug, rich_tracebacks=debug)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


@click.group()
@click.version_option(version=__version__)
@click.option("--store-dir", default=None, envvar="NLM_STORE_DIR", help="Store root (default: ~/.nlm)")
@click.option("--verbose", "-v", is_flag=True, help="Log each step")
@click.option("--debug", is_flag=True, help="Log signatures, paths, and tracebacks")
@click.pass_context
def main(ctx: click.Context, store_dir: str | None, verbose: bool, debug: bool):
    """nlm — link local packages into projects without publishing them.

    Push a package into the store, install it into any number of projects,
    and every later push refreshes those projects automatically.
    """
    _setup_logging(verbose, debug)
    ctx.obj = {"store_dir": store_dir, "debug": debug}


def _context(ctx: click.Context, force: bool = False):
    from nlm.context import build_context

    try:
        return build_context(Path.cwd(), ctx.obj["store_dir"], force=force)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/] {escape(str(e))}")
        sys.exit(1)


def _run(ctx: click.Context, func, *args, **kwargs):
    """Call a command function; anything it raises ends the process with status 1."""
    try:
        return func(*args, **kwargs)
    except Exception as e:
        if ctx.obj["debug"]:
            logger.exception("Unexpected error")
        console.print(f"[red]Unexpected error:[/] {escape(str(e))}")
        sys.exit(1)


def _render(report) -> None:
    from nlm.models import OutcomeStatus

    if report.failure:
        console.print(f"  [red]x[/] {escape(str(report.failure))}")

    marks = {
        OutcomeStatus.UPDATED: "[green]v[/]",
        OutcomeStatus.UNCHANGED: "[dim]=[/]",
        OutcomeStatus.SKIPPED: "[yellow]-[/]",
        OutcomeStatus.FAILED: "[red]x[/]",
    }
    for outcome in report.outcomes:
        line = f"  {marks[outcome.status]} {outcome.target}"
        if outcome.version:
            line += f" [cyan]{outcome.version}[/]"
        if outcome.nested_replaced:
            line += f" ({outcome.nested_replaced} nested relinked)"
        if outcome.nested_failed:
            line += f" [yellow]({outcome.nested_failed} nested could not be relinked)[/]"
        if outcome.note:
            line += f" [dim]{outcome.note}[/]"
        console.print(line)
        for conflict in outcome.conflicts:
            console.print(
                f"      [yellow]![/] {conflict.name}@{conflict.required_version} isolated "
                f"(project has {conflict.installed_version})"
            )
        if outcome.failure:
            console.print(f"      [red]{escape(str(outcome.failure))}[/]")

    for note in report.notes:
        console.print(f"  [yellow]![/] {escape(note)}")

    if report.outcomes:
        console.print(f"\n  {report.summary()} [dim]({report.duration_ms}ms)[/]")


def _finish(report) -> None:
    _render(report)
    if not report.ok:
        sys.exit(1)


# ── Push ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--force", "-f", is_flag=True, help="Copy even when signatures match")
@click.option("--version", "version", default=None, help="Store version: exact, range, or 'latest'")
@click.option("--script", "-s", default=None, help="package.json script to run first (e.g. build)")
@click.pass_context
def push(ctx: click.Context, force: bool, version: str | None, script: str | None):
    """Publish the package in the current directory to the store.

    Every project that installed it is updated afterwards.
    """
    from nlm.commands.push import push as run_push

    nlm_ctx = _context(ctx, force=force)
    report = _run(ctx, run_push, nlm_ctx, version=version, script=script)
    if report.ok and report.package:
        verb = "Pushed" if report.changed else "Unchanged"
        console.print(
            f"\n[bold blue]nlm[/] — {verb} [cyan]{report.package}@{report.version}[/] "
            f"[dim]{report.signature[:8]}[/]\n"
        )
    _finish(report)


# ── Install / Update / Uninstall ─────────────────────────────────────


@main.command()
@click.argument("package", required=False)
@click.option("--force", "-f", is_flag=True, help="Copy even when signatures match")
@click.pass_context
def install(ctx: click.Context, package: str | None, force: bool):
    """Link PACKAGE (name[@version|range|latest]) from the store.

    Without PACKAGE every linked package is updated.
    """
    from nlm.commands.install import install as run_install

    nlm_ctx = _context(ctx, force=force)
    report = _run(ctx, run_install, nlm_ctx, package)
    _finish(report)


@main.command()
@click.argument("package", required=False)
@click.option("--force", "-f", is_flag=True, help="Copy even when signatures match")
@click.pass_context
def update(ctx: click.Context, package: str | None, force: bool):
    """Refresh PACKAGE, or every linked package, from the store."""
    from nlm.commands.update import update as run_update

    nlm_ctx = _context(ctx, force=force)
    report = _run(ctx, run_update, nlm_ctx, package)
    _finish(report)


@main.command()
@click.argument("package")
@click.pass_context
def uninstall(ctx: click.Context, package: str):
    """Remove a linked PACKAGE from the current project."""
    from nlm.commands.uninstall import uninstall as run_uninstall

    nlm_ctx = _context(ctx)
    report = _run(ctx, run_uninstall, nlm_ctx, package)
    _finish(report)


# ── List / Status ────────────────────────────────────────────────────


@main.command(name="list")
@click.option("--store", "-s", "show_store", is_flag=True, help="List the store instead")
@click.pass_context
def list_packages(ctx: click.Context, show_store: bool):
    """List the packages linked into this project, or everything in the store."""
    from nlm.commands.status import list_project, list_store

    nlm_ctx = _context(ctx)

    if show_store:
        packages = _run(ctx, list_store, nlm_ctx)
        if not packages:
            console.print("[yellow]Store is empty.[/]")
            return
        table = Table(title=f"Store {nlm_ctx.store_dir} ({len(packages)} packages)")
        table.add_column("Name", style="cyan")
        table.add_column("Versions")
        table.add_column("Used by", justify="right")
        table.add_column("Origin", style="dim")
        for pkg in packages:
            table.add_row(pkg.name, ", ".join(pkg.versions), str(len(pkg.used_by)), pkg.origin)
        console.print(table)
        return

    entries = _run(ctx, list_project, nlm_ctx)
    if not entries:
        console.print("[yellow]No linked packages in this project.[/]")
        return
    table = Table(title=f"Linked packages ({len(entries)})")
    table.add_column("Name", style="cyan")
    table.add_column("Requested")
    table.add_column("Signature", style="dim")
    for name, entry in entries.items():
        table.add_row(name, entry.version_spec, entry.signature[:8])
    console.print(table)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Check every linked package for missing, broken, or outdated links."""
    from nlm.commands.status import PackageState, status as run_status

    nlm_ctx = _context(ctx)
    report = _run(ctx, run_status, nlm_ctx)
    if report.failure:
        console.print(f"  [red]x[/] {escape(str(report.failure))}")
        sys.exit(1)
    if not report.packages:
        console.print("[yellow]No linked packages in this project.[/]")
        return

    styles = {
        PackageState.OK: "[green]OK[/]",
        PackageState.OUTDATED: "[yellow]OUTDATED[/]",
        PackageState.BROKEN: "[red]BROKEN[/]",
        PackageState.MISSING: "[red]MISSING[/]",
    }
    for pkg in report.packages:
        console.print(f"  {styles[pkg.state]} {escape(pkg.summary())}")
        if pkg.has_update:
            console.print(f"    - store resolves {pkg.locked_version} to {pkg.resolved_version}")
        elif pkg.signature_changed:
            console.print("    - store content changed since the last sync")
        if pkg.nested_duplicates:
            console.print(f"    - {pkg.nested_duplicates} nested copies not linked")

    console.print(
        f"\n  {report.count(PackageState.OK)} ok, {report.count(PackageState.OUTDATED)} outdated, "
        f"{report.count(PackageState.BROKEN)} broken, {report.count(PackageState.MISSING)} missing"
    )


# ── Config ───────────────────────────────────────────────────────────


@main.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--global", "global_scope", is_flag=True, help="Use the store-wide config file")
@click.pass_context
def config(ctx: click.Context, key: str | None, value: str | None, global_scope: bool):
    """Show the configuration, one KEY, or set KEY to VALUE."""
    import yaml

    from nlm.core.config import (
        default_store_dir,
        global_config_path,
        project_config_path,
        set_config_value,
    )

    if value is not None:
        # Setting a key must work even while the merged config is invalid
        store_dir = ctx.obj["store_dir"]
        store = Path(store_dir).expanduser() if store_dir else default_store_dir()
        path = global_config_path(store) if global_scope else project_config_path(Path.cwd())
        try:
            issues = set_config_value(path, key, yaml.safe_load(value))
        except ValueError as e:
            console.print(f"[red]Invalid configuration:[/] {escape(str(e))}")
            sys.exit(1)
        if issues:
            for issue in issues:
                console.print(f"  [red]x[/] {escape(issue)}")
            sys.exit(1)
        console.print(f"  [green]v[/] {key} = {value} [dim]({path})[/]")
        return

    settings = _context(ctx).config.as_dict()
    if key:
        if key not in settings:
            console.print(f"[yellow]{key} is not set.[/]")
            sys.exit(1)
        console.print(escape(str(settings[key])))
        return

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for name, setting in sorted(settings.items()):
        table.add_row(name, str(setting))
    console.print(table)


main.add_command(push, name="p")
main.add_command(install, name="i")
main.add_command(update, name="up")
main.add_command(uninstall, name="un")
main.add_command(list_packages, name="ls")


if __name__ == "__main__":
    main()
