"""uninstall — remove a linked package from a project."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from nlm.commands.update import project_failure
from nlm.context import NlmContext
from nlm.core.lockfile import PROJECT_DIR
from nlm.models import CommandReport, OutcomeStatus, PackageOutcome, not_found, validation_failure
from nlm.sync.engine import install_slot, project_package_dir, remove_path
from nlm.utils.manifest import is_valid_package_name, parse_package_spec

logger = logging.getLogger(__name__)


def _prune_empty_parents(path: Path, stop: Path) -> None:
    """Remove emptied directories from ``path`` up to, not including, ``stop``."""
    current = path
    while current != stop and stop in current.parents:
        if not current.is_dir() or any(current.iterdir()):
            return
        current.rmdir()
        current = current.parent


def uninstall(ctx: NlmContext, package: str) -> CommandReport:
    start = time.monotonic()
    report = CommandReport(command="uninstall", package=package)

    report.failure = project_failure(ctx)
    if report.failure:
        return report

    name, _ = parse_package_spec(package)
    if not is_valid_package_name(name):
        report.failure = validation_failure(f"Invalid package name: {package}")
        return report
    report.package = name

    lockfile = ctx.lockfile
    if not lockfile.has(name):
        report.failure = not_found(f"{name} is not installed in {ctx.working_dir}")
        return report

    slot = install_slot(ctx.working_dir, name)
    remove_path(slot)
    _prune_empty_parents(slot.parent, ctx.node_modules)

    nlm_dir = ctx.working_dir / PROJECT_DIR
    copy = project_package_dir(ctx.working_dir, name)
    remove_path(copy)
    _prune_empty_parents(copy.parent, nlm_dir)

    lockfile.remove_entry(name)
    ctx.registry.remove_usage(name, ctx.working_dir)
    logger.info("Removed %s from %s", name, ctx.working_dir)

    if nlm_dir.is_dir() and not any(nlm_dir.iterdir()):
        nlm_dir.rmdir()

    report.changed = True
    report.outcomes.append(PackageOutcome(target=name, status=OutcomeStatus.UPDATED))
    report.notes.append(
        f"Nested copies of {name} linked by nlm now point at a removed folder; "
        "reinstall with your package manager if other dependencies use it"
    )
    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report
