"""install — link a stored package into a project."""

from __future__ import annotations

import logging
import time

from nlm.commands.update import project_failure, update
from nlm.context import NlmContext
from nlm.core.resolver import is_valid_token, resolve
from nlm.models import (
    LATEST,
    CommandReport,
    ConflictResolutionError,
    Failure,
    FailureKind,
    LockfileEntry,
    OutcomeStatus,
    PackageOutcome,
    not_found,
    validation_failure,
)
from nlm.sync.linker import link_package
from nlm.utils.git_ops import ensure_gitignored
from nlm.utils.manifest import is_valid_package_name, parse_package_spec

logger = logging.getLogger(__name__)


def install(ctx: NlmContext, package: str | None = None) -> CommandReport:
    """Install ``package`` (``name[@version|range|latest]``) into the project.

    Without a package every locked package is updated instead.
    """
    start = time.monotonic()

    failure = project_failure(ctx)
    if failure:
        return CommandReport(command="install", package=package or "", failure=failure)

    if not package:
        report = update(ctx)
        report.command = "install"
        report.notes.insert(0, "No package given; updating every linked package")
        return report

    report = CommandReport(command="install", package=package)
    name, token = parse_package_spec(package)
    if not is_valid_package_name(name):
        report.failure = validation_failure(f"Invalid package name: {package}")
        return report
    if not is_valid_token(token):
        report.failure = validation_failure(f"Invalid version: {token}")
        return report
    report.package = name

    versions = ctx.store.list_versions(name)
    if not versions:
        report.failure = not_found(
            f"{name} not found in store; run 'nlm push' in the package directory first"
        )
        return report

    version = resolve(token, versions)
    if version is None:
        report.failure = not_found(
            f"No stored version of {name} matches {token} (available: {', '.join(versions)})"
        )
        return report
    logger.info("Requested %s@%s, installing %s", name, token or LATEST, version)

    ensure_gitignored(ctx.working_dir)

    try:
        link = link_package(ctx, name, version)
    except ConflictResolutionError as e:
        report.failure = Failure(FailureKind.CONFLICT, str(e))
        return report
    if not link.sync.ok:
        report.failure = link.sync.failure
        return report

    ctx.lockfile.add_entry(name, LockfileEntry(token or LATEST, link.sync.signature))
    ctx.registry.add_usage(name, ctx.working_dir)

    report.version = version
    report.signature = link.sync.signature
    report.changed = link.sync.changed
    report.outcomes.append(
        PackageOutcome(
            target=name,
            status=OutcomeStatus.UPDATED if link.sync.changed else OutcomeStatus.UNCHANGED,
            version=version,
            signature=link.sync.signature,
            nested_replaced=link.nested_replaced,
            nested_failed=len(link.nested_failed),
            conflicts=link.conflicts,
        )
    )
    if link.missing_dependencies:
        report.notes.append(
            f"{name} depends on {', '.join(link.missing_dependencies)}, "
            "which this project does not declare"
        )
    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report
