"""update — re-sync linked packages from the store into a project."""

from __future__ import annotations

import logging
import time

from nlm.context import NlmContext
from nlm.core.resolver import resolve
from nlm.core.signature import signatures_match
from nlm.models import (
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
from nlm.sync.engine import link_is_healthy
from nlm.sync.linker import link_package
from nlm.utils.manifest import is_valid_package_name, is_valid_project, parse_package_spec

logger = logging.getLogger(__name__)


def project_failure(ctx: NlmContext) -> Failure | None:
    if not is_valid_project(ctx.working_dir):
        return validation_failure(
            f"{ctx.working_dir} is not a project (package.json or node_modules missing)"
        )
    return None


def update_package(ctx: NlmContext, name: str) -> PackageOutcome:
    """Re-sync one locked package when the store holds something newer.

    "Newer" means a different signature for the version the lock's token
    resolves to. Forced contexts always re-sync.
    """
    entry = ctx.lockfile.get_entry(name)
    if entry is None:
        return PackageOutcome.failed(name, not_found(f"{name} is not installed in {ctx.working_dir}"))

    versions = ctx.store.list_versions(name)
    if not versions:
        return PackageOutcome.failed(name, not_found(f"{name} not found in store"))

    version = resolve(entry.version_spec, versions)
    if version is None:
        return PackageOutcome.failed(
            name,
            not_found(
                f"No stored version of {name} matches {entry.version_spec} "
                f"(available: {', '.join(versions)})"
            ),
        )

    store_signature = ctx.store.read_signature(name, version)
    if (
        not ctx.force
        and signatures_match(entry.signature, store_signature)
        and link_is_healthy(ctx.working_dir, name)
    ):
        logger.debug("%s@%s unchanged (signature %s)", name, version, store_signature)
        return PackageOutcome(
            target=name, status=OutcomeStatus.UNCHANGED, version=version, signature=store_signature
        )

    try:
        link = link_package(ctx, name, version)
    except ConflictResolutionError as e:
        return PackageOutcome.failed(name, Failure(FailureKind.CONFLICT, str(e)))
    if not link.sync.ok:
        return PackageOutcome.failed(name, link.sync.failure)

    ctx.lockfile.add_entry(name, LockfileEntry(entry.version_spec, link.sync.signature))
    return PackageOutcome(
        target=name,
        status=OutcomeStatus.UPDATED,
        version=version,
        signature=link.sync.signature,
        nested_replaced=link.nested_replaced,
        nested_failed=len(link.nested_failed),
        conflicts=link.conflicts,
    )


def update(ctx: NlmContext, package: str | None = None) -> CommandReport:
    """Update one locked package, or every locked package when none is named."""
    start = time.monotonic()
    report = CommandReport(command="update", package=package or "")

    report.failure = project_failure(ctx)
    if report.failure:
        return report

    if package:
        name, _ = parse_package_spec(package)
        if not is_valid_package_name(name):
            report.failure = validation_failure(f"Invalid package name: {package}")
            return report
        if not ctx.lockfile.has(name):
            report.failure = not_found(f"{name} is not installed; run 'nlm install {name}' first")
            return report
        names = [name]
    else:
        names = ctx.lockfile.list_names()

    if not names:
        report.notes.append("No linked packages in this project")

    for name in names:
        outcome = update_package(ctx, name)
        if outcome.failure:
            logger.error("Updating %s failed: %s", name, outcome.failure)
        report.outcomes.append(outcome)

    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report
