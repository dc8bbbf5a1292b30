"""push — publish the current package to the store and refresh its consumers."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from nlm.commands.update import update_package
from nlm.context import NlmContext
from nlm.core.lockfile import Lockfile
from nlm.core.resolver import is_latest, is_valid_token, resolve
from nlm.core.semver import is_valid_version, normalize_version
from nlm.models import (
    CommandReport,
    Failure,
    FailureKind,
    NlmError,
    OutcomeStatus,
    PackageOutcome,
    not_found,
    validation_failure,
)
from nlm.sync.engine import sync_to_store
from nlm.utils.file_scanner import pack_files
from nlm.utils.git_ops import ensure_gitignored
from nlm.utils.manifest import is_valid_package_name, read_manifest

logger = logging.getLogger(__name__)


def _effective_version(ctx: NlmContext, name: str, declared: str, token: str | None):
    """The store version a push writes to, or a Failure."""
    if token is None:
        return normalize_version(declared)
    if is_valid_version(token):
        return normalize_version(token)
    available = ctx.store.list_versions(name)
    version = resolve(token, available)
    if version is None:
        if is_latest(token):
            return not_found(f"No stored version of {name} to push over as latest")
        return not_found(
            f"No stored version of {name} matches {token}"
            + (f" (available: {', '.join(available)})" if available else "")
        )
    return version


def push(
    ctx: NlmContext,
    version: str | None = None,
    script: str | None = None,
) -> CommandReport:
    """Copy the package in ``ctx.working_dir`` into the store.

    ``version`` overrides the manifest version: an exact version is used
    without its ``v`` prefix, ``latest`` or a range pick an existing stored
    version. Every project using the package is updated afterwards; a failing
    consumer is reported but never fails the push.
    """
    start = time.monotonic()
    report = CommandReport(command="push", tolerate_target_failures=True)

    manifest = read_manifest(ctx.working_dir)
    if manifest is None:
        report.failure = validation_failure(
            f"No valid package.json (with name and version) in {ctx.working_dir}"
        )
        return report
    if not is_valid_package_name(manifest.name):
        report.failure = validation_failure(
            f"Invalid package name in package.json: {manifest.name}"
        )
        return report
    report.package = manifest.name

    if version is not None and not is_valid_token(version):
        report.failure = validation_failure(f"Invalid version: {version}")
        return report
    if version is None and not is_valid_version(manifest.version):
        report.failure = validation_failure(
            f"Invalid version in package.json: {manifest.version} (expected major.minor.patch)"
        )
        return report

    if script:
        if script not in manifest.scripts:
            report.failure = validation_failure(f"Script '{script}' is not defined in package.json")
            return report
        try:
            ctx.package_manager.run_script(script, ctx.working_dir)
        except NlmError as e:
            report.failure = Failure(FailureKind.ERROR, str(e))
            return report

    ensure_gitignored(ctx.working_dir)

    target = _effective_version(ctx, manifest.name, manifest.version, version)
    if isinstance(target, Failure):
        report.failure = target
        return report
    report.version = target

    files = pack_files(ctx.working_dir, manifest)
    if not files:
        report.failure = validation_failure(f"{manifest.name} has no files to publish")
        return report
    logger.debug("Publishing %d files for %s@%s", len(files), manifest.name, target)

    sync = sync_to_store(ctx.store, manifest.name, target, files, ctx.working_dir, force=ctx.force)
    report.signature = sync.signature
    report.changed = sync.changed
    ctx.registry.set_origin(manifest.name, ctx.working_dir)

    for project in ctx.registry.get_usages(manifest.name):
        report.outcomes.append(_update_consumer(ctx, manifest.name, project))

    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report


def _update_consumer(ctx: NlmContext, name: str, project: str) -> PackageOutcome:
    if not Path(project).is_dir():
        logger.warning("Skipping %s: project no longer exists", project)
        return PackageOutcome(target=project, status=OutcomeStatus.SKIPPED, note="project missing")
    if not Lockfile(project).has(name):
        logger.warning("Skipping %s: %s is not in its lockfile", project, name)
        return PackageOutcome(target=project, status=OutcomeStatus.SKIPPED, note="not locked")

    try:
        outcome = update_package(ctx.for_project(project), name)
    except Exception as e:
        logger.exception("Updating %s in %s failed", name, project)
        return PackageOutcome.failed(project, Failure(FailureKind.ERROR, str(e)))

    if outcome.failure:
        logger.error("Updating %s in %s failed: %s", name, project, outcome.failure)
    outcome.target = project
    return outcome
