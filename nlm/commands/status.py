"""status and list — read-only views of a project's links and of the store.

A linked package is in one of four states:
1. missing: the store no longer has the package
2. broken: the ``node_modules`` slot is not a link to the project copy
3. outdated: the store holds a newer version or newer content for it
4. ok
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nlm.commands.update import project_failure
from nlm.context import NlmContext
from nlm.core.resolver import resolve
from nlm.core.signature import signatures_match
from nlm.models import Failure, LockfileEntry
from nlm.sync.engine import link_is_healthy, project_package_dir
from nlm.sync.nested import count_duplicates
from nlm.utils.manifest import read_manifest


class PackageState:
    MISSING = "missing"
    BROKEN = "broken"
    OUTDATED = "outdated"
    OK = "ok"


@dataclass
class PackageStatus:
    """Status of one linked package in one project."""

    name: str
    locked_version: str
    in_store: bool = False
    installed_version: str | None = None
    latest_version: str | None = None
    resolved_version: str | None = None
    link_ok: bool = False
    has_update: bool = False
    signature_changed: bool = False
    nested_duplicates: int = 0
    origin: str = ""

    @property
    def state(self) -> str:
        if not self.in_store:
            return PackageState.MISSING
        if not self.link_ok:
            return PackageState.BROKEN
        if self.has_update or self.signature_changed:
            return PackageState.OUTDATED
        return PackageState.OK

    def summary(self) -> str:
        installed = self.installed_version or "(not installed)"
        return f"{self.name}@{installed} [{self.locked_version}]: {self.state}"


@dataclass
class StatusReport:
    packages: list[PackageStatus] = field(default_factory=list)
    failure: Failure | None = None

    def count(self, state: str) -> int:
        return sum(1 for p in self.packages if p.state == state)

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class StoredPackage:
    """One package in the store, with everything the registry knows about it."""

    name: str
    versions: list[str] = field(default_factory=list)
    origin: str = ""
    used_by: list[str] = field(default_factory=list)


def package_status(ctx: NlmContext, name: str, entry: LockfileEntry) -> PackageStatus:
    status = PackageStatus(name=name, locked_version=entry.version_spec)
    versions = ctx.store.list_versions(name)
    status.in_store = bool(versions)
    status.link_ok = link_is_healthy(ctx.working_dir, name)

    canonical = project_package_dir(ctx.working_dir, name)
    installed = read_manifest(canonical)
    status.installed_version = installed.version if installed else None

    registry_entry = ctx.registry.get_entry(name)
    status.origin = registry_entry.origin if registry_entry else ""

    if versions:
        status.latest_version = versions[-1]
        status.resolved_version = resolve(entry.version_spec, versions)

    if status.installed_version and status.resolved_version:
        status.has_update = status.resolved_version != status.installed_version
        stored = ctx.store.read_signature(name, status.resolved_version)
        status.signature_changed = not signatures_match(stored, entry.signature)

    if canonical.is_dir():
        status.nested_duplicates = count_duplicates(str(ctx.node_modules), name, str(canonical))
    return status


def status(ctx: NlmContext) -> StatusReport:
    """Check every package in the project's lockfile."""
    report = StatusReport(failure=project_failure(ctx))
    if report.failure:
        return report

    for name, entry in ctx.lockfile.entries().items():
        report.packages.append(package_status(ctx, name, entry))
    return report


def list_project(ctx: NlmContext) -> dict[str, LockfileEntry]:
    """The project's lockfile entries, by package name."""
    return ctx.lockfile.entries()


def list_store(ctx: NlmContext) -> list[StoredPackage]:
    """Every package in the store, sorted by name."""
    registry = {entry.name: entry for entry in ctx.registry.all_entries()}
    packages = []
    for name in sorted(ctx.store.list_all_packages()):
        entry = registry.get(name)
        packages.append(
            StoredPackage(
                name=name,
                versions=ctx.store.list_versions(name),
                origin=entry.origin if entry else "",
                used_by=list(entry.used_by) if entry else [],
            )
        )
    return packages
