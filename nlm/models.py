"""Data models — manifests, store and lockfile records, and command outcomes.

Expected failures (bad input, missing packages) travel as ``Failure`` values
inside results. Exceptions are reserved for collaborators that break in ways
the caller cannot plan for.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

LATEST = "latest"


# --- Errors ---


class NlmError(Exception):
    """Base class for errors raised by nlm collaborators."""


class PackageManagerError(NlmError):
    """The external package manager exited with a failure."""


class ConflictResolutionError(NlmError):
    """An isolated install for a conflicting dependency failed."""

    def __init__(self, package_name: str, dependency_spec: str, cause: Exception):
        super().__init__(
            f"Failed to isolate {dependency_spec} for {package_name}: {cause}"
        )
        self.package_name = package_name
        self.dependency_spec = dependency_spec
        self.cause = cause


class FailureKind(Enum):
    """Why an operation did not complete for a target."""

    VALIDATION = "validation"  # Bad name, token, or not a project
    NOT_FOUND = "not_found"  # Package, version, or lock entry missing
    CONFLICT = "conflict"  # Isolated dependency install failed
    ERROR = "error"  # Anything else surfaced from a collaborator


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    def __str__(self) -> str:
        return self.message


def validation_failure(message: str) -> Failure:
    return Failure(FailureKind.VALIDATION, message)


def not_found(message: str) -> Failure:
    return Failure(FailureKind.NOT_FOUND, message)


# --- Manifest ---


def _frozen_map(value: Any) -> Mapping[str, str]:
    if not isinstance(value, dict):
        return MappingProxyType({})
    return MappingProxyType({str(k): str(v) for k, v in value.items()})


@dataclass(frozen=True)
class PackageManifest:
    """Immutable snapshot of a ``package.json`` file."""

    name: str
    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_dependencies: Mapping[str, str] = field(default_factory=dict)
    scripts: Mapping[str, str] = field(default_factory=dict)
    files: tuple[str, ...] | None = None  # None when the manifest has no "files"
    main: str = ""
    private: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> PackageManifest:
        files = data.get("files")
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            dependencies=_frozen_map(data.get("dependencies")),
            peer_dependencies=_frozen_map(data.get("peerDependencies")),
            dev_dependencies=_frozen_map(data.get("devDependencies")),
            optional_dependencies=_frozen_map(data.get("optionalDependencies")),
            scripts=_frozen_map(data.get("scripts")),
            files=tuple(str(f) for f in files) if isinstance(files, list) else None,
            main=data.get("main", "") if isinstance(data.get("main"), str) else "",
            private=bool(data.get("private", False)),
        )

    @property
    def qualified_id(self) -> str:
        return f"{self.name}@{self.version}"


# --- Store and lockfile records ---


@dataclass
class RegistryEntry:
    """Who publishes a package into the store and who consumes it."""

    name: str
    origin: str = ""  # Absolute path of the package's working directory
    used_by: list[str] = field(default_factory=list)  # Absolute consumer paths

    @property
    def is_empty(self) -> bool:
        return not self.origin and not self.used_by


@dataclass(frozen=True)
class LockfileEntry:
    """What a project asked for and what it last received."""

    version_spec: str  # Exact version, range, or "latest"
    signature: str = ""


@dataclass(frozen=True)
class DependencyConflict:
    name: str
    required_version: str  # Declared by the linked package
    installed_version: str  # Declared by the consumer project


# --- Sync results ---


@dataclass
class SyncResult:
    """Result of copying a package between the store and a project."""

    signature: str = ""
    changed: bool = False
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class LinkResult:
    """Result of the full link pipeline for one package in one project."""

    sync: SyncResult
    conflicts: list[DependencyConflict] = field(default_factory=list)
    missing_dependencies: list[str] = field(default_factory=list)
    nested_replaced: int = 0
    nested_failed: list[str] = field(default_factory=list)


# --- Command outcomes ---


class OutcomeStatus(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PackageOutcome:
    """Per-target result inside a command report.

    ``target`` is a package name for install/update and a project path for
    the consumer fan-out of push.
    """

    target: str
    status: OutcomeStatus
    version: str = ""
    signature: str = ""
    nested_replaced: int = 0
    nested_failed: int = 0
    conflicts: list[DependencyConflict] = field(default_factory=list)
    failure: Failure | None = None
    note: str = ""

    @classmethod
    def failed(cls, target: str, failure: Failure) -> PackageOutcome:
        return cls(target=target, status=OutcomeStatus.FAILED, failure=failure)


@dataclass
class CommandReport:
    """Everything a command did, for the CLI to render."""

    command: str
    package: str = ""
    version: str = ""
    signature: str = ""
    changed: bool = False
    outcomes: list[PackageOutcome] = field(default_factory=list)
    failure: Failure | None = None
    notes: list[str] = field(default_factory=list)
    tolerate_target_failures: bool = False  # Push: a failed consumer is degraded, not fatal
    duration_ms: int = 0

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def ok(self) -> bool:
        if self.failure is not None:
            return False
        if self.tolerate_target_failures:
            return True
        return self.count(OutcomeStatus.FAILED) == 0

    def summary(self) -> str:
        parts = [
            f"{self.count(OutcomeStatus.UPDATED)} updated",
            f"{self.count(OutcomeStatus.UNCHANGED)} unchanged",
        ]
        skipped = self.count(OutcomeStatus.SKIPPED)
        failed = self.count(OutcomeStatus.FAILED)
        if skipped:
            parts.append(f"{skipped} skipped")
        if failed:
            parts.append(f"{failed} failed")
        return ", ".join(parts)
