"""Dependency conflicts — isolate dependencies whose major version differs.

Only the major version is compared. Minor and patch differences, pre-release
tags, and range intersections are deliberately ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

from nlm.core.semver import is_same_major
from nlm.models import ConflictResolutionError, DependencyConflict, NlmError, PackageManifest
from nlm.sync.engine import project_package_dir
from nlm.sync.package_manager import PackageManager
from nlm.utils.manifest import NODE_MODULES

logger = logging.getLogger(__name__)


def _linked_dependencies(linked: PackageManifest) -> dict[str, str]:
    # Peer entries count: consumers often satisfy them only partially
    return {**linked.dependencies, **linked.peer_dependencies}


def _consumer_dependencies(consumer: PackageManifest) -> dict[str, str]:
    return {**consumer.dependencies, **consumer.dev_dependencies}


def detect_conflicts(
    linked: PackageManifest, consumer: PackageManifest
) -> list[DependencyConflict]:
    """Dependencies both sides declare with different major versions."""
    installed = _consumer_dependencies(consumer)
    conflicts = []
    for name, required in _linked_dependencies(linked).items():
        present = installed.get(name)
        if not present:
            continue
        if not is_same_major(required, present):
            conflicts.append(
                DependencyConflict(name=name, required_version=required, installed_version=present)
            )
    return conflicts


def find_missing_dependencies(linked: PackageManifest, consumer: PackageManifest) -> list[str]:
    """Dependencies the linked package declares that the consumer lacks."""
    installed = _consumer_dependencies(consumer)
    return [name for name in _linked_dependencies(linked) if name not in installed]


def isolation_dir(project_dir: str | Path, package_name: str) -> Path:
    """Private dependency folder of a linked package inside a project."""
    return project_package_dir(project_dir, package_name) / NODE_MODULES


def resolve_conflicts(
    package_name: str,
    conflicts: list[DependencyConflict],
    consumer_dir: str | Path,
    package_manager: PackageManager,
) -> Path | None:
    """Install each conflicting version privately for ``package_name``.

    Returns the isolation folder, or None when there was nothing to do.
    Raises ``ConflictResolutionError`` on the first failed install.
    """
    if not conflicts:
        return None

    for conflict in conflicts:
        logger.warning(
            "%s needs %s@%s, project has %s",
            package_name,
            conflict.name,
            conflict.required_version,
            conflict.installed_version,
        )

    target = isolation_dir(consumer_dir, package_name)
    target.mkdir(parents=True, exist_ok=True)

    for conflict in conflicts:
        spec = f"{conflict.name}@{conflict.required_version}"
        logger.info("Installing %s for %s", spec, package_name)
        try:
            package_manager.install(spec, target)
        except NlmError as e:
            raise ConflictResolutionError(package_name, spec, e) from e
    return target
