"""Sync engine — incremental copies between the store and projects.

A project's linked copy of a package lives in ``.nlm/<name>`` and the
package's ``node_modules/<name>`` slot is a relative symlink to it. A copy is
skipped whenever the signature already in place matches the source.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

from nlm.core.lockfile import PROJECT_DIR
from nlm.core.signature import (
    read_signature_file,
    signature_of_file_set,
    signatures_match,
)
from nlm.core.store import VersionStore
from nlm.models import SyncResult, not_found
from nlm.utils.manifest import NODE_MODULES

logger = logging.getLogger(__name__)


def project_package_dir(project_dir: str | Path, name: str) -> Path:
    """Where the project's linked copy of ``name`` lives."""
    return Path(project_dir).joinpath(PROJECT_DIR, *name.split("/"))


def install_slot(project_dir: str | Path, name: str) -> Path:
    """Where the package manager expects ``name`` to be installed."""
    return Path(project_dir).joinpath(NODE_MODULES, *name.split("/"))


def remove_path(path: Path) -> None:
    """Delete a link, file, or directory tree; missing paths are ignored."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def link_is_healthy(project_dir: str | Path, name: str) -> bool:
    slot = install_slot(project_dir, name)
    target = project_package_dir(project_dir, name)
    if not slot.is_symlink() or not target.is_dir():
        return False
    return slot.resolve() == target.resolve()


def link_install_slot(project_dir: str | Path, name: str) -> Path:
    """Point ``node_modules/<name>`` at the linked copy with a relative symlink."""
    slot = install_slot(project_dir, name)
    target = project_package_dir(project_dir, name)
    relative_target = os.path.relpath(target, slot.parent)

    if slot.is_symlink() and os.readlink(slot) == relative_target:
        return slot

    remove_path(slot)
    slot.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(relative_target, slot, target_is_directory=True)
    logger.debug("Linked %s -> %s", slot, relative_target)
    return slot


def sync_to_store(
    store: VersionStore,
    name: str,
    version: str,
    files: Iterable[str],
    base_dir: str | Path,
    force: bool = False,
) -> SyncResult:
    """Copy a package's publishable files into the store entry for ``version``."""
    files = list(files)
    signature = signature_of_file_set(files, base_dir)

    if not force and store.entry_exists(name, version):
        existing = store.read_signature(name, version)
        logger.debug(
            "%s@%s signature: stored=%s current=%s", name, version, existing, signature
        )
        if signatures_match(existing, signature):
            logger.info("%s@%s unchanged in store", name, version)
            return SyncResult(signature=signature, changed=False)

    store.write_entry(name, version, files, base_dir, signature=signature)
    return SyncResult(signature=signature, changed=True)


def sync_to_project(
    store: VersionStore,
    name: str,
    version: str,
    project_dir: str | Path,
    force: bool = False,
) -> SyncResult:
    """Copy the store entry for (name, version) into the project and link it."""
    if not store.entry_exists(name, version):
        return SyncResult(failure=not_found(f"{name}@{version} not found in store"))

    source = store.store_dir_for(name, version)
    store_signature = read_signature_file(source)
    dest = project_package_dir(project_dir, name)

    if not force and dest.is_dir() and signatures_match(read_signature_file(dest), store_signature):
        logger.info("%s@%s already up to date in %s", name, version, project_dir)
        changed = False
    else:
        remove_path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, dest, symlinks=True)
        logger.info("Copied %s@%s into %s", name, version, dest)
        changed = True

    link_install_slot(project_dir, name)
    return SyncResult(signature=store_signature, changed=changed)
