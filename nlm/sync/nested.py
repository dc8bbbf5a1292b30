"""Nested duplicates — find every copy of a package deep in node_modules.

Package managers may install a second physical copy of a package inside
another dependency's own ``node_modules``. After the top-level slot is
linked, each nested copy is replaced by a link to the same canonical copy so
nothing resolves a stale version.

The walk never follows links: a linked directory already points at a
managed location, and skipping links guarantees termination.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import Protocol

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"

# Tooling caches, binary shims, and type-only folders hold no real packages
IGNORED_DIRS = {".bin", ".cache", ".vite", "@types"}


class FileSystem(Protocol):
    """The directory operations the nested walk needs."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def is_symlink(self, path: str) -> bool: ...

    def list_dir(self, path: str) -> list[str]: ...

    def read_link(self, path: str) -> str: ...

    def remove(self, path: str) -> None: ...

    def symlink(self, target: str, path: str) -> None: ...


class LocalFileSystem:
    """``FileSystem`` backed by the real disk."""

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def list_dir(self, path: str) -> list[str]:
        return sorted(os.listdir(path))

    def read_link(self, path: str) -> str:
        return os.readlink(path)

    def remove(self, path: str) -> None:
        if os.path.islink(path) or os.path.isfile(path):
            os.unlink(path)
        else:
            shutil.rmtree(path)

    def symlink(self, target: str, path: str) -> None:
        os.symlink(target, path, target_is_directory=True)


def _is_real_dir(fs: FileSystem, path: str) -> bool:
    return fs.is_dir(path) and not fs.is_symlink(path)


def find_duplicates(
    root_install_dir: str,
    package_name: str,
    fs: FileSystem | None = None,
) -> list[str]:
    """Every installed location of ``package_name`` under ``root_install_dir``.

    The top-level location, when present, comes first.
    """
    fs = fs or LocalFileSystem()
    results: list[str] = []
    _walk(str(root_install_dir), package_name, fs, results)
    return results


def _walk(install_dir: str, package_name: str, fs: FileSystem, results: list[str]) -> None:
    if not fs.is_dir(install_dir):
        return

    candidate = os.path.join(install_dir, *package_name.split("/"))
    if fs.exists(candidate):
        results.append(candidate)

    for item in fs.list_dir(install_dir):
        item_path = os.path.join(install_dir, item)
        if item in IGNORED_DIRS or item == package_name or not _is_real_dir(fs, item_path):
            continue

        if item.startswith("@"):
            # Scoped packages live one level deeper
            for scoped in fs.list_dir(item_path):
                scoped_path = os.path.join(item_path, scoped)
                if f"{item}/{scoped}" == package_name or not _is_real_dir(fs, scoped_path):
                    continue
                _walk(os.path.join(scoped_path, NODE_MODULES), package_name, fs, results)
        else:
            _walk(os.path.join(item_path, NODE_MODULES), package_name, fs, results)


def nested_duplicates(
    root_install_dir: str,
    package_name: str,
    fs: FileSystem | None = None,
) -> list[str]:
    """Duplicates below the top level; the top-level slot is the one being linked."""
    top_level = os.path.join(str(root_install_dir), *package_name.split("/"))
    return [p for p in find_duplicates(root_install_dir, package_name, fs) if p != top_level]


def replace_duplicates(
    root_install_dir: str,
    package_name: str,
    canonical_dir: str,
    fs: FileSystem | None = None,
    failed: list[str] | None = None,
) -> int:
    """Relink every nested copy of ``package_name`` to ``canonical_dir``.

    Copies already linked to ``canonical_dir`` are left alone. A copy that
    cannot be replaced is logged, appended to ``failed`` when given, and
    skipped. Returns the number replaced.
    """
    fs = fs or LocalFileSystem()
    canonical = os.path.abspath(str(canonical_dir))
    duplicates = nested_duplicates(root_install_dir, package_name, fs)
    if not duplicates:
        logger.debug("No nested copies of %s", package_name)
        return 0

    logger.debug("Found %d nested copies of %s", len(duplicates), package_name)
    replaced = 0
    for path in duplicates:
        relative_target = os.path.relpath(canonical, os.path.dirname(path))
        try:
            if fs.is_symlink(path) and fs.read_link(path) == relative_target:
                continue
            fs.remove(path)
            fs.symlink(relative_target, path)
        except OSError as e:
            logger.warning("Could not relink %s: %s", path, e)
            if failed is not None:
                failed.append(path)
            continue
        logger.debug("Relinked %s -> %s", path, relative_target)
        replaced += 1

    if replaced:
        logger.info("Relinked %d nested copies of %s", replaced, package_name)
    return replaced


def count_duplicates(
    root_install_dir: str,
    package_name: str,
    canonical_dir: str,
    fs: FileSystem | None = None,
) -> int:
    """Nested copies that do not yet link to ``canonical_dir``."""
    fs = fs or LocalFileSystem()
    canonical = os.path.abspath(str(canonical_dir))
    stale = 0
    for path in nested_duplicates(root_install_dir, package_name, fs):
        relative_target = os.path.relpath(canonical, os.path.dirname(path))
        if not (fs.is_symlink(path) and fs.read_link(path) == relative_target):
            stale += 1
    return stale
