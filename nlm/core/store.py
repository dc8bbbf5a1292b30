"""Version store — every pushed version of every package, on local disk.

Layout under the store root::

    packages/<name>/<version>/            plain package names
    packages/<scope>/<name>/<version>/    scoped names such as @acme/ui

Each version directory holds the package's files plus one signature file.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import Iterable

from nlm.core.semver import sort_versions
from nlm.core.signature import (
    read_signature_file,
    signature_of_file_set,
    write_signature_file,
)

logger = logging.getLogger(__name__)


class VersionStore:
    """File-based store of package versions."""

    PACKAGES_DIR = "packages"

    def __init__(self, store_dir: str | Path):
        self.store_dir = Path(store_dir)
        self.packages_dir = self.store_dir / self.PACKAGES_DIR

    def store_dir_for(self, name: str, version: str | None = None) -> Path:
        """Directory for a package, or for one of its versions.

        Raises ValueError for names or versions that would leave the store.
        """
        parts = name.split("/") + ([version] if version else [])
        if any(part in ("", ".", "..") or "\\" in part for part in parts):
            raise ValueError(f"Invalid store path for {name!r} version {version!r}")
        path = self.packages_dir.joinpath(*name.split("/"))
        return path / version if version else path

    def entry_exists(self, name: str, version: str | None = None) -> bool:
        return self.store_dir_for(name, version).is_dir()

    def read_signature(self, name: str, version: str) -> str:
        return read_signature_file(self.store_dir_for(name, version))

    def list_versions(self, name: str) -> list[str]:
        """Stored versions of ``name``, ascending by precedence."""
        package_dir = self.store_dir_for(name)
        if not package_dir.is_dir():
            return []
        return sort_versions([p.name for p in package_dir.iterdir() if p.is_dir()])

    def list_all_packages(self) -> list[str]:
        """Names of every stored package, scoped ones as ``@scope/name``."""
        if not self.packages_dir.is_dir():
            return []
        names = []
        for item in sorted(self.packages_dir.iterdir()):
            if not item.is_dir():
                continue
            if item.name.startswith("@"):
                names.extend(
                    f"{item.name}/{child.name}"
                    for child in sorted(item.iterdir())
                    if child.is_dir()
                )
            else:
                names.append(item.name)
        return names

    def write_entry(
        self,
        name: str,
        version: str,
        files: Iterable[str],
        base_dir: str | Path,
        signature: str | None = None,
    ) -> str:
        """Replace the (name, version) entry with ``files`` copied from ``base_dir``.

        Files are copied into a staging directory that is stamped with its
        signature before it replaces the old entry, so a signature never
        describes a partial copy. Returns the signature written.
        """
        base = Path(base_dir)
        files = sorted(files)
        if signature is None:
            signature = signature_of_file_set(files, base)

        target = self.store_dir_for(name, version)
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = target.parent / f"{version}.staging-{uuid.uuid4().hex[:8]}"
        staging.mkdir()
        try:
            for rel in files:
                dest = staging / rel
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(base / rel, dest)
            write_signature_file(staging, signature)

            if target.exists():
                shutil.rmtree(target)
            staging.rename(target)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info("Stored %s@%s (%d files, signature %s)", name, version, len(files), signature)
        return signature

    def remove_entry(self, name: str, version: str | None = None) -> bool:
        """Delete one version, or the whole package when no version is given."""
        path = self.store_dir_for(name, version)
        if not path.exists():
            return False
        shutil.rmtree(path)

        # Prune directories left empty above the removed one
        parent = path.parent
        while parent != self.packages_dir and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True
