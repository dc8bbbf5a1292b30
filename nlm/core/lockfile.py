"""Lockfile — the packages a project links, what it asked for, what it got.

Every linked package has one entry holding the requested version token and
the signature last copied into the project. Signatures are written right
after a successful sync and never recomputed here.
"""

from __future__ import annotations

import json
from pathlib import Path

from nlm.models import LockfileEntry

PROJECT_DIR = ".nlm"


class Lockfile:
    """Reads and writes ``.nlm/nlm-lock.json`` for one project."""

    LOCK_FILE = "nlm-lock.json"

    def __init__(self, project_dir: str | Path):
        self.project_dir = Path(project_dir)
        self.store_dir = self.project_dir / PROJECT_DIR
        self.lock_path = self.store_dir / self.LOCK_FILE

    def exists(self) -> bool:
        return self.lock_path.exists()

    def add_entry(self, name: str, entry: LockfileEntry) -> None:
        """Insert or replace the entry for ``name``."""
        packages = self._load()
        packages[name] = {
            "version": entry.version_spec,
            "signature": entry.signature,
        }
        self._save(packages)

    def get_entry(self, name: str) -> LockfileEntry | None:
        data = self._load().get(name)
        if data is None:
            return None
        return LockfileEntry(
            version_spec=data.get("version", ""),
            signature=data.get("signature", ""),
        )

    def remove_entry(self, name: str) -> bool:
        packages = self._load()
        if name not in packages:
            return False
        del packages[name]
        self._save(packages)
        return True

    def has(self, name: str) -> bool:
        return name in self._load()

    def list_names(self) -> list[str]:
        return list(self._load())

    def entries(self) -> dict[str, LockfileEntry]:
        return {
            name: LockfileEntry(data.get("version", ""), data.get("signature", ""))
            for name, data in self._load().items()
        }

    def _load(self) -> dict[str, dict]:
        if not self.lock_path.exists():
            return {}
        with open(self.lock_path) as f:
            data = json.load(f)
        return data.get("packages", {})

    def _save(self, packages: dict[str, dict]) -> None:
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "w") as f:
            json.dump({"packages": packages}, f, indent=2)
            f.write("\n")
