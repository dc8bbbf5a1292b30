"""Store registry — which directory publishes each package and who consumes it.

Stored as JSON next to the packages tree::

    {"<name>": {"origin": "/abs/library", "usedBy": ["/abs/app", ...]}}
"""

from __future__ import annotations

import json
from pathlib import Path

from nlm.models import RegistryEntry


class StoreRegistry:
    """File-based registry of package origins and consumers."""

    INDEX_FILE = "nlm-store.json"

    def __init__(self, store_dir: str | Path):
        self.store_dir = Path(store_dir)
        self.index_path = self.store_dir / self.INDEX_FILE

    def get_entry(self, name: str) -> RegistryEntry | None:
        data = self._load_index().get(name)
        return _dict_to_entry(name, data) if data is not None else None

    def all_entries(self) -> list[RegistryEntry]:
        return [_dict_to_entry(name, data) for name, data in self._load_index().items()]

    def list_all_packages(self) -> list[str]:
        return list(self._load_index())

    def set_origin(self, name: str, origin: str | Path) -> RegistryEntry:
        index = self._load_index()
        entry = _dict_to_entry(name, index.get(name, {}))
        entry.origin = _normalize(origin)
        index[name] = _entry_to_dict(entry)
        self._save_index(index)
        return entry

    def add_usage(self, name: str, project: str | Path) -> RegistryEntry:
        index = self._load_index()
        entry = _dict_to_entry(name, index.get(name, {}))
        project_path = _normalize(project)
        if project_path not in entry.used_by:
            entry.used_by.append(project_path)
        index[name] = _entry_to_dict(entry)
        self._save_index(index)
        return entry

    def remove_usage(self, name: str, project: str | Path) -> None:
        """Drop a consumer; the entry goes away once nothing references it."""
        index = self._load_index()
        if name not in index:
            return
        entry = _dict_to_entry(name, index[name])
        project_path = _normalize(project)
        entry.used_by = [p for p in entry.used_by if p != project_path]

        if entry.is_empty:
            del index[name]
        else:
            index[name] = _entry_to_dict(entry)
        self._save_index(index)

    def get_usages(self, name: str) -> list[str]:
        entry = self.get_entry(name)
        return list(entry.used_by) if entry else []

    def remove_package(self, name: str) -> None:
        index = self._load_index()
        if index.pop(name, None) is not None:
            self._save_index(index)

    def _load_index(self) -> dict[str, dict]:
        if self.index_path.exists():
            with open(self.index_path) as f:
                return json.load(f)
        return {}

    def _save_index(self, index: dict[str, dict]):
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.index_path, "w") as f:
            json.dump(index, f, indent=2)


def _normalize(path: str | Path) -> str:
    return str(Path(path).resolve())


def _entry_to_dict(entry: RegistryEntry) -> dict:
    return {
        "origin": entry.origin,
        "usedBy": list(entry.used_by),
    }


def _dict_to_entry(name: str, data: dict) -> RegistryEntry:
    return RegistryEntry(
        name=name,
        origin=data.get("origin", ""),
        used_by=list(data.get("usedBy", [])),
    )
