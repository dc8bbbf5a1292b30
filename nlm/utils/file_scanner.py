"""File scanner — decide which files of a package get pushed to the store."""

from __future__ import annotations

import fnmatch
from pathlib import Path

from nlm.core.signature import SIGNATURE_FILE
from nlm.models import PackageManifest

# Directories never published
SKIP_DIRS = {
    "node_modules", ".git", ".nlm", ".svn", ".hg", "CVS",
}

# Files never published
SKIP_FILES = {
    ".DS_Store", ".npmrc", "npm-debug.log", "package-lock.json",
    "yarn.lock", "pnpm-lock.yaml", SIGNATURE_FILE,
}

# Files always published when present, even if "files" leaves them out
ALWAYS_INCLUDE = ("package.json", "README*", "LICENSE*", "LICENCE*", "CHANGELOG*")


def pack_files(package_dir: str | Path, manifest: PackageManifest) -> list[str]:
    """Relative, ``/``-separated paths of every file to publish, sorted.

    With a manifest ``files`` list only the listed files, directories, and
    globs are taken. Without one, everything not ignored by ``.npmignore``
    (or ``.gitignore`` when there is no ``.npmignore``) is taken.
    """
    root = Path(package_dir)
    candidates = _scan(root)

    if manifest.files is not None:
        selected = {rel for rel in candidates if _selected_by_files(rel, manifest)}
    else:
        patterns = _ignore_patterns(root)
        selected = {rel for rel in candidates if not _is_ignored(rel, patterns)}
    return sorted(selected)


def _scan(root: Path) -> list[str]:
    files = []
    for item in root.rglob("*"):
        rel = item.relative_to(root)
        if any(part in SKIP_DIRS for part in rel.parts[:-1]):
            continue
        if item.is_file() and rel.name not in SKIP_FILES and rel.parts[0] not in SKIP_DIRS:
            files.append(rel.as_posix())
    return files


def _selected_by_files(rel: str, manifest: PackageManifest) -> bool:
    if "/" not in rel and any(fnmatch.fnmatch(rel, p) for p in ALWAYS_INCLUDE):
        return True
    if manifest.main and rel == _relative(manifest.main):
        return True
    for entry in manifest.files or ():
        pattern = _relative(entry.strip()).rstrip("/")
        if not pattern:
            continue
        if rel == pattern or rel.startswith(pattern + "/"):
            return True
        if fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(rel, pattern + "/*"):
            return True
    return False


def _relative(path: str) -> str:
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def _ignore_patterns(root: Path) -> list[str]:
    for name in (".npmignore", ".gitignore"):
        path = root / name
        if path.is_file():
            lines = path.read_text(encoding="utf-8").splitlines()
            # Negations ("!keep.js") are not supported and are dropped
            return [
                line.strip()
                for line in lines
                if line.strip() and not line.strip().startswith(("#", "!"))
            ]
    return []


def _is_ignored(rel: str, patterns: list[str]) -> bool:
    parts = rel.split("/")
    for raw in patterns:
        anchored = raw.startswith("/")
        pattern = raw.strip("/")
        if fnmatch.fnmatch(rel, pattern) or rel.startswith(pattern + "/"):
            return True
        if not anchored and any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return False
