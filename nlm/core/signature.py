"""Signatures — deterministic content fingerprints over a file set.

A signature covers the sorted relative paths and the bytes of every file, so
renaming, adding, removing, or editing any file changes it. Filesystem
timestamps are never consulted.
"""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

SIGNATURE_FILE = ".nlm-signature"

_CHUNK_SIZE = 64 * 1024


def file_signature(path: str | Path, relative_path: str = "") -> str:
    """Hash one file together with its relative location.

    The relative path is normalized to forward slashes so the same tree
    hashes identically on every platform.
    """
    digest = hashlib.md5()
    digest.update(relative_path.replace("\\", "/").encode("utf-8"))
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def aggregate_signature(hashes: Iterable[str]) -> str:
    """Combine per-file hashes, already ordered by relative path."""
    return hashlib.md5("".join(hashes).encode("ascii")).hexdigest()


def signature_of_file_set(
    files: Iterable[str],
    base_dir: str | Path,
    max_workers: int | None = None,
) -> str:
    """Compute the signature of ``files`` (relative paths) under ``base_dir``.

    Files are hashed concurrently; results are collected in sorted path order
    before aggregation. A file that cannot be read raises ``OSError``.
    """
    base = Path(base_dir)
    ordered = sorted(str(f).replace("\\", "/") for f in files)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        hashes = list(pool.map(lambda rel: file_signature(base / rel, rel), ordered))

    signature = aggregate_signature(hashes)
    logger.debug("Signature of %d file(s) under %s: %s", len(ordered), base, signature)
    return signature


def read_signature_file(directory: str | Path) -> str:
    """Return the signature recorded in ``directory``, or "" when there is none."""
    path = Path(directory) / SIGNATURE_FILE
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return ""


def write_signature_file(directory: str | Path, signature: str) -> None:
    (Path(directory) / SIGNATURE_FILE).write_text(signature, encoding="utf-8")


def signatures_match(first: str, second: str) -> bool:
    """Two signatures match only when equal and non-empty."""
    return bool(first) and first == second
