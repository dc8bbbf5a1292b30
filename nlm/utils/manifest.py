"""Manifest helpers — read package.json and parse package specifiers."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from nlm.models import PackageManifest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"
NODE_MODULES = "node_modules"

_NAME_RE = re.compile(r"^(?:@[a-z0-9\-~][a-z0-9\-._~]*/)?[a-z0-9\-~][a-z0-9\-._~]*$")
_SPEC_RE = re.compile(r"^(@[^/@]+/)?([^@]+)(?:@(.*))?$")


def read_manifest(directory: str | Path) -> PackageManifest | None:
    """Read ``package.json`` from ``directory``.

    Returns None when the file is missing, is not valid JSON, or lacks a
    name or version.
    """
    path = Path(directory) / MANIFEST_FILE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.debug("Could not read %s: %s", path, e)
        return None
    if not isinstance(data, dict) or not data.get("name") or not data.get("version"):
        return None
    return PackageManifest.from_dict(data)


def parse_package_spec(spec: str) -> tuple[str, str]:
    """Split ``@scope/name@token`` into ``("@scope/name", "token")``.

    The token is "" when none is given. An unparsable spec yields ("", "").
    """
    match = _SPEC_RE.match(spec.strip())
    if not match:
        return "", ""
    scope, name, token = match.groups()
    return (scope or "") + name, (token or "").strip()


def is_valid_package_name(name: str) -> bool:
    if not name or len(name) > 214:
        return False
    return bool(_NAME_RE.match(name)) and not name.startswith((".", "_"))


def is_scoped(name: str) -> bool:
    return name.startswith("@")


def scope_of(name: str) -> str | None:
    return name.split("/", 1)[0] if is_scoped(name) else None


def is_valid_project(directory: str | Path) -> bool:
    """A consumer project has a package.json and an installed node_modules."""
    root = Path(directory)
    return (root / MANIFEST_FILE).is_file() and (root / NODE_MODULES).is_dir()
