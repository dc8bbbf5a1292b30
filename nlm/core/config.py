"""Configuration — YAML settings for the store and for each project.

Two files are merged, project over global over defaults:

- ``<store>/nlm.config.yaml`` (global)
- ``<project>/.nlm/nlm.config.yaml`` (project)

The store root itself comes from ``--store-dir``, then ``NLM_STORE_DIR``,
then ``~/.nlm``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from nlm.core.lockfile import PROJECT_DIR

logger = logging.getLogger(__name__)

CONFIG_FILE = "nlm.config.yaml"
STORE_ENV_VAR = "NLM_STORE_DIR"
PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")

DEFAULTS: dict[str, Any] = {
    "package_manager": "npm",
}


@dataclass
class NlmConfig:
    """Merged settings. Keys nlm does not know are kept in ``extra``."""

    package_manager: str = "npm"
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"package_manager": self.package_manager, **self.extra}


def default_store_dir(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get(STORE_ENV_VAR)
    return Path(override).expanduser() if override else Path.home() / ".nlm"


def global_config_path(store_dir: str | Path) -> Path:
    return Path(store_dir) / CONFIG_FILE


def project_config_path(project_dir: str | Path) -> Path:
    return Path(project_dir) / PROJECT_DIR / CONFIG_FILE


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read one YAML config file; a missing or empty file reads as {}."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def write_config_file(path: str | Path, data: dict[str, Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)


def validate_config(data: dict[str, Any]) -> list[str]:
    """Return a list of issues found. Empty list means valid."""
    issues: list[str] = []
    manager = data.get("package_manager")
    if manager is not None and manager not in PACKAGE_MANAGERS:
        issues.append(
            f"Invalid package_manager '{manager}'. Must be one of: {', '.join(PACKAGE_MANAGERS)}"
        )
    return issues


def load_config(project_dir: str | Path | None, store_dir: str | Path) -> NlmConfig:
    merged: dict[str, Any] = dict(DEFAULTS)
    merged.update(read_config_file(global_config_path(store_dir)))
    if project_dir is not None:
        merged.update(read_config_file(project_config_path(project_dir)))

    issues = validate_config(merged)
    if issues:
        raise ValueError("; ".join(issues))

    logger.debug("Effective configuration: %s", merged)
    package_manager = merged.pop("package_manager")
    return NlmConfig(package_manager=package_manager, extra=merged)


def set_config_value(path: str | Path, key: str, value: Any) -> list[str]:
    """Set ``key`` in one config file, keeping every other key as it was."""
    data = read_config_file(path)
    data[key] = value
    issues = validate_config(data)
    if not issues:
        write_config_file(path, data)
    return issues
