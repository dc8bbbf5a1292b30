"""Package manager — runs npm, yarn, or pnpm on behalf of nlm.

Only two things are ever asked of it: install one dependency spec into a
directory, and run a package script before a push.
"""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path

from nlm.models import PackageManagerError

logger = logging.getLogger(__name__)

_INSTALL_COMMANDS = {
    "npm": ["npm", "install"],
    "yarn": ["yarn", "add"],
    "pnpm": ["pnpm", "add"],
}


class PackageManager:
    """Shells out to the configured package manager."""

    def __init__(self, name: str = "npm", timeout: int = 600):
        if name not in _INSTALL_COMMANDS:
            raise ValueError(f"Unsupported package manager: {name}")
        self.name = name
        self.timeout = timeout

    def install_command(self, spec: str) -> list[str]:
        return [*_INSTALL_COMMANDS[self.name], spec]

    def script_command(self, script: str) -> list[str]:
        return [self.name, "run", script]

    def install(self, spec: str, cwd: str | Path) -> None:
        """Install ``spec`` (``name@version``) with ``cwd`` as working directory."""
        self._run(self.install_command(spec), cwd)

    def run_script(self, script: str, cwd: str | Path) -> None:
        self._run(self.script_command(script), cwd)

    def _run(self, command: list[str], cwd: str | Path) -> None:
        logger.info("Running %s in %s", " ".join(command), cwd)
        start = time.monotonic()
        try:
            proc = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise PackageManagerError(f"{self.name} is not installed or not on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise PackageManagerError(
                f"{' '.join(command)} timed out after {self.timeout}s"
            ) from e

        duration = int((time.monotonic() - start) * 1000)
        logger.debug("%s exited with %d after %dms", command[0], proc.returncode, duration)
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()[-2000:]
            raise PackageManagerError(
                f"{' '.join(command)} exited with code {proc.returncode}"
                + (f": {detail}" if detail else "")
            )
