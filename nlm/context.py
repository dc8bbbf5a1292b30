"""Command context — everything a command needs, fixed at invocation time.

Built once from CLI options and configuration, then passed down. Push derives
one context per consumer project with ``for_project``, which reads that
project's own configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable

from nlm.core.config import NlmConfig, default_store_dir, load_config
from nlm.core.lockfile import Lockfile
from nlm.core.registry import StoreRegistry
from nlm.core.store import VersionStore
from nlm.sync.package_manager import PackageManager


@dataclass(frozen=True)
class NlmContext:
    working_dir: Path
    store_dir: Path
    force: bool = False
    package_manager: PackageManager = field(default_factory=PackageManager)
    config: NlmConfig = field(default_factory=NlmConfig)
    package_manager_factory: Callable[[str], PackageManager] = PackageManager

    @property
    def store(self) -> VersionStore:
        return VersionStore(self.store_dir)

    @property
    def registry(self) -> StoreRegistry:
        return StoreRegistry(self.store_dir)

    @property
    def lockfile(self) -> Lockfile:
        return Lockfile(self.working_dir)

    @property
    def node_modules(self) -> Path:
        return self.working_dir / "node_modules"

    def for_project(self, project: str | Path) -> NlmContext:
        """The same store and force flag, with ``project``'s config and package manager."""
        project = Path(project)
        config = load_config(project, self.store_dir)
        return replace(
            self,
            working_dir=project,
            config=config,
            package_manager=self.package_manager_factory(config.package_manager),
        )


def build_context(
    working_dir: str | Path,
    store_dir: str | Path | None = None,
    force: bool = False,
) -> NlmContext:
    """Resolve paths and load configuration for one command invocation."""
    project = Path(working_dir).resolve()
    store = Path(store_dir).expanduser().resolve() if store_dir else default_store_dir()
    config = load_config(project, store)
    return NlmContext(
        working_dir=project,
        store_dir=store,
        force=force,
        package_manager=PackageManager(config.package_manager),
        config=config,
    )
