"""Linking — the pipeline install, update, and push run for one package.

sync into the project -> isolate conflicting dependencies -> relink nested
duplicates. The lockfile is written by the caller only after this succeeds.
"""

from __future__ import annotations

import logging

from nlm.context import NlmContext
from nlm.models import LinkResult
from nlm.sync.conflicts import (
    detect_conflicts,
    find_missing_dependencies,
    isolation_dir,
    resolve_conflicts,
)
from nlm.sync.engine import project_package_dir, sync_to_project
from nlm.sync.nested import replace_duplicates
from nlm.utils.manifest import read_manifest

logger = logging.getLogger(__name__)


def link_package(ctx: NlmContext, name: str, version: str) -> LinkResult:
    """Bring ``name@version`` from the store into ``ctx.working_dir``.

    Returns early with a failed sync when the store entry is missing. Raises
    ``ConflictResolutionError`` when a conflicting dependency cannot be
    isolated.
    """
    sync = sync_to_project(ctx.store, name, version, ctx.working_dir, force=ctx.force)
    result = LinkResult(sync=sync)
    if not sync.ok:
        return result

    canonical = project_package_dir(ctx.working_dir, name)
    linked = read_manifest(canonical)
    consumer = read_manifest(ctx.working_dir)
    if linked is not None and consumer is not None:
        result.conflicts = detect_conflicts(linked, consumer)
        result.missing_dependencies = find_missing_dependencies(linked, consumer)
        if result.missing_dependencies:
            logger.warning(
                "%s depends on %s, which %s does not declare",
                name,
                ", ".join(result.missing_dependencies),
                consumer.name,
            )
        # A fresh copy has no private node_modules yet; a kept one may be incomplete
        private = isolation_dir(ctx.working_dir, name)
        pending = [
            c for c in result.conflicts
            if sync.changed or not private.joinpath(*c.name.split("/")).is_dir()
        ]
        resolve_conflicts(name, pending, ctx.working_dir, ctx.package_manager)

    result.nested_replaced = replace_duplicates(
        str(ctx.node_modules), name, str(canonical), failed=result.nested_failed
    )
    return result
