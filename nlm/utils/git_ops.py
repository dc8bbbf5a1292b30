"""Git operations — keep nlm's project folder out of version control."""

from __future__ import annotations

import logging
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from nlm.core.lockfile import PROJECT_DIR

logger = logging.getLogger(__name__)


def find_repo(path: str | Path) -> Repo | None:
    """Return the Git repo containing ``path``, or None outside a work tree."""
    try:
        return Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None


def ensure_gitignored(project_dir: str | Path, entry: str = PROJECT_DIR) -> bool:
    """Append ``entry`` to the project's .gitignore unless Git already ignores it.

    Returns True when the entry is ignored afterwards. Outside a Git work
    tree nothing is written and False is returned.
    """
    project = Path(project_dir).resolve()
    repo = find_repo(project)
    if repo is None or repo.working_tree_dir is None:
        logger.debug("%s is not inside a Git work tree; leaving .gitignore alone", project)
        return False

    gitignore = project / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    # Directory-only rules ("/.nlm/") miss a folder that does not exist yet
    listed = {entry, f"{entry}/", f"/{entry}", f"/{entry}/"}
    if any(line.strip() in listed for line in content.splitlines()):
        logger.debug("%s is already listed in %s", entry, gitignore)
        return True

    rel = (project / entry).relative_to(Path(repo.working_tree_dir).resolve()).as_posix()
    try:
        if repo.ignored(rel):
            logger.debug("%s is already ignored", rel)
            return True
    except GitCommandError as e:
        logger.warning("Could not check .gitignore for %s: %s", rel, e)
        return False

    separator = "" if not content or content.endswith("\n") else "\n"
    with open(gitignore, "a", encoding="utf-8") as f:
        f.write(f"{separator}{entry}\n")
    logger.info("Added %s to %s", entry, gitignore)
    return True
