"""Version resolution — pick a stored version for a requested token."""

from __future__ import annotations

from nlm.core.semver import (
    is_valid_range,
    is_valid_version,
    parse_range,
    parse_version,
    sort_versions,
)
from nlm.models import LATEST


def is_latest(token: str | None) -> bool:
    return token is None or token.strip() in ("", LATEST)


def is_valid_token(token: str | None) -> bool:
    """Absent, "latest", an exact version, or a parsable range."""
    return is_latest(token) or is_valid_version(token) or is_valid_range(token)


def resolve(token: str | None, available: list[str]) -> str | None:
    """Choose the version to use for ``token`` from ``available``.

    The highest matching version always wins. Returns None when nothing
    matches, including for tokens that do not parse.
    """
    ordered = sort_versions(list(available))
    if is_latest(token):
        return ordered[-1] if ordered else None

    token = token.strip()
    exact = parse_version(token)
    if exact is not None:
        for version in ordered:
            if parse_version(version) == exact:
                return version
        return None

    spec = parse_range(token)
    if spec is None:
        return None
    matching = [v for v in ordered if spec.match(parse_version(v))]
    return matching[-1] if matching else None
