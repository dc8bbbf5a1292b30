"""Semantic versions — parsing, precedence, and npm-style range matching.

Parsing and ranges come from ``semantic_version`` (``Version`` and its npm
grammar, ``NpmSpec``). Ranges are compacted first so the loose spellings npm
accepts (``>= 1.2``, ``^v1.2.3``, ``~>1.2``) reach the parser in its form.
"""

from __future__ import annotations

import re

from semantic_version import NpmSpec, Version

_OPERATOR_RE = re.compile(r"^(<=|>=|<|>|=|\^|~>?)?v?(.*)$")
_LOOSE_OPERATOR_RE = re.compile(r"(<=|>=|<|>|=|\^|~>?)\s+")
_MAJOR_RE = re.compile(r"^\s*[<>=^~]*\s*v?(\d+)(?:[.\s]|$|[-+xX*|])")


def parse_version(text: str) -> Version | None:
    """Parse a full ``major.minor.patch[-pre][+build]`` version, or return None."""
    if not isinstance(text, str):
        return None
    text = text.strip()
    if text.startswith("v"):
        text = text[1:]
    try:
        return Version(text)
    except ValueError:
        return None


def is_valid_version(text: str) -> bool:
    return parse_version(text) is not None


def normalize_version(text: str) -> str:
    """Canonical spelling of a valid version (``v1.0.0`` -> ``1.0.0``)."""
    version = parse_version(text)
    if version is None:
        raise ValueError(f"Invalid version: {text!r}")
    return str(version)


def compare_versions(a: str, b: str) -> int:
    """Compare two valid version strings by precedence (-1, 0, 1)."""
    va, vb = parse_version(a), parse_version(b)
    if va is None or vb is None:
        raise ValueError(f"Cannot compare invalid versions: {a!r}, {b!r}")
    # Ordering ignores build metadata; equality does not
    return (va > vb) - (va < vb)


def sort_versions(versions: list[str]) -> list[str]:
    """Sort valid versions ascending by precedence; invalid ones are dropped."""
    valid = [v for v in versions if is_valid_version(v)]
    return sorted(valid, key=parse_version)


# --- Ranges ---


def _compact(text: str) -> str:
    """Rewrite a range into the spacing and operator forms NpmSpec parses."""
    sets = []
    for part in text.split("||"):
        tokens = []
        for token in _LOOSE_OPERATOR_RE.sub(r"\1", part.strip()).split():
            if token == "-":
                tokens.append(token)
                continue
            op, rest = _OPERATOR_RE.match(token).groups()
            tokens.append(("~" if op == "~>" else op or "") + rest)
        sets.append(" ".join(tokens))
    return " || ".join(sets)


def parse_range(text: str) -> NpmSpec | None:
    """Parse an npm range, or return None."""
    if not isinstance(text, str):
        return None
    try:
        return NpmSpec(_compact(text))
    except ValueError:
        return None


def is_valid_range(text: str) -> bool:
    return parse_range(text) is not None


def satisfies(version: str, range_text: str) -> bool:
    """Pre-releases only match a range that names one on the same patch line."""
    parsed_version = parse_version(version)
    spec = parse_range(range_text)
    if parsed_version is None or spec is None:
        return False
    return spec.match(parsed_version)


def major_of(spec: str) -> int | None:
    """The first major version number a specifier names, if any."""
    if not isinstance(spec, str):
        return None
    match = _MAJOR_RE.match(spec)
    return int(match.group(1)) if match else None


def is_same_major(a: str, b: str) -> bool:
    """False only when both specifiers name a major and the majors differ."""
    major_a, major_b = major_of(a), major_of(b)
    if major_a is None or major_b is None:
        return True
    return major_a == major_b
