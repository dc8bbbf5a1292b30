"""Core — the on-disk state nlm keeps and the pure functions over it.

This package provides:
- Signatures: content fingerprints that decide "changed vs. unchanged"
- Versions: semver parsing, range matching, and version resolution
- Store: every pushed version of every package, plus the usage registry
- Lockfile: what each project asked for and last received
- Config: package manager and store location settings
"""
