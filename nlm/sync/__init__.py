"""Sync — moving package copies between the store and consumer projects.

This package provides the primitives for:
- Incremental copy: store <-> project, skipped when signatures match
- Conflict isolation: private installs for dependencies whose major differs
- Nested duplicates: relinking every deeper copy of a linked package
- Linking: the pipeline install, update, and push share
"""
