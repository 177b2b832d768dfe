"""Incremental change tracking.

- fingerprint: SHA-256 content fingerprints and concurrent source reads
- diff: ChangeSet computation between two unit snapshots
- metadata: Durable per-unit metadata and the short-lived content cache
- locking: Advisory file lock around metadata read-modify-write cycles

Submodules are imported directly (``from docdelta.tracking.diff import ...``);
the models depend on ``fingerprint`` and must not pull the rest in.
"""
