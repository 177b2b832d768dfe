"""DocDelta - incremental change tracking and dependency flow for code documentation.

DocDelta keeps generated documentation in step with a codebase by working out
what changed since the last run and in which order modules should be read.

Core principles:
- Content-Addressed: Code units are identified by id and compared by SHA-256 hash
- Incremental: Only added or modified units need regenerated documentation
- Deterministic Flow: Same records and entry points produce the same execution flow
- Durable Metadata: Persisted hashes survive crashes and concurrent runs
- Parser Agnosticism: Structural records come from any external module parser
"""

__version__ = "0.1.0"
__author__ = "DocDelta Contributors"
