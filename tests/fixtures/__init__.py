"""Test fixtures for DocDelta.

This package provides sample projects for integration and end-to-end testing.

Sample Repositories:
- sample_repos/js_project: An Express application with a module records file
  (modules.json) as a module parser would produce it
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to sample repositories
SAMPLE_REPOS_DIR = FIXTURES_DIR / "sample_repos"

# Specific sample repository paths
JS_PROJECT_PATH = SAMPLE_REPOS_DIR / "js_project"


class FakeClock:
    """Settable UTC clock for cache expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)
