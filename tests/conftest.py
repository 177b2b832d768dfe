"""Shared pytest fixtures for DocDelta tests.

This module provides common fixtures used across unit and integration
tests. Fixtures are organized by category:
- Project fixtures: Writable copies of sample projects
- Model fixtures: Code units and module records
- Logging isolation
- Manifest fixtures: Sample manifest contents
"""

import logging
import shutil
from pathlib import Path
from typing import Any

import pytest

from docdelta.models import CodeUnit, ParsedModule
from docdelta.tracking.metadata import MetadataStore
from tests.fixtures import JS_PROJECT_PATH, FakeClock

# =============================================================================
# Project Fixtures
# =============================================================================


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary directory that mimics a git repository."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture
def js_project(tmp_path: Path) -> Path:
    """Writable copy of the sample JavaScript project, marked as a git repo."""
    repo = tmp_path / "js_project"
    shutil.copytree(JS_PROJECT_PATH, repo)
    (repo / ".git").mkdir()
    return repo


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def make_unit() -> Any:
    """Factory for code units with sensible defaults."""

    def _make(unit_id: str, content: str, file_path: str = "src/app.js", **kwargs: Any) -> CodeUnit:
        return CodeUnit(id=unit_id, file_path=file_path, content=content, **kwargs)

    return _make


@pytest.fixture
def make_module() -> Any:
    """Factory for parsed module records."""

    def _make(
        path: str,
        imports: list[str] | None = None,
        exports: list[str] | None = None,
        language: str = "javascript",
        chunks: list[CodeUnit] | None = None,
    ) -> ParsedModule:
        return ParsedModule(
            path=path,
            language=language,
            imports=imports or [],
            exports=exports or [],
            chunks=chunks or [],
        )

    return _make


@pytest.fixture
def clock() -> FakeClock:
    """Return a settable clock."""
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> MetadataStore:
    """Metadata store in a temporary directory with a settable clock."""
    return MetadataStore(tmp_path / ".metadata", clock=clock)


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_docdelta_logging() -> Any:
    """Undo CLI logging configuration so caplog sees docdelta records."""
    yield
    logger = logging.getLogger("docdelta")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Manifest Fixtures
# =============================================================================


@pytest.fixture
def pyproject_toml() -> str:
    """Return sample pyproject.toml content with a console script."""
    return '''[project]
name = "sample"
version = "1.0.0"
dependencies = [
    "fastapi>=0.100.0",
    "pydantic>=2.0.0",
]

[project.optional-dependencies]
dev = [
    "pytest>=8.0.0",
]

[project.scripts]
sample = "sample.cli:main"
'''
