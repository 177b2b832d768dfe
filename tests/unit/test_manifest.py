"""Unit tests for manifest parsing and project structure."""

import json
import logging
from pathlib import Path

import pytest

from docdelta.analyzers.manifest import (
    ProjectManifest,
    detect_framework,
    detect_package_manager,
    identify_structure,
    load_manifest,
)


class TestPackageJson:
    """Tests for package.json parsing."""

    def test_entries_and_dependencies(self, tmp_path: Path) -> None:
        """Test main, module, bin and dependency sections."""
        (tmp_path / "package.json").write_text(
            json.dumps(
                {
                    "main": "dist/index.js",
                    "module": "dist/index.mjs",
                    "bin": {"tool": "bin/tool.js", "other": "bin/other.js"},
                    "dependencies": {"express": "^4"},
                    "devDependencies": {"jest": "^29"},
                }
            ),
            encoding="utf-8",
        )

        manifest = load_manifest(tmp_path)

        assert manifest is not None
        assert manifest.entries == [
            "dist/index.js",
            "dist/index.mjs",
            "bin/tool.js",
            "bin/other.js",
        ]
        assert manifest.dependencies == ["express", "jest"]
        assert manifest.ecosystem == "npm"
        assert manifest.framework == "Express.js"

    def test_bin_string(self, tmp_path: Path) -> None:
        """Test a single-string bin field."""
        (tmp_path / "package.json").write_text('{"bin": "cli.js"}', encoding="utf-8")

        assert load_manifest(tmp_path).entries == ["cli.js"]

    def test_corrupt_manifest_skipped(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that an unparseable manifest is a warning."""
        (tmp_path / "package.json").write_text("{oops", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="docdelta"):
            manifest = load_manifest(tmp_path)

        assert manifest is None
        assert "Failed to parse" in caplog.text

    def test_no_manifest(self, tmp_path: Path) -> None:
        """Test a project without manifests."""
        assert load_manifest(tmp_path) is None


class TestPyproject:
    """Tests for pyproject.toml parsing."""

    def test_scripts_map_to_module_files(self, tmp_path: Path, pyproject_toml: str) -> None:
        """Test console script targets resolved to module files."""
        (tmp_path / "src" / "sample").mkdir(parents=True)
        (tmp_path / "src" / "sample" / "cli.py").write_text("", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text(pyproject_toml, encoding="utf-8")

        manifest = load_manifest(tmp_path)

        assert manifest is not None
        assert manifest.entries == ["src/sample/cli.py"]
        assert manifest.dependencies == ["fastapi", "pydantic", "pytest"]
        assert manifest.framework == "FastAPI"

    def test_package_target_uses_init(self, tmp_path: Path) -> None:
        """Test a script target pointing at a package."""
        (tmp_path / "tool").mkdir()
        (tmp_path / "tool" / "__init__.py").write_text("", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "tool"\n\n[project.scripts]\ntool = "tool:main"\n',
            encoding="utf-8",
        )

        assert load_manifest(tmp_path).entries == ["tool/__init__.py"]

    def test_merged_with_package_json(self, tmp_path: Path) -> None:
        """Test that both manifests are merged."""
        (tmp_path / "package.json").write_text('{"main": "web/index.js"}', encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\ndependencies = ["flask"]\n', encoding="utf-8"
        )

        manifest = load_manifest(tmp_path)

        assert manifest.entries == ["web/index.js"]
        assert manifest.sources == ["package.json", "pyproject.toml"]
        assert manifest.framework == "Flask"


class TestFrameworkDetection:
    """Tests for detect_framework()."""

    @pytest.mark.parametrize(
        ("dependencies", "expected"),
        [
            (["next", "react"], "Next.js"),
            (["react", "react-dom"], "React"),
            (["@nestjs/core", "express"], "Express.js"),
            (["Django"], "Django"),
            (["lodash"], None),
            ([], None),
        ],
    )
    def test_detect(self, dependencies: list[str], expected: str | None) -> None:
        """Test framework priority."""
        assert detect_framework(dependencies) == expected

    def test_manifest_merge_deduplicates(self) -> None:
        """Test ProjectManifest.merge()."""
        first = ProjectManifest(entries=["a.js"], dependencies=["x"], ecosystem="npm")
        first.merge(ProjectManifest(entries=["a.js", "b.py"], dependencies=["x", "y"]))

        assert first.entries == ["a.js", "b.py"]
        assert first.dependencies == ["x", "y"]
        assert first.ecosystem == "npm"


class TestProjectStructure:
    """Tests for identify_structure()."""

    def test_sample_project(self, js_project: Path) -> None:
        """Test structure facts of the sample project."""
        structure = identify_structure(js_project)

        assert structure.src_dir == "src"
        assert structure.test_dir is None
        assert structure.framework == "Express.js"
        assert "package.json" in structure.config_files

    def test_package_manager(self, tmp_path: Path) -> None:
        """Test lockfile-based package manager detection."""
        assert detect_package_manager(tmp_path) is None

        (tmp_path / "yarn.lock").write_text("", encoding="utf-8")
        assert detect_package_manager(tmp_path) == "yarn"

        (tmp_path / "pnpm-lock.yaml").write_text("", encoding="utf-8")
        assert detect_package_manager(tmp_path) == "pnpm"

    def test_test_dir_and_config_globs(self, tmp_path: Path) -> None:
        """Test conventional test directory and globbed config files."""
        (tmp_path / "tests").mkdir()
        (tmp_path / "vite.config.ts").write_text("", encoding="utf-8")
        (tmp_path / "tsconfig.json").write_text("{}", encoding="utf-8")

        structure = identify_structure(tmp_path)

        assert structure.test_dir == "tests"
        assert structure.config_files == ["tsconfig.json", "vite.config.ts"]
