"""DocDelta configuration system.

Configuration is YAML-based with minimal CLI overrides (--repo, --records, --dry-run).
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.docdelta/config.yaml
3. ./docdelta.yaml

Relative directories in the config are resolved against the project root,
not the process working directory.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Configuration Dataclasses
# =============================================================================

DEFAULT_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".go", ".java"]


@dataclass
class MetadataConfig:
    """Metadata persistence configuration.

    Attributes:
        dir: Directory holding project.json (relative to the project root)
        cache_dir: Directory holding short-lived content cache entries
        enable_cache: Whether the content cache is used at all
        cache_ttl_hours: Age after which a cache entry is discarded on read
    """

    dir: str = ".metadata"
    cache_dir: str = ".docdelta-cache"
    enable_cache: bool = True
    cache_ttl_hours: float = 24.0

    def __post_init__(self) -> None:
        """Validate metadata configuration."""
        if self.cache_ttl_hours < 0:
            raise ValueError(f"cache_ttl_hours must be >= 0 (got {self.cache_ttl_hours})")

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_ttl_hours)

    def metadata_path(self, project_root: Path) -> Path:
        return _under(project_root, self.dir)

    def cache_path(self, project_root: Path) -> Path:
        return _under(project_root, self.cache_dir)


@dataclass
class ScanConfig:
    """Source scanning configuration.

    Attributes:
        workers: Upper bound on concurrent source reads
        extensions: Recognized source extensions, in resolution priority order
        records: Default path of the module parser output (JSON or YAML)
    """

    workers: int = 8
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    records: str | None = None

    def __post_init__(self) -> None:
        """Validate scan configuration."""
        if self.workers < 1:
            raise ValueError(f"scan.workers must be >= 1 (got {self.workers})")
        bad = [ext for ext in self.extensions if not ext.startswith(".")]
        if bad:
            raise ValueError(f"Extensions must start with '.': {bad}")


@dataclass
class FlowConfig:
    """Flow traversal configuration.

    Attributes:
        max_steps: Stop traversal after this many visited modules (None = unbounded)
        entry_points: Extra entry point files, appended after discovered ones
    """

    max_steps: int | None = None
    entry_points: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate flow configuration."""
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError(f"flow.max_steps must be >= 1 (got {self.max_steps})")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_on_warning: Exit with error if warnings occur
        json_output: Use JSON output format
    """

    fail_on_warning: bool = False
    json_output: bool = False


@dataclass
class DocDeltaConfig:
    """Top-level DocDelta configuration.

    Constructed once per invocation and passed explicitly to the components
    that need it.

    Attributes:
        metadata: Metadata store and cache settings
        scan: Source scanning settings
        flow: Flow traversal settings
        ci: CI/CD settings
    """

    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


def _under(root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax. Example: ${DOCDELTA_METADATA_DIR}

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.docdelta/config.yaml
    2. ./docdelta.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".docdelta" / "config.yaml",
        start_path / "docdelta.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> DocDeltaConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        DocDeltaConfig instance

    Raises:
        ValueError: If a value fails validation
    """
    data = substitute_env_vars(data)

    config = DocDeltaConfig()

    if "metadata" in data:
        metadata_data = data["metadata"] or {}
        config.metadata = MetadataConfig(
            dir=metadata_data.get("dir", config.metadata.dir),
            cache_dir=metadata_data.get("cache_dir", config.metadata.cache_dir),
            enable_cache=metadata_data.get("enable_cache", config.metadata.enable_cache),
            cache_ttl_hours=float(
                metadata_data.get("cache_ttl_hours", config.metadata.cache_ttl_hours)
            ),
        )

    if "scan" in data:
        scan_data = data["scan"] or {}
        config.scan = ScanConfig(
            workers=int(scan_data.get("workers", config.scan.workers)),
            extensions=list(scan_data.get("extensions", config.scan.extensions)),
            records=scan_data.get("records"),
        )

    if "flow" in data:
        flow_data = data["flow"] or {}
        config.flow = FlowConfig(
            max_steps=flow_data.get("max_steps"),
            entry_points=list(flow_data.get("entry_points") or []),
        )

    if "ci" in data:
        ci_data = data["ci"] or {}
        config.ci = CIConfig(
            fail_on_warning=ci_data.get("fail_on_warning", False),
            json_output=ci_data.get("json_output", False),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> DocDeltaConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        DocDeltaConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = DocDeltaConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# DocDelta Configuration

# Persisted unit metadata and content cache (relative to the project root)
metadata:
  dir: ".metadata"
  cache_dir: ".docdelta-cache"
  enable_cache: true
  cache_ttl_hours: 24

# Source scanning
scan:
  workers: 8             # concurrent source reads
  extensions: [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".go", ".java"]
  # records: "build/modules.json"  # module parser output

# Dependency flow
flow:
  # max_steps: 5000      # stop traversal after N modules
  entry_points: []       # extra entry files, e.g. ["scripts/seed.ts"]

# CI/CD settings
ci:
  fail_on_warning: false
  json_output: false
'''
