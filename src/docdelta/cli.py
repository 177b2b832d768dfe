"""DocDelta CLI interface.

Commands:
- scan: Classify changed units, persist fingerprints and analyze flow
- flow: Print the dependency flow without touching metadata
- entry-points: List resolved entry points
- stats: Show metadata store statistics
- cache-clear: Remove content cache entries
- export / import: Copy the metadata document
- reset: Discard all persisted metadata
- init: Create a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from docdelta import __version__
from docdelta.config import DocDeltaConfig, create_default_config, load_config
from docdelta.errors import DocDeltaError
from docdelta.models import AnalysisResult, ParsedModule, Project
from docdelta.tracking.metadata import MetadataStore
from docdelta.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="docdelta",
    help="Incremental change tracking and dependency flow for documentation",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: DocDeltaConfig | None = None
_logger = get_logger()

RepoOption = Annotated[
    Path,
    typer.Option(
        "--repo",
        "-r",
        help="Project root to analyze",
        file_okay=False,
    ),
]
RecordsOption = Annotated[
    Path | None,
    typer.Option(
        "--records",
        help="Module parser output (JSON or YAML); defaults to scan.records",
        dir_okay=False,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output results as JSON",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docdelta {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """DocDelta - incremental documentation change tracking.

    Detects which code units changed since the last run and orders project
    modules along their dependency flow.
    """
    global _config

    # Configure logging based on CLI flags
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, TypeError, OSError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    if ci:
        _config.ci.json_output = True


def _get_config() -> DocDeltaConfig:
    return _config or DocDeltaConfig()


def _open_project(repo: Path) -> Project:
    project = Project.from_path(repo)
    try:
        for warning in project.validate():
            _logger.debug(warning)
    except DocDeltaError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    return project


def _open_store(project: Project) -> MetadataStore:
    return MetadataStore.from_config(_get_config().metadata, project.path)


def _load_records(project: Project, records: Path | None) -> list[ParsedModule]:
    from docdelta.records import load_parsed_modules

    path = records
    if path is None and _get_config().scan.records:
        path = Path(_get_config().scan.records)
        if not path.is_absolute():
            path = project.path / path
    if path is None:
        _logger.error("No module records given (use --records or scan.records)")
        raise typer.Exit(1)

    try:
        return load_parsed_modules(path)
    except DocDeltaError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _exit_for(result: AnalysisResult) -> None:
    """Map a run result to the CLI exit code."""
    if result.has_errors() and any(not e.recoverable for e in result.errors):
        raise typer.Exit(1)
    if result.has_errors():
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# scan command
# =============================================================================


@app.command()
def scan(
    repo: RepoOption = Path("."),
    records: RecordsOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Report changes without writing metadata",
        ),
    ] = False,
    no_flow: Annotated[
        bool,
        typer.Option(
            "--no-flow",
            help="Only track changes, skip dependency flow analysis",
        ),
    ] = False,
    entry: Annotated[
        list[str] | None,
        typer.Option(
            "--entry",
            "-e",
            help="Additional entry point file (repeatable)",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Classify changed code units and analyze dependency flow.

    Exit codes:
        0: Completed
        1: Fatal error (project root, records or metadata write)
        2: Completed with warnings
    """
    from docdelta.pipeline import AnalysisPipeline, PipelineOptions

    project = _open_project(repo)
    modules = _load_records(project, records)

    options = PipelineOptions(dry_run=dry_run, skip_flow=no_flow, entry_points=list(entry or []))
    pipeline = AnalysisPipeline(config=_get_config())

    try:
        result = pipeline.run(project, modules, options)
    except DocDeltaError as e:
        _logger.error(f"Scan failed: {e}")
        raise typer.Exit(1)

    if json_output or _get_config().ci.json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        stats = result.change_set.statistics()
        typer.echo(f"\nScan of {result.project_name}: {result.status.value}\n")
        typer.echo(f"  Added:     {stats.added}")
        typer.echo(f"  Modified:  {stats.modified}")
        typer.echo(f"  Deleted:   {stats.deleted}")
        typer.echo(f"  Unchanged: {stats.unchanged}")
        typer.echo(f"  Files changed: {stats.files_changed}")
        if not no_flow:
            typer.echo(
                f"  Modules in flow: {len(result.flow.modules)} "
                f"(entry points: {len(result.flow.entry_points)})"
            )
        if dry_run:
            typer.echo("\n  Dry run: metadata not written")

    for error in result.errors:
        _logger.warning(f"[{error.component}] {error.message}")

    if result.has_errors() and not _get_config().ci.fail_on_warning:
        raise typer.Exit(2)
    if result.has_errors():
        raise typer.Exit(1)
    raise typer.Exit(0)


# =============================================================================
# flow command
# =============================================================================


@app.command()
def flow(
    repo: RepoOption = Path("."),
    records: RecordsOption = None,
    max_steps: Annotated[
        int | None,
        typer.Option(
            "--max-steps",
            help="Stop traversal after N modules (overrides flow.max_steps)",
            min=1,
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Print the execution flow from the project's entry points.

    Metadata is read to mark changed modules but never written.
    """
    from docdelta.pipeline import AnalysisPipeline, PipelineOptions

    config = _get_config()
    if max_steps is not None:
        config.flow.max_steps = max_steps

    project = _open_project(repo)
    modules = _load_records(project, records)

    try:
        result = AnalysisPipeline(config=config).run(
            project, modules, PipelineOptions(dry_run=True)
        )
    except DocDeltaError as e:
        _logger.error(f"Flow analysis failed: {e}")
        raise typer.Exit(1)

    if json_output or config.ci.json_output:
        typer.echo(json.dumps(result.flow.to_dict(), indent=2))
    else:
        typer.echo(f"\nExecution flow of {result.project_name}\n")
        for step in result.flow.execution_flow:
            node = result.flow.modules[step.module_path]
            marker = " *" if node.changed else ""
            indent = "  " * node.depth
            typer.echo(f"  {step.order:>3}. {indent}{step.module_path}{marker}")
        if not result.flow.execution_flow:
            typer.echo("  (no entry points found)")
        if result.flow.truncated:
            typer.echo("\n  Traversal truncated by max_steps")

    _exit_for(result)


# =============================================================================
# entry-points command
# =============================================================================


@app.command("entry-points")
def entry_points(
    repo: RepoOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """List the project's entry point files in resolution order."""
    from docdelta.analyzers import EntryPointResolver, load_manifest

    config = _get_config()
    project = _open_project(repo)
    manifest = load_manifest(project.path)
    resolver = EntryPointResolver(config.scan.extensions)
    found = resolver.resolve(project.path, manifest, extra=config.flow.entry_points)

    if json_output or config.ci.json_output:
        typer.echo(
            json.dumps(
                {
                    "entryPoints": found,
                    "framework": manifest.framework if manifest else None,
                    "missing": resolver.missing,
                },
                indent=2,
            )
        )
    else:
        if manifest and manifest.framework:
            typer.echo(f"Framework: {manifest.framework}")
        for path in found:
            typer.echo(path)
        if not found:
            typer.echo("No entry points found")

    raise typer.Exit(2 if resolver.missing else 0)


# =============================================================================
# metadata commands
# =============================================================================


@app.command()
def stats(
    repo: RepoOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Show metadata store statistics."""
    project = _open_project(repo)
    statistics = _open_store(project).get_statistics()

    if json_output or _get_config().ci.json_output:
        typer.echo(json.dumps(statistics.to_dict(), indent=2))
        return

    last = statistics.last_generated.isoformat() if statistics.last_generated else "never"
    typer.echo(f"Tracked units:    {statistics.total_units}")
    typer.echo(f"Documented units: {statistics.documented_units}")
    typer.echo(f"Last generated:   {last}")
    typer.echo(f"Cache entries:    {statistics.cache_entries} ({statistics.cache_size} bytes)")


@app.command("cache-clear")
def cache_clear(repo: RepoOption = Path(".")) -> None:
    """Remove all content cache entries."""
    project = _open_project(repo)
    removed = _open_store(project).clear_cache()
    typer.echo(f"Removed {removed} cache entries")


@app.command()
def export(
    output: Annotated[Path, typer.Argument(help="Destination JSON file", dir_okay=False)],
    repo: RepoOption = Path("."),
) -> None:
    """Export the metadata document."""
    project = _open_project(repo)
    try:
        _open_store(project).export_metadata(output)
    except OSError as e:
        _logger.error(f"Export failed: {e}")
        raise typer.Exit(1)
    typer.echo(f"Metadata exported to {output}")


@app.command("import")
def import_(
    source: Annotated[
        Path,
        typer.Argument(help="Previously exported JSON file", exists=True, dir_okay=False),
    ],
    repo: RepoOption = Path("."),
) -> None:
    """Replace the metadata document with an exported one."""
    project = _open_project(repo)
    try:
        count = _open_store(project).import_metadata(source)
    except (ValueError, OSError, DocDeltaError) as e:
        _logger.error(f"Import failed: {e}")
        raise typer.Exit(1)
    typer.echo(f"Imported metadata for {count} units")


@app.command()
def reset(
    repo: RepoOption = Path("."),
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation",
        ),
    ] = False,
) -> None:
    """Discard all persisted metadata and cache entries."""
    project = _open_project(repo)
    if not yes:
        typer.confirm(f"Reset all metadata of {project.name}?", abort=True)
    try:
        _open_store(project).reset()
    except DocDeltaError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    typer.echo("Metadata reset")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize DocDelta configuration.

    Creates .docdelta/config.yaml with the default settings.
    """
    config_dir = Path(".docdelta")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"Created {config_file}")


if __name__ == "__main__":
    app()
