"""readme-insight command-line entry point.

Thin debugging surface over the pipeline: reads a README (plus optional
manifest files), runs one analysis and prints either a readable summary or
the JSON result envelope. Logs go to STDERR.
"""

from __future__ import annotations

from pathlib import Path

import click

from readme_insight import __version__
from readme_insight.pipeline import PipelineConfig, PipelineOrchestrator, PipelineResult
from readme_insight.types.errors import ConfigurationError
from readme_insight.utils.logger import configure_logging


@click.group(invoke_without_command=True)
@click.version_option(
    version=__version__, prog_name="readme-insight", message="%(prog)s v%(version)s"
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """readme-insight - Confidence-Scored Project Analysis from READMEs.

    Detects languages, commands, dependencies, testing setup and metadata
    from a project's README, with provenance for every fact.
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument(
    "readme", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--aux",
    "aux_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Auxiliary manifest (package.json, pyproject.toml, ...). Repeatable.",
)
@click.option("--timeout", type=float, default=None, help="Per-analyzer timeout in seconds.")
@click.option("--json", "as_json", is_flag=True, help="Print the JSON result envelope.")
@click.option("--debug", is_flag=True, help="Enable debug logging on stderr.")
def analyze(
    readme: Path,
    aux_files: tuple[Path, ...],
    timeout: float | None,
    as_json: bool,
    debug: bool,
) -> None:
    """Analyze README and print the detected project profile."""
    configure_logging(debug=True if debug else None)
    try:
        config = PipelineConfig.from_env().with_overrides(analyzer_timeout_seconds=timeout)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    auxiliary = {path.name: path.read_bytes() for path in aux_files}
    orchestrator = PipelineOrchestrator.from_config(config)
    try:
        result = orchestrator.run_sync(readme.read_bytes(), auxiliary)
    finally:
        orchestrator.close()

    if as_json:
        click.echo(result.to_json())
    else:
        _print_summary(result)

    if not result.success:
        raise SystemExit(1)


def _print_summary(result: PipelineResult) -> None:
    project = result.data
    if project is None:
        click.secho("Analysis failed", fg="red", bold=True)
        for issue in result.errors:
            click.echo(f"  [{issue.code.name}] {issue.message}")
        return

    metadata = project.metadata
    if metadata.name:
        click.secho(f"{metadata.name.value}", bold=True)
    if metadata.description:
        click.echo(f"  {metadata.description.value}")

    click.echo()
    click.secho("Languages", fg="cyan", bold=True)
    for language in project.languages:
        click.echo(f"  {language.name:<12} {language.confidence:.2f}")

    if not project.commands.is_empty:
        click.echo()
        click.secho("Commands", fg="cyan", bold=True)
        for category, entry in project.commands.all():
            click.echo(f"  {category.value:<8} {entry.command}  ({entry.confidence:.2f})")

    if project.dependencies:
        click.echo()
        click.secho("Dependencies", fg="cyan", bold=True)
        for dep in project.dependencies:
            version = f" {dep.version_constraint}" if dep.version_constraint else ""
            dev = " [dev]" if dep.dev else ""
            click.echo(f"  {dep.ecosystem}:{dep.name}{version}{dev}  ({dep.confidence:.2f})")

    if not project.testing.is_empty:
        click.echo()
        click.secho("Testing", fg="cyan", bold=True)
        names = [tool.name for tool in project.testing.frameworks + project.testing.coverage_tools]
        click.echo(f"  {', '.join(names) or '-'}  ({project.testing.confidence:.2f})")

    if metadata.license or metadata.repository:
        click.echo()
        click.secho("Metadata", fg="cyan", bold=True)
        if metadata.license:
            click.echo(f"  license     {metadata.license.value}")
        if metadata.repository:
            click.echo(f"  repository  {metadata.repository.value}")

    click.echo()
    click.echo(f"Overall confidence: {project.confidence.overall:.2f}")
    for issue in result.errors:
        click.secho(f"  error [{issue.code.name}] {issue.message}", fg="yellow")
    click.echo(
        f"Run {result.run.id}: {result.run.state.value}, "
        f"{result.run.execution_time_ms:.1f}ms, cache {'hit' if result.run.cache_hit else 'miss'}"
    )


if __name__ == "__main__":
    cli()
