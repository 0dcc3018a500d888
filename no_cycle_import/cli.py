"""Click CLI with check, graph, and serve subcommands."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from no_cycle_import import __version__
from no_cycle_import.config import load_config
from no_cycle_import.errors import ConfigError
from no_cycle_import.models import DetectionMode, ImportKind
from no_cycle_import.pipeline import run_check
from no_cycle_import.reporter import format_dot, format_json, format_text, graph_to_dict

_MODE_CHOICES = [m.value for m in DetectionMode]
_KIND_CHOICES = [k.value for k in ImportKind]


def _source_dir_argument(f):
    return click.argument(
        "source_dir",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=".",
    )(f)


def _analysis_options(f):
    options = [
        click.option("--config", "-c", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help="Config file (default: .no-cycle-import.yml in SOURCE_DIR)"),
        click.option("--mode", "-m", type=click.Choice(_MODE_CHOICES), help="Detection mode"),
        click.option("--external/--no-external", "include_external", default=None,
                     help="Follow bare imports into node_modules"),
        click.option("--kind", "-k", "edge_kinds", multiple=True, type=click.Choice(_KIND_CHOICES),
                     help="Import kinds that count as edges (repeatable)"),
        click.option("--parser", type=click.Choice(["treesitter", "regex"]), help="Import scanner"),
        click.option("--jobs", "-j", type=click.IntRange(min=1), help="Parallel parser threads"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _build_config(source_dir, config_file, mode, include_external, edge_kinds, parser, jobs):
    try:
        return load_config(
            source_dir,
            config_file=config_file,
            mode=mode,
            include_external=include_external,
            edge_kinds=list(edge_kinds) or None,
            parser=parser,
            jobs=jobs,
        )
    except ConfigError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", count=True, help="Log progress (-vv for debug output)")
def cli(verbose: int):
    """no-cycle-import: Find cyclic ES module imports."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@_source_dir_argument
@_analysis_options
@click.option("--format", "-f", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format")
def check(source_dir: Path, config_file, mode, include_external, edge_kinds, parser, jobs, output_format: str):
    """Check SOURCE_DIR for import cycles. Exits 1 when any are found."""
    config = _build_config(source_dir, config_file, mode, include_external, edge_kinds, parser, jobs)

    try:
        result = run_check(config)
    except ValueError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(format_json(result.reports, result.diagnostics, root=result.root))
    else:
        text = format_text(result.reports, result.diagnostics, root=result.root)
        for line in text.splitlines():
            if ": error: " in line:
                click.echo(click.style(line, fg="red"))
            elif ": warning: " in line or line.startswith("warning: "):
                click.echo(click.style(line, fg="yellow"))
            else:
                click.echo(line)
        click.echo(click.style(
            f"{result.files_scanned} file(s), {len(result.graph.nodes)} module(s), "
            f"{result.graph.edge_count} import edge(s)",
            dim=True,
        ))

    if result.has_cycles:
        raise SystemExit(1)


@cli.command()
@_source_dir_argument
@_analysis_options
@click.option("--format", "-f", "output_format", type=click.Choice(["json", "dot"]), default="json",
              help="Output format")
def graph(source_dir: Path, config_file, mode, include_external, edge_kinds, parser, jobs, output_format: str):
    """Print the module dependency graph of SOURCE_DIR."""
    import json

    config = _build_config(source_dir, config_file, mode, include_external, edge_kinds, parser, jobs)
    try:
        result = run_check(config)
    except ValueError as e:
        raise click.ClickException(str(e))

    if output_format == "dot":
        click.echo(format_dot(result.graph, result.reports, root=result.root))
    else:
        click.echo(json.dumps(graph_to_dict(result.graph, root=result.root), indent=2))


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
@click.option("--allowed-root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Only check directories under this path (default: home directory)")
def serve(port: int, host: str, allowed_root: Path | None):
    """Start the HTTP checking service."""
    import uvicorn

    from no_cycle_import.web import create_app

    click.echo(f"Starting no-cycle-import service at http://{host}:{port}")
    uvicorn.run(create_app(allowed_root=allowed_root), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
