#!/usr/bin/env python3
"""Main CLI entry point for dlcheck using Typer.

``dlcheck run`` discovers ``*.dltest.py`` files (or takes them as arguments),
runs them against a real browser and exits with 0 when every test passed
and 1 otherwise.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError
from typing_extensions import Annotated

from .. import __version__
from ..config import RunnerConfig, load_config
from ..runner.engine import TestRunner
from ..runner.reporter import ConsoleReporter

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


app = typer.Typer(
    name="dlcheck",
    help="dlcheck - automated tests for analytics data layers and GA4 hits",
    add_completion=False,
    rich_markup_mode="rich"
)


@app.callback()
def main():
    """
    dlcheck - data layer test runner.

    Runs Python test files that drive a real browser and assert on the
    events pushed to the page's data layer and the GA4 hits it sends.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"dlcheck v{__version__}")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def discover_test_files(test_dir: Path, pattern: str = "**/*.dltest.py") -> List[Path]:
    """Find test files under ``test_dir`` matching ``pattern``, sorted by path."""
    directory = Path(test_dir)
    if not directory.is_dir():
        return []
    return sorted(path for path in directory.glob(pattern) if path.is_file())


def resolve_test_files(files: Optional[List[Path]], config: RunnerConfig) -> List[Path]:
    """Explicit files win; directories given as arguments are searched with the configured pattern."""
    if not files:
        return discover_test_files(Path(config.test_dir), config.test_match)

    resolved: List[Path] = []
    for candidate in files:
        if candidate.is_dir():
            resolved.extend(discover_test_files(candidate, config.test_match))
        else:
            resolved.append(candidate)
    return resolved


@app.command()
def run(
    files: Annotated[
        Optional[List[Path]],
        typer.Argument(help="Test files or directories (defaults to test_dir from config)")
    ] = None,

    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to dlcheck YAML config file")
    ] = None,

    env: Annotated[
        Optional[str],
        typer.Option("--env", "-e", help="Environment override from the config file")
    ] = None,

    headful: Annotated[
        bool,
        typer.Option("--headful", help="Run browser with GUI (for debugging)")
    ] = False,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output and debug logging")
    ] = False,

    json_out: Annotated[
        Optional[Path],
        typer.Option("--json-out", help="Write the run result as JSON to this file")
    ] = None,
):
    """
    Run data layer tests.

    Examples:

        # Discover tests under test_dir from dlcheck.yaml
        dlcheck run

        # Run one file with a visible browser
        dlcheck run --headful tests/checkout.dltest.py

        # CI/CD integration
        dlcheck run --env staging --json-out results.json
    """
    configure_logging(verbose)

    overrides = {}
    if verbose:
        overrides["verbose"] = True
    if headful:
        overrides["browser"] = {"headless": False}

    try:
        config = load_config(config_file, environment=env, **overrides)
    except (FileNotFoundError, ValidationError, ValueError, yaml.YAMLError) as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    test_files = resolve_test_files(files, config)
    missing = [path for path in test_files if not path.exists()]
    if missing:
        for path in missing:
            typer.echo(f"❌ Test file not found: {path}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    if not test_files:
        typer.echo(
            f"❌ No test files found in {config.test_dir} matching {config.test_match}",
            err=True,
        )
        raise typer.Exit(code=EXIT_FAILURE)

    runner = TestRunner(config, reporter=ConsoleReporter(verbose=config.verbose))

    try:
        asyncio.run(runner.run(test_files))
    except KeyboardInterrupt:
        typer.echo("❌ Operation interrupted by user", err=True)
        raise typer.Exit(code=EXIT_FAILURE)
    except Exception as e:
        typer.echo(f"❌ Runtime error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(code=EXIT_FAILURE)

    result = runner.get_results()

    if json_out:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(json.dumps(result.to_export_dict(), indent=2))
        typer.echo(f"Results written to {json_out}")

    raise typer.Exit(code=EXIT_SUCCESS if result.success else EXIT_FAILURE)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
