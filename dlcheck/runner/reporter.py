"""Console output for a test run."""

from pathlib import Path
from typing import Optional

import typer

from ..models.results import FileFailure, RunResult, TestResult

RULE = "─" * 50


class ConsoleReporter:
    """Prints progress and the final summary with ``typer.secho``.

    The engine calls the ``on_*`` methods as the run progresses; any method
    may be left as a no-op by a subclass.
    """

    def __init__(self, verbose: bool = False, cwd: Optional[Path] = None):
        self.verbose = verbose
        self.cwd = cwd or Path.cwd()

    def _relative(self, path: Path) -> str:
        try:
            return str(Path(path).resolve().relative_to(self.cwd.resolve()))
        except ValueError:
            return str(path)

    def on_run_start(self, file_count: int) -> None:
        typer.secho("dlcheck - data layer test runner", fg=typer.colors.CYAN, bold=True)
        if self.verbose:
            typer.secho(f"Running {file_count} test file(s)", fg=typer.colors.BRIGHT_BLACK)

    def on_file_start(self, path: Path) -> None:
        typer.secho(f"\n{self._relative(path)}", fg=typer.colors.BRIGHT_BLACK)

    def on_suite_start(self, suite: str) -> None:
        typer.secho(f"\n  {suite}", fg=typer.colors.BLUE)

    def on_test_pass(self, result: TestResult) -> None:
        duration = f" ({result.duration_ms:.0f}ms)" if self.verbose else ""
        typer.secho(f"    ✓ {result.name}{duration}", fg=typer.colors.GREEN)

    def on_test_fail(self, result: TestResult) -> None:
        typer.secho(f"    ✗ {result.name}", fg=typer.colors.RED)
        if result.error:
            for line in result.error.splitlines():
                typer.secho(f"      {line}", fg=typer.colors.RED)
        if result.tip:
            typer.secho(f"      Tip: {result.tip}", fg=typer.colors.YELLOW)

    def on_hook_warning(self, hook_name: str, error: BaseException) -> None:
        typer.secho(f"    Warning: {hook_name} hook failed: {error}", fg=typer.colors.YELLOW)

    def on_file_error(self, path: Path, error: BaseException) -> None:
        typer.secho(
            f"  Error running test file {self._relative(path)}: {error}",
            fg=typer.colors.RED,
            err=True,
        )

    def on_run_end(self, result: RunResult) -> None:
        stats = result.stats
        typer.secho("\nTest Results", fg=typer.colors.CYAN, bold=True)
        typer.secho(RULE, fg=typer.colors.CYAN)

        if stats.passed:
            typer.secho(f"✓ {stats.passed} passed", fg=typer.colors.GREEN)
        if stats.failed:
            typer.secho(f"✗ {stats.failed} failed", fg=typer.colors.RED)
        if stats.skipped:
            typer.secho(f"⊘ {stats.skipped} skipped", fg=typer.colors.YELLOW)

        if result.failures:
            typer.secho("\nFailures:", fg=typer.colors.RED)
            for failure in result.failures:
                if isinstance(failure, FileFailure):
                    label = self._relative(Path(failure.test_file))
                else:
                    label = f"{failure.suite} > {failure.test}" if failure.suite else failure.test
                typer.secho(f"  {label}", fg=typer.colors.RED)
                first_line = failure.error.splitlines()[0] if failure.error else ""
                typer.secho(f"    {first_line}", fg=typer.colors.BRIGHT_BLACK)

        typer.secho(f"\nTotal: {stats.total} | Time: {stats.duration_ms / 1000:.2f}s")
