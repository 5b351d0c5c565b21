"""Output formatting for govuk-frontend-diff."""

import json
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn

from .constants import CHARS_AROUND_DIFF
from .core.differ import format_diff
from .models import ComparisonOutcome, OutcomeStatus, RunReport

_DIFF_STYLES = {"-": "red", "+": "green", "~": "yellow"}

_ERROR_LABELS = {
    OutcomeStatus.CANDIDATE_ERROR: "candidate render failed",
    OutcomeStatus.REFERENCE_ERROR: "reference render failed",
}


@dataclass
class OutputContext:
    """Context for output formatting.

    Reports go to ``console`` (stdout); logs and progress go to
    ``log_console`` (stderr).
    """

    console: Console
    json_mode: bool = False
    log_console: Console = field(default_factory=lambda: Console(stderr=True))

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        else:
            self.log_console.print(f"[red]Error: {escape(message)}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{escape(message)}[/green]")


class ConsoleProgress:
    """Progress bar over components, shown only on an interactive console."""

    def __init__(self, console: Console, enabled: bool = True) -> None:
        self.enabled = enabled and console.is_terminal
        self._progress = Progress(
            TextColumn("Running tests"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )
        self._task: Any = None

    def __enter__(self) -> "ConsoleProgress":
        if self.enabled:
            self._progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.enabled:
            self._progress.stop()

    def start(self, total: int) -> None:
        if self.enabled:
            self._task = self._progress.add_task("components", total=total)

    def advance(self, component: str) -> None:
        if self.enabled and self._task is not None:
            self._progress.advance(self._task)


def _print_failure(console: Console, result: ComparisonOutcome, chars_around_diff: int) -> None:
    if result.error:
        label = _ERROR_LABELS.get(result.status, "error")
        console.print(f"    [red]{label}:[/red] {escape(result.error)}")
    for line in format_diff(result.diff, chars_around_diff):
        console.print(f"    {escape(line)}", style=_DIFF_STYLES[line[0]], highlight=False)
    console.print()


def print_report(
    report: RunReport,
    console: Console,
    chars_around_diff: int = CHARS_AROUND_DIFF,
) -> None:
    """Print a run report grouped by component.

    Diffs are printed for failed examples only, followed by the totals.
    """
    for component in report.components:
        console.print(f"[bold]{escape(component.component)}[/bold]")
        if component.setup_error is not None:
            console.print(
                f"  [bold red]✘ setup error:[/bold red] {escape(component.setup_error)}"
            )
            console.print()
            continue
        for result in component.results:
            mark = "[bold green]✔[/bold green]" if result.passed else "[bold red]✘[/bold red]"
            console.print(f"  [bold]→[/bold] {escape(result.example)} {mark}")
            if not result.passed:
                _print_failure(console, result, chars_around_diff)

    console.print()
    console.print("[bold]Results[/bold]")
    console.print(f"  {report.total} tests.")
    console.print(
        f"  [green]{report.passed}[/green] passed and [red]{report.failed}[/red] failed"
    )
    if report.errored_components:
        console.print(
            f"  [red]{report.errored_components}[/red] components could not be set up"
        )


def report_to_json(report: RunReport) -> dict[str, Any]:
    """Structured form of a run report, including derived totals."""
    return report.model_dump(mode="json")


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
