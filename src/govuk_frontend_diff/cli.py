"""govuk-frontend-diff CLI: differential testing of template ports."""

import typer
from rich.console import Console

from govuk_frontend_diff import __version__

from .commands import components, diff, init
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"govuk-frontend-diff {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="govuk-frontend-diff",
    help="Check a port of the GOV.UK Frontend templates against the reference Nunjucks",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """govuk-frontend-diff - differential testing of GOV.UK Frontend ports."""
    log_console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    console = Console(no_color=no_color)
    set_output_context(
        OutputContext(console=console, json_mode=json_output, log_console=log_console)
    )


app.command()(diff)
app.command()(components)
app.command()(init)


if __name__ == "__main__":
    app()
