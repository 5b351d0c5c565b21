"""Diff command implementation."""

import asyncio
from pathlib import Path

import typer

from ..config import DiffToolConfig, load_config
from ..core import HtmlDiffer, RunOptions, run
from ..errors import (
    BundleError,
    CandidateError,
    CatalogError,
    ConfigError,
    RunTimeoutError,
)
from ..output import ConsoleProgress, get_output_context, print_report, report_to_json
from ..services import BundleProvider, ProcessRenderer


def split_names(values: list[str] | None) -> set[str] | None:
    """Merge repeated and comma-separated component names.

    Returns None when no names were given, meaning no filter.
    """
    if not values:
        return None
    names = {name.strip() for value in values for name in value.split(",")}
    names.discard("")
    return names or None


def build_provider(config: DiffToolConfig) -> BundleProvider:
    return BundleProvider(
        cache_dir=Path(config.cache.directory),
        archive_url=config.source.archive_url,
        layout=config.bundle,
    )


def diff(
    script: str = typer.Argument(
        ...,
        help="Candidate render script, or a command line such as 'node render.js'",
    ),
    version: str = typer.Option(
        ...,
        "--govuk-frontend-version",
        help="Reference version to test against (tag, branch or commit)",
    ),
    force_refresh: bool = typer.Option(
        False,
        "--force-refresh",
        help="Re-download the reference bundle even if it is cached",
    ),
    include: list[str] | None = typer.Option(
        None,
        "--include",
        "-i",
        help="Only run these components (repeatable or comma-separated)",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Skip these components (repeatable or comma-separated)",
    ),
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-j",
        min=1,
        help="Maximum candidate renders in flight",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=0.001,
        help="Abort the whole run after this many seconds",
    ),
    render_timeout: float | None = typer.Option(
        None,
        "--render-timeout",
        min=0.001,
        help="Seconds allowed for each candidate render",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: ./govuk-frontend-diff.toml if present)",
    ),
) -> None:
    """Compare a candidate renderer against the reference templates.

    Exits 0 when every example matches, 1 when any example or component
    failed, 2 when the run could not be set up, and 3 on timeout.
    """
    ctx = get_output_context()

    try:
        config = load_config(config_path)
        renderer = ProcessRenderer(
            script, timeout=render_timeout or config.run.render_timeout, cwd=Path.cwd()
        )
        renderer.check()
    except (ConfigError, CandidateError) as e:
        ctx.error(str(e))
        raise typer.Exit(2) from None

    options = RunOptions(
        include=split_names(include),
        exclude=split_names(exclude),
        force_refresh=force_refresh,
        concurrency=concurrency or config.run.concurrency,
        timeout=timeout if timeout is not None else config.run.timeout,
    )
    differ = HtmlDiffer(ignore_attributes=config.diff.ignore_attributes)

    try:
        with ConsoleProgress(ctx.log_console, enabled=not ctx.json_mode) as progress:
            report = asyncio.run(
                run(
                    version,
                    renderer,
                    options,
                    provider=build_provider(config),
                    differ=differ,
                    progress=progress,
                )
            )
    except (BundleError, CatalogError) as e:
        ctx.error(str(e), {"version": version})
        raise typer.Exit(2) from None
    except RunTimeoutError as e:
        ctx.error(str(e), {"version": version})
        raise typer.Exit(3) from None

    if ctx.json_mode:
        ctx.print_json(report_to_json(report))
    else:
        print_report(report, ctx.console, config.diff.chars_around_diff)

    if not report.success:
        raise typer.Exit(1)
