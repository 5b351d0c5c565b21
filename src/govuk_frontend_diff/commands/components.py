"""Components command implementation."""

import asyncio
from pathlib import Path

import typer

from ..config import load_config
from ..constants import PAGE_TEMPLATE
from ..errors import BundleError, CatalogError, ConfigError
from ..output import get_output_context
from ..services import list_components
from .diff import build_provider


def components(
    version: str = typer.Option(
        ...,
        "--govuk-frontend-version",
        help="Reference version whose components to list",
    ),
    force_refresh: bool = typer.Option(
        False,
        "--force-refresh",
        help="Re-download the reference bundle even if it is cached",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: ./govuk-frontend-diff.toml if present)",
    ),
) -> None:
    """List the components a diff run would cover."""
    ctx = get_output_context()

    try:
        config = load_config(config_path)
        provider = build_provider(config)
        bundle = asyncio.run(provider.ensure(version, force_refresh=force_refresh))
        names = list_components(bundle)
    except ConfigError as e:
        ctx.error(str(e))
        raise typer.Exit(2) from None
    except (BundleError, CatalogError) as e:
        ctx.error(str(e), {"version": version})
        raise typer.Exit(2) from None

    if ctx.json_mode:
        ctx.print_json({"version": version, "components": names, "extra": [PAGE_TEMPLATE]})
        return

    ctx.console.print(f"[bold]Components in {version}:[/bold]")
    for name in names:
        ctx.console.print(f"  {name}")
    ctx.console.print(f"\n{len(names)} components, plus the {PAGE_TEMPLATE} scenarios")
