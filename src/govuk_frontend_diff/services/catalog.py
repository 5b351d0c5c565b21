"""Component catalog for a reference bundle."""

from collections.abc import Iterable

from ..constants import PAGE_TEMPLATE
from ..errors import CatalogError
from ..models import Bundle


def list_components(bundle: Bundle) -> list[str]:
    """List the component names in a bundle, sorted by name.

    Every directory under the components directory is a component; whether
    it has a usable template and examples is checked when it is run.

    Raises:
        CatalogError: If the components directory cannot be read
    """
    try:
        entries = list(bundle.components_dir.iterdir())
    except OSError as e:
        raise CatalogError(f"Cannot list components for {bundle.version}: {e}") from e
    return sorted(p.name for p in entries if p.is_dir() and not p.name.startswith("."))


def is_selected(
    name: str,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> bool:
    """Return True if a component passes the include check and is not excluded."""
    if exclude is not None and name in set(exclude):
        return False
    if include is not None and name not in set(include):
        return False
    return True


def select_components(
    names: Iterable[str],
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> list[str]:
    """Filter catalog names, preserving catalog order."""
    include_set = set(include) if include is not None else None
    exclude_set = set(exclude) if exclude is not None else None
    return [name for name in names if is_selected(name, include_set, exclude_set)]


def page_template_selected(
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> bool:
    """Whether the page template scenarios take part in a run."""
    return is_selected(PAGE_TEMPLATE, include, exclude)
