"""Markup normalization for stable comparison.

Rendered markup is parsed and re-serialized into a canonical form so that
cosmetic differences between two renderers are not reported:

- entity encoding (``&amp;`` and ``&#38;`` both become ``&amp;``)
- indentation and line breaks (one node per line, two-space indent)
- attribute order (sorted lexicographically)
- ``<br/>`` versus ``<br>`` and ``<div/>`` versus ``<div></div>``

Element names, attribute names and values, and non-whitespace text are kept
as they are. The canonical form re-parses to the same tree, which makes
``normalize`` idempotent.
"""

import html
import re

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.element import PreformattedString

PARSER = "html.parser"

INDENT = "  "

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Content kept verbatim (whitespace is significant)
PRESERVE_WHITESPACE = frozenset({"pre", "textarea"})

# Raw text content, never entity-escaped
RAW_TEXT = frozenset({"script", "style"})

# HTML whitespace only; \s would also swallow &nbsp;
_WHITESPACE_RE = re.compile(r"[ \t\n\r\f]+")
_DOCTYPE_PREFIX_RE = re.compile(r"^doctype\s+", re.IGNORECASE)


def parse(markup: str) -> BeautifulSoup:
    """Parse markup the way both normalizer and differ see it.

    ``class`` and other multi-valued attributes stay plain strings so their
    token order remains significant.
    """
    return BeautifulSoup(markup, PARSER, multi_valued_attributes=None)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def escape_text(text: str) -> str:
    return html.escape(text, quote=False)


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;")


def format_attributes(attrs: dict[str, str | None]) -> str:
    """Format attributes sorted by name.

    Empty-valued attributes are written in bare form (``disabled``).
    """
    parts = []
    for name in sorted(attrs):
        value = attrs[name]
        if value is None or value == "":
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape_attribute(str(value))}"')
    return "".join(parts)


def is_void(tag: Tag) -> bool:
    return tag.name in VOID_ELEMENTS or bool(tag.can_be_empty_element)


def doctype_text(doctype: Doctype) -> str:
    return _DOCTYPE_PREFIX_RE.sub("", collapse_whitespace(str(doctype)))


def _inline(node: Tag | NavigableString) -> str:
    """Serialize a node on one line without touching its whitespace."""
    if isinstance(node, Comment):
        return f"<!--{node}-->"
    if isinstance(node, NavigableString):
        return escape_text(str(node))
    open_tag = f"<{node.name}{format_attributes(node.attrs)}>"
    if is_void(node):
        return open_tag
    inner = "".join(_inline(child) for child in node.contents)
    return f"{open_tag}{inner}</{node.name}>"


def _emit(node: Tag | NavigableString, depth: int, lines: list[str]) -> None:
    indent = INDENT * depth

    if isinstance(node, Doctype):
        lines.append(f"{indent}<!DOCTYPE {doctype_text(node)}>")
        return
    if isinstance(node, Comment):
        lines.append(f"{indent}<!-- {collapse_whitespace(str(node))} -->")
        return
    if isinstance(node, PreformattedString):
        lines.append(f"{indent}{node.output_ready()}")
        return
    if isinstance(node, NavigableString):
        text = collapse_whitespace(str(node))
        if text:
            lines.append(f"{indent}{escape_text(text)}")
        return

    open_tag = f"<{node.name}{format_attributes(node.attrs)}>"
    close_tag = f"</{node.name}>"

    if is_void(node):
        lines.append(f"{indent}{open_tag}")
        return

    if node.name in PRESERVE_WHITESPACE:
        inner = "".join(_inline(child) for child in node.contents)
        lines.append(f"{indent}{open_tag}{inner}{close_tag}")
        return

    if node.name in RAW_TEXT:
        lines.append(f"{indent}{open_tag}{collapse_whitespace(node.get_text())}{close_tag}")
        return

    start = len(lines)
    lines.append(f"{indent}{open_tag}")
    for child in node.contents:
        _emit(child, depth + 1, lines)
    if len(lines) == start + 1:
        # No significant children
        lines[start] = f"{indent}{open_tag}{close_tag}"
    else:
        lines.append(f"{indent}{close_tag}")


def normalize(raw_markup: str) -> str:
    """Convert raw rendered markup into canonical markup.

    Args:
        raw_markup: Markup as returned by a renderer (need not be well-formed)

    Returns:
        Canonical markup, one node per line with a trailing newline, or an
        empty string when the input has no significant content
    """
    soup = parse(raw_markup)
    lines: list[str] = []
    for child in soup.contents:
        _emit(child, 0, lines)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
