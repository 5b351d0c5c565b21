"""Structural comparison of canonical markup.

Both sides are flattened into a token stream (open tag with attributes, close
tag, text, comment, doctype) and aligned with :class:`difflib.SequenceMatcher`.
Tokens only in the reference become ``removed`` changes, tokens only in the
candidate become ``added`` changes, and an element present on both sides with
different attributes becomes one ``attribute`` change per attribute.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from difflib import SequenceMatcher

from bs4 import Comment, Doctype, NavigableString, Tag
from bs4.element import PreformattedString

from ..models import Change, ChangeKind, DiffReport
from .normalizer import (
    PRESERVE_WHITESPACE,
    RAW_TEXT,
    collapse_whitespace,
    doctype_text,
    format_attributes,
    is_void,
    parse,
)

OPEN = "open"
CLOSE = "close"
TEXT = "text"
COMMENT = "comment"
DOCTYPE = "doctype"


@dataclass(frozen=True)
class Token:
    """One structural unit of a document."""

    kind: str
    name: str = ""
    attrs: tuple[tuple[str, str], ...] = ()
    text: str = ""
    path: str = field(default="", compare=False)
    line: int | None = field(default=None, compare=False)

    def render(self) -> str:
        if self.kind == OPEN:
            return f"<{self.name}{format_attributes(dict(self.attrs))}>"
        if self.kind == CLOSE:
            return f"</{self.name}>"
        if self.kind == COMMENT:
            return f"<!-- {self.text} -->"
        if self.kind == DOCTYPE:
            return f"<!DOCTYPE {self.text}>"
        return f'text "{self.text}"'


def _selector(tag: Tag) -> str:
    selector = tag.name
    tag_id = tag.get("id")
    if tag_id:
        selector += f"#{tag_id}"
    classes = tag.get("class")
    if classes:
        selector += "".join(f".{c}" for c in str(classes).split())
    return selector


class HtmlDiffer:
    """Compare canonical markup for structural equivalence.

    Args:
        ignore_attributes: Attribute names excluded from comparison. Empty by
            default, so every attribute is significant.
    """

    def __init__(self, ignore_attributes: Iterable[str] = ()) -> None:
        self.ignore_attributes = frozenset(ignore_attributes)

    def tokenize(self, markup: str) -> list[Token]:
        """Flatten markup into its token stream."""
        return list(self._walk(parse(markup), [], in_pre=False))

    def _walk(self, node: Tag, ancestors: list[str], in_pre: bool) -> Iterator[Token]:
        path = " > ".join(ancestors) or "(root)"
        line = getattr(node, "sourceline", None)
        for child in node.children:
            if isinstance(child, Doctype):
                yield Token(DOCTYPE, text=doctype_text(child), path=path, line=line)
            elif isinstance(child, Comment):
                yield Token(COMMENT, text=collapse_whitespace(str(child)), path=path, line=line)
            elif isinstance(child, PreformattedString):
                yield Token(TEXT, text=child.output_ready(), path=path, line=line)
            elif isinstance(child, NavigableString):
                text = str(child) if in_pre else collapse_whitespace(str(child))
                if text:
                    yield Token(TEXT, text=text, path=path, line=line)
            elif isinstance(child, Tag):
                yield from self._walk_tag(child, ancestors, in_pre)

    def _walk_tag(self, tag: Tag, ancestors: list[str], in_pre: bool) -> Iterator[Token]:
        child_path = [*ancestors, _selector(tag)]
        path = " > ".join(child_path)
        attrs = tuple(
            sorted(
                (name, "" if value is None else str(value))
                for name, value in tag.attrs.items()
                if name not in self.ignore_attributes
            )
        )
        yield Token(OPEN, name=tag.name, attrs=attrs, path=path, line=tag.sourceline)
        if is_void(tag):
            return
        if tag.name in RAW_TEXT:
            text = collapse_whitespace(tag.get_text())
            if text:
                yield Token(TEXT, text=text, path=path, line=tag.sourceline)
        else:
            yield from self._walk(tag, child_path, in_pre or tag.name in PRESERVE_WHITESPACE)
        yield Token(CLOSE, name=tag.name, path=path, line=tag.sourceline)

    def is_equal(self, reference: str, candidate: str) -> bool:
        """Return True when both documents are structurally equivalent.

        Agrees with :meth:`diff`: True exactly when the diff is empty.
        """
        return self.tokenize(reference) == self.tokenize(candidate)

    def diff(self, reference: str, candidate: str) -> DiffReport:
        """Compute the ordered structural differences.

        Args:
            reference: Canonical markup from the reference renderer
            candidate: Canonical markup from the candidate renderer

        Returns:
            DiffReport whose changes are ordered by position in the reference
        """
        ref_tokens = self.tokenize(reference)
        cand_tokens = self.tokenize(candidate)
        matcher = SequenceMatcher(None, ref_tokens, cand_tokens, autojunk=False)

        changes: list[Change] = []
        for op, i1, i2, j1, j2 in matcher.get_opcodes():
            if op == "equal":
                continue
            if op == "delete":
                changes.extend(_removed(t) for t in ref_tokens[i1:i2])
            elif op == "insert":
                changes.extend(_added(t) for t in cand_tokens[j1:j2])
            else:
                changes.extend(_replaced(ref_tokens[i1:i2], cand_tokens[j1:j2]))
        return DiffReport(changes=changes)


def _removed(token: Token) -> Change:
    return Change(
        kind=ChangeKind.REMOVED, path=token.path, line=token.line, reference=token.render()
    )


def _added(token: Token) -> Change:
    return Change(
        kind=ChangeKind.ADDED, path=token.path, line=token.line, candidate=token.render()
    )


def _attribute_changes(ref: Token, cand: Token) -> list[Change]:
    ref_attrs = dict(ref.attrs)
    cand_attrs = dict(cand.attrs)
    changes = []
    for name in sorted(ref_attrs.keys() | cand_attrs.keys()):
        ref_value = ref_attrs.get(name)
        cand_value = cand_attrs.get(name)
        if ref_value == cand_value:
            continue
        changes.append(
            Change(
                kind=ChangeKind.ATTRIBUTE,
                path=ref.path,
                line=ref.line,
                attribute=name,
                reference=ref_value,
                candidate=cand_value,
            )
        )
    return changes


def _replaced(ref_tokens: list[Token], cand_tokens: list[Token]) -> list[Change]:
    """Pair same-named open tags in a replaced run; everything else is added/removed."""
    changes: list[Change] = []
    j = 0
    for ref in ref_tokens:
        match = None
        if ref.kind == OPEN:
            for k in range(j, len(cand_tokens)):
                cand = cand_tokens[k]
                if cand.kind == OPEN and cand.name == ref.name:
                    match = k
                    break
        if match is None:
            changes.append(_removed(ref))
            continue
        changes.extend(_added(t) for t in cand_tokens[j:match])
        changes.extend(_attribute_changes(ref, cand_tokens[match]))
        j = match + 1
    changes.extend(_added(t) for t in cand_tokens[j:])
    return changes


_default_differ = HtmlDiffer()


def is_equal(reference: str, candidate: str) -> bool:
    return _default_differ.is_equal(reference, candidate)


def diff(reference: str, candidate: str) -> DiffReport:
    return _default_differ.diff(reference, candidate)


def format_diff(report: DiffReport, chars_around_diff: int = 80) -> list[str]:
    """Render a diff report as console lines.

    Lines start with ``-`` (missing from candidate), ``+`` (unexpected in
    candidate) or ``~`` (attribute differs). Lines longer than twice
    ``chars_around_diff`` are truncated.
    """
    markers = {ChangeKind.REMOVED: "-", ChangeKind.ADDED: "+", ChangeKind.ATTRIBUTE: "~"}
    limit = max(chars_around_diff, 10) * 2
    lines = []
    for change in report.changes:
        text = change.describe()
        if len(text) > limit:
            text = text[: limit - 3] + "..."
        lines.append(f"{markers[change.kind]} {text}")
    return lines
