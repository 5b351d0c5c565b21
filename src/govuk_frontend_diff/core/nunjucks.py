"""Nunjucks semantics on top of Jinja2.

GOV.UK Frontend templates are written for Nunjucks. The syntax is close
enough to Jinja2 that most templates compile unchanged, but a few constructs
mean something different:

- ``params.items`` reads the ``items`` key, not ``dict.items``
- ``{% for key, value in mapping %}`` walks key/value pairs
- ``{% set %}`` inside a ``for`` loop updates the variable outside it
- object literals use bare keys (``{ text: "Save" }``)
- ``===`` and ``!==`` are comparisons and ``null`` is a value
- ``+`` with a string operand joins the two as strings
- ``null`` prints as nothing and booleans print as ``true`` / ``false``

:class:`NunjucksSyntax` rewrites template source before Jinja2 compiles it,
and :class:`NunjucksEnvironment` changes attribute lookup and output.
"""

import posixpath
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Environment, Undefined
from jinja2.ext import Extension
from jinja2.sandbox import SandboxedEnvironment

_TOKEN_RE = re.compile(r"\{#.*?#\}|\{%.*?%\}|\{\{.*?\}\}", re.DOTALL)
_STRING_RE = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')", re.DOTALL)
_STRICT_COMPARISON_RE = re.compile(r"([!=])==")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_]\w*)(\s*:)")

_FOR_RE = re.compile(
    r"^(\{%[-+]?\s*for\s+)(\w+(?:\s*,\s*\w+)*)(\s+in\s+)(.+?)(\s*[-+]?%\})$", re.DOTALL
)
_ENDFOR_RE = re.compile(r"^\{%[-+]?\s*endfor\b")
_SET_RE = re.compile(r"^\{%[-+]?\s*set\s+(\w+)\s*=")
_BLOCK_SET_RE = re.compile(r"^\{%[-+]?\s*set\s+(\w+)\s*[-+]?%\}$")
_ENDSET_RE = re.compile(r"^\{%[-+]?\s*endset\b")


def loop_items(value: Any, pairs: bool = False) -> Any:
    """Iterable for a Nunjucks ``for`` loop.

    Missing and null values loop zero times. With more than one loop target a
    mapping yields ``(key, value)`` pairs.
    """
    if value is None or isinstance(value, Undefined):
        return ()
    if pairs and isinstance(value, Mapping):
        return value.items()
    return value


def nunjucks_output(value: Any) -> Any:
    """Print values the way Nunjucks does."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def js_string(value: Any) -> str:
    """String conversion used when ``+`` joins a value onto a string."""
    if isinstance(value, Undefined):
        return "undefined"
    if value is None:
        return "null"
    return str(nunjucks_output(value))


def rewrite_expression(tag: str) -> str:
    """Translate operators and object literals outside string literals."""
    parts = _STRING_RE.split(tag)
    for i in range(0, len(parts), 2):
        code = _STRICT_COMPARISON_RE.sub(r"\1=", parts[i])
        parts[i] = _BARE_KEY_RE.sub(r'\1"\2"\3', code)
    return "".join(parts)


@dataclass
class _Loop:
    index: int
    targets: frozenset[str]
    assigned: list[str] = field(default_factory=list)

    @property
    def scope(self) -> str:
        return f"nunjucks_loop_{self.index}"


def _owners(loops: list[_Loop], name: str) -> list[_Loop]:
    """Loops a ``set`` of ``name`` writes through, innermost first.

    The walk stops at the loop that binds ``name`` as a target, since that
    loop owns the variable.
    """
    owners = []
    for loop in reversed(loops):
        if name in loop.targets:
            break
        owners.append(loop)
    return owners


def _markers(tag: str) -> tuple[str, str]:
    start = "{%-" if tag.startswith("{%-") else "{%"
    end = "-%}" if tag.endswith("-%}") else "%}"
    return start, end


class _LoopScopeRewriter:
    """Emulate Nunjucks loop scoping with Jinja2 namespaces.

    Each loop whose body assigns outer variables gets a ``namespace()``.
    Assignments are saved to it, restored at the start of every iteration
    and copied back out after ``endfor``.
    """

    def __init__(self, tags: list[str]) -> None:
        self.tags = tags
        self.loops: dict[int, _Loop] = {}
        self._scan()

    def _scan(self) -> None:
        stack: list[_Loop] = []
        for i, tag in enumerate(self.tags):
            if (loop := _FOR_RE.match(tag)) is not None:
                targets = frozenset(t.strip() for t in loop.group(2).split(","))
                stack.append(_Loop(len(self.loops), targets))
                self.loops[i] = stack[-1]
            elif _ENDFOR_RE.match(tag) and stack:
                stack.pop()
            elif (assign := _SET_RE.match(tag) or _BLOCK_SET_RE.match(tag)) is not None:
                name = assign.group(1)
                for loop in _owners(stack, name):
                    if name not in loop.assigned:
                        loop.assigned.append(name)

    def rewrite(self) -> list[str]:
        """Return the replacement for each tag, in order."""
        out: list[str] = []
        stack: list[_Loop] = []
        pending_block_set: str | None = None
        for i, tag in enumerate(self.tags):
            start, end = _markers(tag)
            chunk = [tag]
            if (loop_match := _FOR_RE.match(tag)) is not None:
                loop = self.loops[i]
                opening, targets, keyword, iterable, closing = loop_match.groups()
                pairs = "true" if "," in targets else "false"
                iterable = f"({iterable}) | loop_items({pairs})"
                chunk = [f"{opening}{targets}{keyword}{iterable}{closing}"]
                if loop.assigned:
                    chunk.insert(0, f"{start} set {loop.scope} = namespace() %}}")
                chunk.extend(self._restore(loop, end))
                stack.append(loop)
            elif _ENDFOR_RE.match(tag) and stack:
                loop = stack.pop()
                for name in loop.assigned:
                    chunk.extend(self._restore(loop, end, name))
                    chunk.extend(self._save(stack, name, end))
            elif (block := _BLOCK_SET_RE.match(tag)) is not None:
                pending_block_set = block.group(1)
            elif _ENDSET_RE.match(tag) and pending_block_set is not None:
                chunk.extend(self._save(stack, pending_block_set, end))
                pending_block_set = None
            elif (assign := _SET_RE.match(tag)) is not None:
                chunk.extend(self._save(stack, assign.group(1), end))
            out.append("".join(chunk))
        return out

    @staticmethod
    def _restore(loop: _Loop, end: str, *names: str) -> list[str]:
        scope = loop.scope
        return [
            f"{{% set {name} = {scope}.{name} if {scope}.{name} is defined else {name} {end}"
            for name in names or loop.assigned
        ]

    @staticmethod
    def _save(stack: list[_Loop], name: str, end: str) -> list[str]:
        return [f"{{% set {loop.scope}.{name} = {name} {end}" for loop in _owners(stack, name)]


class NunjucksSyntax(Extension):
    """Rewrite Nunjucks-only constructs into their Jinja2 spelling."""

    def __init__(self, environment: Environment) -> None:
        super().__init__(environment)
        environment.filters["loop_items"] = loop_items

    def preprocess(self, source: str, name: str | None, filename: str | None = None) -> str:
        tokens = list(_TOKEN_RE.finditer(source))
        tags = [rewrite_expression(t.group(0)) for t in tokens if not t.group(0).startswith("{#")]
        replacements = iter(_LoopScopeRewriter(tags).rewrite())

        pieces: list[str] = []
        last = 0
        for token in tokens:
            pieces.append(source[last : token.start()])
            text = token.group(0)
            pieces.append(text if text.startswith("{#") else next(replacements))
            last = token.end()
        pieces.append(source[last:])
        return "".join(pieces)


class NunjucksEnvironment(SandboxedEnvironment):
    """Sandboxed Jinja2 environment with Nunjucks lookup, output and import rules.

    ``obj.name`` on a mapping reads the ``name`` key, ``.length`` works on
    strings and sequences, ``"id-" + 2`` gives ``"id-2"``, and ``./`` and
    ``../`` imports resolve against the importing template.
    """

    intercepted_binops = frozenset(["+"])

    def __init__(self, **options: Any) -> None:
        options.setdefault("finalize", nunjucks_output)
        options["extensions"] = [*options.get("extensions", ()), NunjucksSyntax]
        super().__init__(**options)
        self.globals["null"] = None

    def call_binop(self, context: Any, operator: str, left: Any, right: Any) -> Any:
        if operator == "+" and (isinstance(left, str) or isinstance(right, str)):
            return js_string(left) + js_string(right)
        return super().call_binop(context, operator, left, right)

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                return self.undefined(obj=obj, name=attribute)
        if attribute == "length" and isinstance(obj, Sequence):
            return len(obj)
        return super().getattr(obj, attribute)

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[argument]
            except (KeyError, TypeError):
                return self.undefined(obj=obj, name=argument)
        return super().getitem(obj, argument)

    def join_path(self, template: str, parent: str) -> str:
        if template.startswith(("./", "../")):
            return posixpath.normpath(posixpath.join(posixpath.dirname(parent), template))
        return template
