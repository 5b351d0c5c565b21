"""Tests for the Nunjucks compatibility layer."""

from typing import Any

import pytest
from jinja2 import ChainableUndefined, DictLoader

from conftest import ATTRIBUTES_MACRO
from govuk_frontend_diff.core.nunjucks import (
    NunjucksEnvironment,
    js_string,
    loop_items,
    nunjucks_output,
    rewrite_expression,
)


def make_env(templates: dict[str, str] | None = None) -> NunjucksEnvironment:
    return NunjucksEnvironment(
        loader=DictLoader(templates or {}),
        autoescape=True,
        undefined=ChainableUndefined,
    )


def render(source: str, **context: Any) -> str:
    return make_env().from_string(source).render(context)


@pytest.mark.unit
class TestLookup:
    """Tests for member lookup on mappings and sequences."""

    def test_mapping_key_wins_over_method(self) -> None:
        """`params.items` is the `items` key, not dict.items."""
        source = "{% for item in params.items %}[{{ item.text }}]{% endfor %}"
        params = {"items": [{"text": "Yes"}, {"text": "No"}]}
        assert render(source, params=params) == "[Yes][No]"

    def test_missing_key_is_undefined(self) -> None:
        assert render("<{{ params.items }}>", params={}) == "<>"
        assert render("{{ 'none' if params.values is undefined }}", params={}) == "none"

    def test_subscript_on_mapping(self) -> None:
        assert render("{{ params['data-x'] }}{{ params.get }}", params={"data-x": "1"}) == "1"

    def test_length(self) -> None:
        assert render("{{ items.length }}/{{ text.length }}", items=[1, 2, 3], text="four") == "3/4"

    def test_methods_still_reachable_on_strings(self) -> None:
        assert render("{{ text.upper() }}", text="gov") == "GOV"


@pytest.mark.unit
class TestForLoops:
    """Tests for Nunjucks `for` loop semantics."""

    def test_two_targets_walk_mapping_pairs(self) -> None:
        source = '{% for name, value in attributes %} {{ name }}="{{ value }}"{% endfor %}'
        attributes = {"data-module": "govuk-button", "aria-hidden": "true"}
        assert render(source, attributes=attributes) == (
            ' data-module="govuk-button" aria-hidden="true"'
        )

    def test_two_targets_unpack_sequences(self) -> None:
        source = "{% for a, b in pairs %}{{ a }}{{ b }};{% endfor %}"
        assert render(source, pairs=[[1, 2], [3, 4]]) == "12;34;"

    def test_missing_or_null_iterable_loops_zero_times(self) -> None:
        source = "{% for k, v in params.attributes %}x{% endfor %}"
        source += "{% for i in nothing %}y{% endfor %}ok"
        assert render(source, params={}, nothing=None) == "ok"

    def test_set_inside_loop_updates_outer_variable(self) -> None:
        source = (
            '{% set total = "" %}'
            '{% for x in ["a", "b"] %}{% set total = total + x %}{% endfor %}'
            "{{ total }}"
        )
        assert render(source) == "ab"

    def test_set_inside_nested_loops(self) -> None:
        source = (
            '{% set out = "" %}'
            "{% for row in rows %}{% for cell in row %}"
            "{% set out = out + cell %}"
            "{% endfor %}{% endfor %}"
            "{{ out }}"
        )
        assert render(source, rows=[[1, 2], [3]]) == "123"

    def test_set_of_loop_target_stays_in_loop(self) -> None:
        source = (
            '{% set value = "outer" %}'
            '{% for name, value in {"a": "1"} %}'
            '{% set value = value + "!" %}{{ value }} '
            "{% endfor %}"
            "{{ value }}"
        )
        assert render(source) == "1! outer"

    def test_block_set_inside_loop(self) -> None:
        source = (
            '{% set html = "" %}'
            "{% for x in [1, 2] %}{% set html %}{{ html }}<i>{{ x }}</i>{% endset %}{% endfor %}"
            "{{ html }}"
        )
        assert render(source) == "<i>1</i><i>2</i>"

    def test_whitespace_control_kept(self) -> None:
        source = "a\n{%- for x in [1] -%}\n  {%- set s = x -%}\n{%- endfor -%}\nb{{ s }}"
        assert render(source) == "ab1"

    def test_loop_in_comment_untouched(self) -> None:
        assert render("{# {% for a, b in x %} #}ok") == "ok"


@pytest.mark.unit
class TestExpressions:
    """Tests for operators, literals and output."""

    def test_strict_comparison(self) -> None:
        source = "{{ 'same' if a === 1 }}{{ ' differs' if b !== 'x' }}"
        assert render(source, a=1, b="y") == "same differs"

    def test_undefined_and_null(self) -> None:
        source = (
            "{{ 'set' if params.x !== undefined else 'unset' }} "
            "{{ 'null' if params.y === null else 'value' }}"
        )
        assert render(source, params={"x": False, "y": None}) == "set null"
        assert render(source, params={"y": 0}) == "unset value"

    def test_bare_key_object_literal(self) -> None:
        source = '{% set link = { href: "#main", "data-x": 1, nested: { text: "Skip" } } %}'
        source += "{{ link.href }} {{ link['data-x'] }} {{ link.nested.text }}"
        assert render(source) == "#main 1 Skip"

    def test_string_literals_untouched(self) -> None:
        assert render("{{ 'a, b: c === d' }}") == "a, b: c === d"

    def test_string_concatenation(self) -> None:
        assert render('{{ "item-" + index }}', index=2) == "item-2"
        assert render('{{ label + " " + flag }}', label="on", flag=True) == "on true"
        assert render("{{ a + b }}", a=1, b=2) == "3"

    def test_concatenation_gives_plain_string(self) -> None:
        assert render('{{ "x" + (text | escape) }}', text="<b>") == "x&amp;lt;b&amp;gt;"

    def test_output(self) -> None:
        source = "[{{ nothing }}][{{ yes }}][{{ no }}][{{ whole }}][{{ half }}]"
        assert render(source, nothing=None, yes=True, no=False, whole=2.0, half=0.5) == (
            "[][true][false][2][0.5]"
        )


@pytest.mark.unit
class TestImports:
    """Tests for relative template paths."""

    def test_relative_paths_resolve_against_importing_template(self) -> None:
        env = make_env(
            {
                "components/button/template.njk": (
                    '{% from "./macro.njk" import b %}{% from "../../macros/a.njk" import a %}'
                    "{{ b() }}{{ a() }}"
                ),
                "components/button/macro.njk": "{% macro b() %}B{% endmacro %}",
                "macros/a.njk": "{% macro a() %}A{% endmacro %}",
            }
        )
        assert env.get_template("components/button/template.njk").render() == "BA"

    def test_attributes_macro(self) -> None:
        env = make_env(
            {
                "macros/attributes.njk": ATTRIBUTES_MACRO,
                "page.njk": (
                    '{% from "./macros/attributes.njk" import govukAttributes %}'
                    "<div{{ govukAttributes(attributes) }}>"
                ),
            }
        )
        attributes = {
            "id": "a&b",
            "hidden": {"value": False, "optional": True},
            "checked": True,
        }
        html = env.get_template("page.njk").render(attributes=attributes)
        assert html == '<div id="a&amp;b" checked>'


@pytest.mark.unit
class TestHelpers:
    """Tests for the module-level helpers."""

    def test_loop_items(self) -> None:
        assert loop_items(None) == ()
        assert loop_items(ChainableUndefined()) == ()
        assert list(loop_items({"a": 1}, pairs=True)) == [("a", 1)]
        assert loop_items({"a": 1}) == {"a": 1}

    def test_nunjucks_output(self) -> None:
        assert nunjucks_output(None) == ""
        assert nunjucks_output(True) == "true"
        assert nunjucks_output(3.0) == 3

    def test_js_string(self) -> None:
        assert js_string(ChainableUndefined()) == "undefined"
        assert js_string(None) == "null"
        assert js_string(False) == "false"

    def test_rewrite_expression(self) -> None:
        assert rewrite_expression("{{ x({ text: 'a: b' }) }}") == "{{ x({ \"text\": 'a: b' }) }}"
        assert rewrite_expression("{% if a !== b %}") == "{% if a != b %}"

    def test_preprocess_rewrites_loops(self) -> None:
        env = make_env()
        source = "{% for k, v in attrs %}{{ k }}{% endfor %}"
        processed = env.preprocess(source)
        assert "(attrs) | loop_items(true)" in processed
        assert "namespace()" not in processed
