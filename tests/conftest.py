"""Shared test fixtures for govuk-frontend-diff tests."""

import html
import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from govuk_frontend_diff.core import ReferenceRenderer
from govuk_frontend_diff.models import Bundle, RenderRequest
from govuk_frontend_diff.services import BundleProvider, CallableRenderer, cache_key

VERSION = "v1.0.0"

BUTTON_TEMPLATE = """\
<button type="{{ params.type if params.type else 'submit' }}" \
class="govuk-button{% if params.classes %} {{ params.classes }}{% endif %}"\
{% if params.disabled %} disabled{% endif %}
{%- if params.preventDoubleClick !== undefined %} \
data-prevent-double-click="{{ params.preventDoubleClick }}"{% endif %}
{%- for attribute, value in params.attributes %} {{ attribute }}="{{ value }}"{% endfor %}>
  {{ params.text }}
</button>
"""

BUTTON_EXAMPLES = """\
examples:
- name: default
  data:
    text: Save and continue
- name: secondary
  data:
    text: Find address
    classes: govuk-button--secondary
- name: with ampersand
  data:
    text: Fish & chips
"""

# Includes a sibling macro through a relative import, as the real templates do
TAG_MACRO = """\
{% macro tagClasses(params) -%}
govuk-tag{% if params.classes %} {{ params.classes }}{% endif %}
{%- endmacro %}
"""

TAG_TEMPLATE = """\
{% from "./macros.njk" import tagClasses %}
<strong class="{{ tagClasses(params) }}">{{ params.text }}</strong>
"""

TAG_EXAMPLES = """\
examples:
- name: default
  data:
    text: alpha
- name: no data
  data:
"""

SKIP_LINK_MACRO = """\
{% macro govukSkipLink(params) -%}
<a href="{{ params.href | default('#content') }}" class="govuk-skip-link"
  {%- for attribute, value in params.attributes %} {{ attribute }}="{{ value }}"{% endfor %} \
data-module="govuk-skip-link">
  {{- params.html | safe if params.html else params.text -}}
</a>
{%- endmacro %}
"""

# Accumulates markup across loop iterations with `set`, like govukAttributes
ATTRIBUTES_MACRO = """\
{%- macro govukAttributes(attributes) -%}
  {%- set attributesHtml = attributes if attributes is string else "" -%}
  {%- if attributes is mapping %}
    {%- for name, value in attributes -%}
      {%- set optional = value.optional if value is mapping else false -%}
      {%- set value = value.value if value is mapping else value -%}
      {%- if not (optional and (value === false or value === undefined or value === null)) -%}
        {%- set attributesHtml = attributesHtml + " " + name | escape + \
('="' + value | escape + '"' if value !== true else "") -%}
      {%- endif -%}
    {%- endfor -%}
  {%- endif -%}
  {{- attributesHtml | safe -}}
{%- endmacro -%}
"""

DETAILS_TEMPLATE = """\
{%- from "../../macros/attributes.njk" import govukAttributes -%}
<details class="govuk-details" {{- govukAttributes(params.attributes) }}>
  {{ params.text }}
</details>
"""

RADIOS_TEMPLATE = """\
{%- set idPrefix = params.idPrefix if params.idPrefix else params.name -%}
<div class="govuk-radios {%- if params.classes %} {{ params.classes }}{% endif %}"
  {%- for attribute, value in params.attributes %} {{ attribute }}="{{ value }}"{% endfor %} \
data-module="govuk-radios">
  {% for item in params.items %}
  {% if item %}
    {#- The first id has no number suffix so the error summary can link to it -#}
    {%- if item.id -%}
      {%- set id = item.id -%}
    {%- else -%}
      {%- set id = idPrefix + ("-" + loop.index if loop.index > 1 else "") -%}
    {%- endif -%}
    {%- set isChecked = item.checked | default(item.value === params.value \
if params.value else false, true) %}
    <div class="govuk-radios__item">
      <input class="govuk-radios__input" id="{{ id }}" name="{{ params.name }}" type="radio" \
value="{{ item.value }}"
      {{- " checked" if isChecked }}
      {{- " disabled" if item.disabled }}>
      <label class="govuk-label govuk-radios__label" for="{{ id }}">{{ item.text }}</label>
    </div>
  {% endif %}
  {% endfor %}
</div>
"""

PAGE_TEMPLATE = """\
{%- from "./macros/skip-link.njk" import govukSkipLink -%}
<!DOCTYPE html>
<html lang="{{ htmlLang or 'en' }}">
<head>
  <title>{% block pageTitle %}GOV.UK{% endblock %}</title>
  {% block head %}{% endblock %}
</head>
<body class="govuk-template__body {{ bodyClasses }}"
  {%- for attribute, value in bodyAttributes %} {{attribute}}="{{value}}"{% endfor %}>
  {% block bodyStart %}{% endblock %}
  {% block skipLink %}
    {{ govukSkipLink({ href: '#main-content', text: 'Skip to main content' }) }}
  {% endblock %}
  {% block header %}<header class="govuk-header">GOV.UK</header>{% endblock %}
  {% block main %}
  <main class="govuk-main-wrapper">{% block content %}{% endblock %}</main>
  {% endblock %}
  {% block footer %}<footer class="govuk-footer"></footer>{% endblock %}
  {% block bodyEnd %}{% endblock %}
</body>
</html>
"""


def write_bundle(root: Path) -> Path:
    """Write a small reference bundle with the default layout under ``root``."""
    components = root / "src" / "govuk" / "components"

    button = components / "button"
    button.mkdir(parents=True)
    (button / "template.njk").write_text(BUTTON_TEMPLATE)
    (button / "button.yaml").write_text(BUTTON_EXAMPLES)

    tag = components / "tag"
    tag.mkdir()
    (tag / "template.njk").write_text(TAG_TEMPLATE)
    (tag / "macros.njk").write_text(TAG_MACRO)
    (tag / "tag.yaml").write_text(TAG_EXAMPLES)

    macros = root / "src" / "govuk" / "macros"
    macros.mkdir()
    (macros / "skip-link.njk").write_text(SKIP_LINK_MACRO)
    (macros / "attributes.njk").write_text(ATTRIBUTES_MACRO)

    (root / "src" / "govuk" / "template.njk").write_text(PAGE_TEMPLATE)
    return root


def add_component(bundle: Bundle, name: str, template: str | None, examples: str | None) -> None:
    """Add a component directory to an existing bundle."""
    directory = bundle.component_dir(name)
    directory.mkdir(parents=True)
    if template is not None:
        (directory / "template.njk").write_text(template)
    if examples is not None:
        (directory / f"{name}.yaml").write_text(examples)


def make_tarball(root: Path, prefix: str = "govuk-frontend-1.0.0") -> bytes:
    """Pack a bundle directory the way a repository archive is laid out."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        tar.add(root, arcname=prefix)
    return buffer.getvalue()


def render_button(request: RenderRequest) -> str:
    """Hand-written port of the button template (different formatting, same markup)."""
    params = request.params
    classes = "govuk-button"
    if params.get("classes"):
        classes += f" {params['classes']}"
    return (
        f'<button class="{classes}"   type="submit">'
        f"{html.escape(params.get('text', ''))}</button>"
    )


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Bundle cache already holding the fixture bundle for VERSION."""
    cache = tmp_path / "cache"
    write_bundle(cache / cache_key(VERSION))
    return cache


@pytest.fixture
def bundle(cache_dir: Path) -> Bundle:
    """The cached fixture bundle."""
    return Bundle(version=VERSION, root=cache_dir / cache_key(VERSION))


@pytest.fixture
def provider(cache_dir: Path) -> BundleProvider:
    """Provider serving the fixture bundle from cache (no network)."""
    return BundleProvider(cache_dir=cache_dir, archive_url="http://test.invalid/{version}.tgz")


@pytest.fixture
def faithful_port(bundle: Bundle) -> CallableRenderer:
    """Candidate that renders through the reference templates themselves."""
    reference = ReferenceRenderer(bundle)

    def render(request: RenderRequest) -> str:
        if request.template:
            return reference.render_page(request.params)
        return reference.render_component(str(request.component), request.params)

    return CallableRenderer(render)


@pytest.fixture
def make_candidate(
    bundle: Bundle,
) -> Callable[[dict[str, Callable[[RenderRequest], str]]], CallableRenderer]:
    """Build a candidate that overrides some components and is faithful elsewhere."""
    reference = ReferenceRenderer(bundle)

    def factory(overrides: dict[str, Callable[[RenderRequest], str]]) -> CallableRenderer:
        def render(request: RenderRequest) -> str:
            key = "page-template" if request.template else str(request.component)
            if key in overrides:
                return overrides[key](request)
            if request.template:
                return reference.render_page(request.params)
            return reference.render_component(str(request.component), request.params)

        return CallableRenderer(render)

    return factory
