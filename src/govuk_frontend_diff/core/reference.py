"""Reference renderer backed by the bundle's own templates."""

import logging
from pathlib import Path
from typing import Any

import yaml
from jinja2 import ChainableUndefined, ChoiceLoader, FileSystemLoader, Template, TemplateNotFound
from pydantic import ValidationError

from ..errors import ExamplesError, ReferenceRenderError, TemplateMissingError
from ..models import Bundle, ComponentExamples, Example
from .nunjucks import NunjucksEnvironment

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Wraps the bundle's page template, overriding each block from flat params
PAGE_WRAPPER_TEMPLATE = "base-template.njk"

PAGE_TEMPLATE_EXAMPLES: list[Example] = [
    Example(
        name="simple use case overriding the most common elements",
        data={
            "pageTitle": "<p>pageTitle</p>",
            "header": "<p>header</p>",
            "content": "<p>content</p>",
            "footer": "<p>footer</p>",
        },
    ),
    Example(
        name="everything overridden except main block",
        data={
            # Variables
            "htmlLang": "htmlLang",
            "htmlClasses": "htmlClasses",
            "pageTitleLang": "pageTitleLang",
            "themeColor": "themeColor",
            "bodyClasses": "bodyClasses",
            "bodyAttributes": {"foo": "bar", "wibble": "bob"},
            "containerClasses": "containerClasses",
            "mainClasses": "mainClasses",
            "mainLang": "mainLang",
            # Blocks
            "pageTitle": "<p>pageTitle</p>",
            "headIcons": "<p>headIcons</p>",
            "head": "<p>head</p>",
            "bodyStart": "<p>bodyStart</p>",
            "skipLink": "<p>skipLink</p>",
            "header": "<p>header</p>",
            "beforeContent": "<p>beforeContent</p>",
            "content": "<p>content</p>",
            "footer": "<p>footer</p>",
            "bodyEnd": "<p>bodyEnd</p>",
        },
    ),
    Example(
        name="override main block",
        data={"main": "<p>footer</p>"},
    ),
]


class ReferenceRenderer:
    """Render components and the page template from a reference bundle.

    Args:
        bundle: Materialized bundle; read-only for the renderer's lifetime
    """

    def __init__(self, bundle: Bundle) -> None:
        self.bundle = bundle
        self.env = NunjucksEnvironment(
            loader=ChoiceLoader(
                [
                    FileSystemLoader(str(TEMPLATES_DIR)),
                    FileSystemLoader(str(bundle.root)),
                ]
            ),
            autoescape=True,
            undefined=ChainableUndefined,
        )
        self.env.globals["reference_page_template"] = bundle.layout.page_template

    def load_examples(self, component: str) -> list[Example]:
        """Load a component's examples from its YAML definition.

        Raises:
            ExamplesError: If the file is missing, not valid YAML, or does not
                have the expected ``examples`` structure
        """
        path = self.bundle.examples_path(component)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ExamplesError(f"Cannot read examples for {component}: {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ExamplesError(f"Invalid YAML in {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise ExamplesError(f"Expected a mapping in {path.name}, got {type(data).__name__}")

        try:
            examples = ComponentExamples.model_validate(data).examples
        except ValidationError as e:
            raise ExamplesError(f"Invalid examples in {path.name}: {e}") from e

        logger.debug(f"Loaded {len(examples)} examples for {component}")
        return examples

    def check_component(self, component: str) -> None:
        """Raise TemplateMissingError if the component has no template."""
        if not self.bundle.template_path(component).is_file():
            raise TemplateMissingError(
                f"No template for {component} in {self.bundle.version} "
                f"({self.bundle.template_name(component)})"
            )

    def check_page_template(self) -> None:
        """Raise TemplateMissingError if the bundle has no page template."""
        if not self.bundle.page_template_path.is_file():
            raise TemplateMissingError(
                f"No page template in {self.bundle.version} ({self.bundle.layout.page_template})"
            )

    def render_component(self, component: str, params: dict[str, Any]) -> str:
        """Render a component with the example data nested under ``params``."""
        template = self._get_template(self.bundle.template_name(component), component)
        return self._render(template, {"params": params}, component)

    def render_page(self, params: dict[str, Any]) -> str:
        """Render the page template against flat params (block overrides)."""
        template = self._get_template(PAGE_WRAPPER_TEMPLATE, "page template")
        return self._render(template, params, "page template")

    def _get_template(self, name: str, label: str) -> Template:
        try:
            return self.env.get_template(name)
        except TemplateNotFound as e:
            raise TemplateMissingError(f"No template for {label}: {e}") from e
        except Exception as e:
            raise ReferenceRenderError(f"Failed to load template for {label}: {e}") from e

    def _render(self, template: Template, context: dict[str, Any], label: str) -> str:
        try:
            return template.render(context)
        except TemplateNotFound as e:
            raise TemplateMissingError(f"Template not found while rendering {label}: {e}") from e
        except Exception as e:
            raise ReferenceRenderError(f"Failed to render {label}: {e}") from e
