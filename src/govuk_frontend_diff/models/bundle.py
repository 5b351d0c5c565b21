"""Reference bundle models."""

from pathlib import Path

from pydantic import BaseModel, Field

from ..constants import COMPONENT_TEMPLATE_NAME, DEFAULT_COMPONENTS_DIR, DEFAULT_PAGE_TEMPLATE


class BundleLayout(BaseModel):
    """Where templates and examples live inside a bundle (posix paths)."""

    components_dir: str = DEFAULT_COMPONENTS_DIR
    page_template: str = DEFAULT_PAGE_TEMPLATE


class Bundle(BaseModel):
    """A materialized, version-pinned copy of the reference templates."""

    version: str
    root: Path
    layout: BundleLayout = Field(default_factory=BundleLayout)

    @property
    def components_dir(self) -> Path:
        return self.root / self.layout.components_dir

    @property
    def page_template_path(self) -> Path:
        return self.root / self.layout.page_template

    def component_dir(self, component: str) -> Path:
        return self.components_dir / component

    def template_name(self, component: str) -> str:
        """Loader name of a component template, relative to the bundle root."""
        return f"{self.layout.components_dir}/{component}/{COMPONENT_TEMPLATE_NAME}"

    def template_path(self, component: str) -> Path:
        return self.component_dir(component) / COMPONENT_TEMPLATE_NAME

    def examples_path(self, component: str) -> Path:
        return self.component_dir(component) / f"{component}.yaml"
