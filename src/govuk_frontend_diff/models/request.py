"""Render request handed to the candidate renderer."""

import json
from typing import Any

from pydantic import BaseModel, Field, model_validator


class RenderRequest(BaseModel):
    """What to render: a named component, or the page template.

    Exactly one of ``component`` and ``template`` is set. The same ``params``
    mapping is given to the reference renderer for the matching example.
    """

    component: str | None = None
    template: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_target(self) -> "RenderRequest":
        if self.template and self.component is not None:
            raise ValueError("component and template are mutually exclusive")
        if not self.template and not self.component:
            raise ValueError("either component or template must be set")
        return self

    @classmethod
    def for_component(cls, component: str, params: dict[str, Any]) -> "RenderRequest":
        return cls(component=component, params=params)

    @classmethod
    def for_template(cls, params: dict[str, Any]) -> "RenderRequest":
        return cls(template=True, params=params)

    def to_args(self) -> list[str]:
        """Build the argument vector passed to a render script.

        Returns:
            ``["--component", name, "--params", json]`` or
            ``["--template", "--params", json]``
        """
        params = json.dumps(self.params, default=str)
        if self.template:
            return ["--template", "--params", params]
        return ["--component", str(self.component), "--params", params]
