"""Example models for reference component definitions."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Example(BaseModel):
    """A named parameter set to render a component or the page template with."""

    name: str
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def empty_data(cls, value: Any) -> Any:
        # `data:` with no value in YAML
        return {} if value is None else value


class ComponentExamples(BaseModel):
    """Contents of a component's ``<name>.yaml`` file."""

    model_config = ConfigDict(extra="ignore")

    examples: list[Example] = Field(default_factory=list)
