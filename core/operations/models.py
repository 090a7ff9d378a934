"""Data models for the declarative operation catalog."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ParameterType = Literal["text", "checkbox", "select"]


class SelectOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    value: str
    label: str


class ParameterSpec(BaseModel):
    """One path or query parameter accepted by an operation."""

    model_config = ConfigDict(extra="forbid")

    name: str
    label: str
    type: ParameterType = "text"
    required: bool = False
    placeholder: str | None = None
    description: str | None = None
    options: list[SelectOption] = Field(default_factory=list)


class OperationSpec(BaseModel):
    """Contract for one upstream document API operation."""

    model_config = ConfigDict(extra="forbid")

    name: str
    title: str
    method: HttpMethod
    path: str
    description: str = ""
    needs_json_editor: bool = False
    parameters: list[ParameterSpec] = Field(default_factory=list)
    default_json: dict[str, Any] | None = None

    def path_parameter_names(self) -> set[str]:
        return {param.name for param in self.parameters if f"{{{param.name}}}" in self.path}


class OperationCatalog(BaseModel):
    """On-disk YAML structure for the operation catalog."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    operations: list[OperationSpec] = Field(default_factory=list)
