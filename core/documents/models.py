"""Data models for document containers, field projections and results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

JsonObject = dict[str, Any]


@dataclass(frozen=True)
class SingleContainer:
    """``{"Document": {...}}``"""

    document: JsonObject


@dataclass(frozen=True)
class MultipleContainer:
    """``{"Document": [{...}, ...]}`` with at least one entry."""

    documents: list[Any]


DocumentContainer = Union[SingleContainer, MultipleContainer]


class FieldProjection(BaseModel):
    """One editable scalar leaf of a document container."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["field"] = "field"
    name: str
    label: str
    value: str
    path: str


class SectionHeader(BaseModel):
    """Non-editable separator emitted before each document of a collection."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["section"] = "section"
    name: str
    label: str
    is_header: bool = True


Projection = Union[FieldProjection, SectionHeader]


class OperationResult(BaseModel):
    """Outcome of one upstream call."""

    model_config = ConfigDict(extra="forbid")

    success: bool
    data: Any = None
    message: str | None = None
    status: int | None = None


class DocumentOutcome(BaseModel):
    """Outcome of one document inside a multi-document execution."""

    model_config = ConfigDict(extra="forbid")

    index: int
    success: bool
    data: Any = None
    message: str | None = None


class AggregateResult(BaseModel):
    """Combined outcome of running one operation over every document."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    success: bool
    multi_document: Literal[True] = Field(default=True, alias="multiDocument")
    results: list[DocumentOutcome] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def data(self) -> list[DocumentOutcome]:
        return self.results

    @property
    def all_succeeded(self) -> bool:
        return bool(self.results) and all(item.success for item in self.results)


def dump_result(result: OperationResult | AggregateResult) -> dict[str, Any]:
    """JSON-ready payload; aggregate keys use their wire names.

    Single results always carry ``success`` and ``data``; ``message`` and
    ``status`` are omitted when unset.
    """

    if isinstance(result, AggregateResult):
        return result.model_dump(mode="json", by_alias=True)
    unset = {name for name in ("message", "status") if getattr(result, name) is None}
    return result.model_dump(mode="json", exclude=unset)
