"""Bidirectional mapping between document containers and flat form fields."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from core.documents.dispatcher import classify_container
from core.documents.models import (
    FieldProjection,
    MultipleContainer,
    Projection,
    SectionHeader,
    SingleContainer,
)
from core.documents.paths import FieldPath, IndexSegment, KeySegment, coerce_path
from core.utils.errors import PathResolutionError


def project(json_value: Any) -> list[Projection]:
    """Flatten a document container into ordered form projections.

    Rules:
    - Single container: paths start with ``Document.`` and no headers are emitted.
    - Multiple container: each document is preceded by a ``SectionHeader`` and
      its paths start with ``Document[i].``.
    - Per document: applicationName, formName, DocumentID (only when truthy),
      then each field name followed by each of its values.
    - Anything else yields an empty list.
    """

    container = classify_container(json_value)
    if isinstance(container, SingleContainer):
        return _project_document(container.document, FieldPath.root("Document"), prefix="")

    projections: list[Projection] = []
    if isinstance(container, MultipleContainer):
        for doc_index, document in enumerate(container.documents):
            if not isinstance(document, Mapping):
                continue
            prefix = f"Document_{doc_index}_"
            projections.append(
                SectionHeader(name=f"{prefix}Header", label=f"Document {doc_index + 1}")
            )
            projections.extend(
                _project_document(document, FieldPath.root("Document", doc_index), prefix=prefix)
            )
    return projections


def mutate(json_value: Any, path: str | FieldPath, value: Any) -> Any:
    """Return a deep copy of ``json_value`` with the leaf at ``path`` replaced.

    Missing intermediate keys are created as empty mappings. Index segments
    must address an existing list element.

    Raises:
        PathResolutionError: when ``path`` is malformed or cannot be resolved.
    """

    field_path = coerce_path(path)
    text = str(field_path)
    result = copy.deepcopy(json_value)

    current: Any = result
    last = len(field_path.segments) - 1
    for position, segment in enumerate(field_path.segments):
        is_terminal = position == last
        if not isinstance(current, dict):
            raise PathResolutionError(
                f"Cannot resolve '{segment}': parent is not a mapping",
                path=text,
                segment=str(segment),
            )

        if isinstance(segment, KeySegment):
            if is_terminal:
                current[segment.name] = value
                break
            if current.get(segment.name) is None:
                current[segment.name] = {}
            current = current[segment.name]
            continue

        container = _resolve_list(current, segment, text)
        if is_terminal:
            container[segment.index] = value
            break
        current = container[segment.index]

    return result


def _resolve_list(parent: dict[str, Any], segment: IndexSegment, path: str) -> list[Any]:
    container = parent.get(segment.name)
    if not isinstance(container, list):
        raise PathResolutionError(
            f"Cannot resolve '{segment}': '{segment.name}' is not a list",
            path=path,
            segment=str(segment),
        )
    if segment.index >= len(container):
        raise PathResolutionError(
            f"Cannot resolve '{segment}': index out of range (length {len(container)})",
            path=path,
            segment=str(segment),
        )
    return container


def _project_document(
    document: Mapping[str, Any], base: FieldPath, *, prefix: str
) -> list[Projection]:
    projections: list[Projection] = [
        FieldProjection(
            name=f"{prefix}applicationName",
            label="Application Name",
            value=_text(document.get("applicationName")),
            path=str(base.key("applicationName")),
        ),
        FieldProjection(
            name=f"{prefix}formName",
            label="Form Name",
            value=_text(document.get("formName")),
            path=str(base.key("formName")),
        ),
    ]

    if document.get("DocumentID"):
        projections.append(
            FieldProjection(
                name=f"{prefix}DocumentID",
                label="Document ID",
                value=_text(document.get("DocumentID")),
                path=str(base.key("DocumentID")),
            )
        )

    fields = document.get("Fields")
    if not isinstance(fields, list):
        return projections

    for field_index, entry in enumerate(fields):
        if not isinstance(entry, Mapping):
            continue
        field_base = base.index("Fields", field_index)
        projections.append(
            FieldProjection(
                name=f"{prefix}Field_{field_index}_Name",
                label=f"Field {field_index + 1} Name",
                value=_text(entry.get("fieldName")),
                path=str(field_base.key("fieldName")),
            )
        )

        values = entry.get("Values")
        if not isinstance(values, list):
            continue
        for value_index, item in enumerate(values):
            projections.append(
                FieldProjection(
                    name=f"{prefix}Field_{field_index}_Value_{value_index}",
                    label=f"Field {field_index + 1} Value {value_index + 1}",
                    value=_text(item),
                    path=str(field_base.index("Values", value_index)),
                )
            )

    return projections


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)
