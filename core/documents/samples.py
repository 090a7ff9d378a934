"""Canonical example documents for the console and CLI."""

from __future__ import annotations

import copy
from typing import Any

from core.documents.models import JsonObject

MULTI_SAMPLE_OPERATIONS = frozenset({"createDocument"})


def empty_document() -> JsonObject:
    """Blank document appended when a collection grows."""

    return {
        "applicationName": "",
        "formName": "",
        "Fields": [{"fieldName": "", "Values": [""]}],
    }


def _certification(name: str, certification_type: str) -> JsonObject:
    return {
        "applicationName": "Training",
        "formName": "Certification",
        "Fields": [
            {"fieldName": "CERTIFICATION_TYPE", "Values": [certification_type]},
            {"fieldName": "CERTIFICATION_NAME", "Values": [name]},
        ],
    }


def sample_single_document() -> JsonObject:
    document = _certification("API Integration", "Internal")
    document["Fields"].append(
        {"fieldName": "CERTIFICATION_DESC", "Values": ["Learn how to use the document API"]}
    )
    return {"Document": document}


def sample_multi_document() -> JsonObject:
    return {
        "Document": [
            _certification("API Integration 1", "Internal"),
            _certification("API Integration 2", "External"),
        ]
    }


def sample_json(operation_name: str, *, multi: bool = False) -> Any:
    """Return the starting JSON body for an operation.

    ``createDocument`` switches to the multi-document sample when ``multi`` is
    set; operations without a JSON body return ``{}``.
    """

    from core.operations.registry import find_operation

    if multi and operation_name in MULTI_SAMPLE_OPERATIONS:
        return sample_multi_document()

    operation = find_operation(operation_name)
    if operation is None or operation.default_json is None:
        return {}
    return copy.deepcopy(operation.default_json)
