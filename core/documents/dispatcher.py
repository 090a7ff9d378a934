"""Single versus multi-document detection, conversion and execution."""

from __future__ import annotations

import copy
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from core.documents.models import (
    AggregateResult,
    DocumentContainer,
    DocumentOutcome,
    JsonObject,
    MultipleContainer,
    OperationResult,
    SingleContainer,
)
from core.documents.samples import empty_document

logger = logging.getLogger("docapi.dispatcher")

SingleDocumentOperation = Callable[[JsonObject], Awaitable[OperationResult]]


def is_collection(json_value: Any) -> bool:
    """True when ``Document`` is a non-empty list."""

    if not isinstance(json_value, Mapping):
        return False
    documents = json_value.get("Document")
    return isinstance(documents, list) and len(documents) > 0


def classify_container(json_value: Any) -> DocumentContainer | None:
    """Tag a parsed JSON value as a single or multiple document container."""

    if is_collection(json_value):
        return MultipleContainer(documents=json_value["Document"])
    if isinstance(json_value, Mapping) and isinstance(json_value.get("Document"), Mapping):
        return SingleContainer(document=json_value["Document"])
    return None


def document_count(json_value: Any) -> int:
    if not is_collection(json_value):
        return 0
    return len(json_value["Document"])


def normalize(json_value: Any) -> Any:
    """Lift a single document container into a one-element collection.

    Collections are returned as-is (same object).
    """

    if is_collection(json_value):
        return json_value

    document = json_value.get("Document") if isinstance(json_value, Mapping) else None
    if not isinstance(document, Mapping):
        document = empty_document()
    return {"Document": [document]}


def denormalize(json_value: Any) -> Any:
    """Lower a collection to its first document, dropping the rest."""

    if not is_collection(json_value):
        return json_value
    return {"Document": json_value["Document"][0]}


def add_document(json_value: Any) -> JsonObject:
    """Append an empty document, lifting to a collection first when needed."""

    collection = copy.deepcopy(normalize(json_value))
    collection["Document"].append(empty_document())
    return collection


def remove_last(json_value: Any) -> Any:
    """Drop the last document; a one-document collection is left untouched."""

    if document_count(json_value) <= 1:
        return json_value

    collection = copy.deepcopy(json_value)
    collection["Document"].pop()
    return collection


async def execute(
    json_value: Any, operation: SingleDocumentOperation
) -> OperationResult | AggregateResult:
    """Run ``operation`` once, or once per document in index order.

    Each call is awaited before the next one starts. A raised exception is
    recorded as a failed outcome for that index and iteration continues. The
    aggregate succeeds when at least one document succeeded.
    """

    if not is_collection(json_value):
        return await operation(json_value)

    results: list[DocumentOutcome] = []
    for index, document in enumerate(json_value["Document"]):
        try:
            result = await operation({"Document": document})
        except Exception as exc:  # noqa: BLE001
            logger.warning("document %d failed: %s: %s", index, type(exc).__name__, exc)
            results.append(DocumentOutcome(index=index, success=False, message=str(exc)))
            continue

        if not result.success:
            logger.info("document %d returned failure: %s", index, result.message)
        results.append(
            DocumentOutcome(
                index=index,
                success=result.success,
                data=result.data,
                message=result.message,
            )
        )

    return AggregateResult(success=any(item.success for item in results), results=results)
