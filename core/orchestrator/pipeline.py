"""Submit pipeline: validate input, then dispatch one or many upstream calls."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.client.api_client import DocumentApiClient
from core.documents import dispatcher
from core.documents.models import AggregateResult, JsonObject, OperationResult
from core.operations.executor import execute_operation
from core.operations.registry import get_operation, missing_required_parameters
from core.utils.errors import MissingParametersError


async def run_operation(
    client: DocumentApiClient,
    operation_name: str,
    params: Mapping[str, Any],
    document_json: Any = None,
) -> OperationResult | AggregateResult:
    """Execute operation -> (single | per-document) -> result.

    Raises:
        UnknownOperationError: operation is not in the catalog.
        MissingParametersError: a required parameter is empty.
    """

    operation = get_operation(operation_name)
    missing = missing_required_parameters(operation, params)
    if missing:
        raise MissingParametersError("Please fill in all required fields", missing=missing)

    if not operation.needs_json_editor:
        return await execute_operation(client, operation_name, params)

    async def send_one(single_document: JsonObject) -> OperationResult:
        return await execute_operation(client, operation_name, params, single_document)

    return await dispatcher.execute(document_json, send_one)
