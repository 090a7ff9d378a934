"""Translate a catalog operation plus user input into one upstream call."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from core.client.api_client import DocumentApiClient
from core.documents.models import OperationResult
from core.operations.registry import build_path, find_operation, split_parameters


async def execute_operation(
    client: DocumentApiClient,
    operation_name: str,
    params: Mapping[str, Any],
    data: Any = None,
) -> OperationResult:
    """Build the request for ``operation_name`` and send it through ``client``."""

    operation = find_operation(operation_name)
    if operation is None:
        return OperationResult(success=False, message="Invalid operation")

    path_params, query_params = split_parameters(operation, params)
    path = build_path(operation.path, path_params)

    request_data = data
    if isinstance(data, str) and operation.needs_json_editor:
        try:
            request_data = json.loads(data)
        except json.JSONDecodeError:
            return OperationResult(success=False, message="Invalid JSON data")

    return await client.request(operation.method, path, request_data, query_params)
