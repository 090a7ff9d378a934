"""Operation registry for CLI/API operation resolution."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from core.operations.catalog_loader import load_catalog
from core.operations.models import OperationSpec
from core.utils.errors import UnknownOperationError


@lru_cache(maxsize=1)
def _operations() -> dict[str, OperationSpec]:
    catalog = load_catalog()
    return {operation.name: operation for operation in catalog.operations}


def find_operation(name: str) -> OperationSpec | None:
    return _operations().get(name)


def get_operation(name: str) -> OperationSpec:
    """Return a catalog operation by name."""

    operation = find_operation(name)
    if operation is None:
        raise UnknownOperationError(name)
    return operation


def list_supported_operations() -> list[str]:
    """Return operation names in catalog order."""

    return list(_operations())


def build_path(template: str, params: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders in an operation path."""

    result = template
    for key, value in params.items():
        result = result.replace(f"{{{key}}}", str(value))
    return result


def split_parameters(
    operation: OperationSpec, params: Mapping[str, Any]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split supplied values into path and query parameters.

    Empty and absent values are dropped. Checkbox parameters are only sent
    when they are exactly ``True``.
    """

    path_names = operation.path_parameter_names()
    path_params: dict[str, Any] = {}
    query_params: dict[str, Any] = {}

    for param in operation.parameters:
        value = params.get(param.name)
        if value is None or value == "":
            continue
        if param.name in path_names:
            path_params[param.name] = value
        elif param.type == "checkbox":
            if value is True:
                query_params[param.name] = "true"
        else:
            query_params[param.name] = value

    return path_params, query_params


def missing_required_parameters(
    operation: OperationSpec, params: Mapping[str, Any]
) -> list[str]:
    missing: list[str] = []
    for param in operation.parameters:
        if not param.required:
            continue
        value = params.get(param.name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(param.name)
    return missing
