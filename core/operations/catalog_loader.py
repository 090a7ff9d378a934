"""Operation catalog loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.operations.models import OperationCatalog


def load_catalog(path: Path | None = None) -> OperationCatalog:
    """Load and validate the operation catalog from YAML."""

    catalog_path = path or Path(__file__).with_name("catalog.yaml")

    try:
        raw = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Catalog file not found: {catalog_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in catalog file: {catalog_path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Catalog file must contain a mapping: {catalog_path}")

    try:
        catalog = OperationCatalog.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid catalog schema: {catalog_path}") from exc

    names = [operation.name for operation in catalog.operations]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate operation names in {catalog_path}: {duplicates}")
    return catalog
