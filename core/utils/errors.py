"""Custom exceptions for core logic."""

from __future__ import annotations


class PathResolutionError(ValueError):
    """Raised when a field path cannot be resolved against a JSON value."""

    def __init__(self, message: str, *, path: str, segment: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.segment = segment


class UnknownOperationError(ValueError):
    """Raised when an operation name is not in the catalog."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Unsupported operation: {operation}")
        self.operation = operation


class MissingParametersError(ValueError):
    """Raised when required operation parameters are empty or absent."""

    def __init__(self, message: str, *, missing: list[str]) -> None:
        super().__init__(message)
        self.missing = missing
