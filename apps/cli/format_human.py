"""Human-readable rendering of projections and results for CLI output."""

from __future__ import annotations

from core.documents.models import (
    AggregateResult,
    FieldProjection,
    OperationResult,
    Projection,
)


def render_projections(projections: list[Projection]) -> str:
    """Render the flat form view, one field per line."""

    if not projections:
        return "No fields found in JSON"

    lines: list[str] = []
    for item in projections:
        if isinstance(item, FieldProjection):
            lines.append(f"  {item.label}: {item.value!r}  [{item.path}]")
        else:
            lines.append(f"== {item.label} ==")
    return "\n".join(lines)


def render_result_summary(result: OperationResult | AggregateResult) -> str:
    """Render one-screen summary of an operation outcome."""

    if isinstance(result, AggregateResult):
        succeeded = sum(1 for item in result.results if item.success)
        lines = [
            "Multi-document operation "
            + ("completed" if result.success else "failed")
            + f": {succeeded}/{len(result.results)} documents succeeded"
        ]
        for item in result.results:
            status = "ok" if item.success else "FAILED"
            suffix = f" ({item.message})" if item.message else ""
            lines.append(f"  document {item.index + 1}: {status}{suffix}")
        return "\n".join(lines)

    if result.success:
        return f"Operation executed successfully (status={result.status})"
    return f"Error: {result.message or 'Unknown error'} (status={result.status})"
