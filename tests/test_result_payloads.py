from __future__ import annotations

from core.documents.models import (
    AggregateResult,
    DocumentOutcome,
    OperationResult,
    dump_result,
)


def test_single_result_always_carries_success_and_data() -> None:
    assert dump_result(OperationResult(success=False, message="Error: x", status=0)) == {
        "success": False,
        "data": None,
        "message": "Error: x",
        "status": 0,
    }
    assert dump_result(OperationResult(success=True)) == {"success": True, "data": None}


def test_single_result_keeps_falsy_status_and_message() -> None:
    assert dump_result(OperationResult(success=False, data=[], message="", status=0)) == {
        "success": False,
        "data": [],
        "message": "",
        "status": 0,
    }


def test_aggregate_result_uses_wire_names() -> None:
    result = AggregateResult(
        success=True,
        results=[DocumentOutcome(index=0, success=True, data={"id": "1"})],
    )

    payload = dump_result(result)

    assert payload["multiDocument"] is True
    assert payload["data"] == payload["results"]
    assert payload["results"][0] == {"index": 0, "success": True, "data": {"id": "1"}, "message": None}
