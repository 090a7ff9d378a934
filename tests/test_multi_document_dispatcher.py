from __future__ import annotations

import copy
from typing import Any

import anyio
import pytest

from core.documents import dispatcher
from core.documents.models import (
    AggregateResult,
    MultipleContainer,
    OperationResult,
    SingleContainer,
)
from core.documents.samples import empty_document, sample_multi_document


def _doc(name: str) -> dict[str, Any]:
    return {"applicationName": "App", "formName": name, "Fields": []}


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"Document": _doc("A")}, False),
        ({"Document": [_doc("A")]}, True),
        ({"Document": []}, False),
        ({}, False),
        (None, False),
        ([{"Document": [_doc("A")]}], False),
    ],
)
def test_is_collection_discriminator(payload: Any, expected: bool) -> None:
    assert dispatcher.is_collection(payload) is expected


def test_classify_container_tags_shape() -> None:
    single = dispatcher.classify_container({"Document": _doc("A")})
    multiple = dispatcher.classify_container({"Document": [_doc("A"), _doc("B")]})

    assert isinstance(single, SingleContainer)
    assert single.document["formName"] == "A"
    assert isinstance(multiple, MultipleContainer)
    assert len(multiple.documents) == 2
    assert dispatcher.classify_container({"Document": []}) is None
    assert dispatcher.classify_container({"Other": {}}) is None


def test_normalize_wraps_single_and_keeps_collection_identity() -> None:
    single = {"Document": _doc("A")}
    collection = {"Document": [_doc("A")]}

    assert dispatcher.normalize(single) == {"Document": [_doc("A")]}
    assert dispatcher.normalize(collection) is collection


def test_normalize_without_document_lifts_empty_document() -> None:
    assert dispatcher.normalize({}) == {"Document": [empty_document()]}
    assert dispatcher.normalize(None) == {"Document": [empty_document()]}


def test_denormalize_inverts_normalize_for_single_document() -> None:
    single = {"Document": _doc("A")}

    assert dispatcher.denormalize(dispatcher.normalize(single)) == single


def test_denormalize_drops_documents_after_first() -> None:
    collection = {"Document": [_doc("A"), _doc("B"), _doc("C")]}

    lowered = dispatcher.denormalize(collection)

    assert lowered == {"Document": _doc("A")}
    assert dispatcher.normalize(lowered) == {"Document": [_doc("A")]}
    assert len(collection["Document"]) == 3


def test_denormalize_leaves_single_document_unchanged() -> None:
    single = {"Document": _doc("A")}

    assert dispatcher.denormalize(single) is single


def test_add_document_appends_empty_document_without_mutating_input() -> None:
    collection = {"Document": [_doc("A")]}
    snapshot = copy.deepcopy(collection)

    updated = dispatcher.add_document(collection)

    assert collection == snapshot
    assert updated["Document"] == [_doc("A"), empty_document()]


def test_add_document_lifts_single_document_first() -> None:
    updated = dispatcher.add_document({"Document": _doc("A")})

    assert updated == {"Document": [_doc("A"), empty_document()]}


def test_add_then_remove_last_restores_collection() -> None:
    collection = {"Document": [_doc("A")]}

    restored = dispatcher.remove_last(dispatcher.add_document(collection))

    assert restored == collection


def test_remove_last_keeps_only_document() -> None:
    collection = {"Document": [_doc("A")]}

    assert dispatcher.remove_last(collection) is collection


def test_remove_last_drops_final_document() -> None:
    collection = sample_multi_document()

    updated = dispatcher.remove_last(collection)

    assert updated == {"Document": [collection["Document"][0]]}
    assert len(collection["Document"]) == 2


def test_document_count() -> None:
    assert dispatcher.document_count(sample_multi_document()) == 2
    assert dispatcher.document_count({"Document": _doc("A")}) == 0


@pytest.mark.anyio
async def test_execute_passes_single_document_result_through_unchanged() -> None:
    expected = OperationResult(success=True, data={"id": "1"}, status=201)
    received: list[Any] = []

    async def operation(payload: dict[str, Any]) -> OperationResult:
        received.append(payload)
        return expected

    single = {"Document": _doc("A")}
    result = await dispatcher.execute(single, operation)

    assert result is expected
    assert received == [single]


@pytest.mark.anyio
async def test_execute_runs_documents_sequentially_and_aggregates() -> None:
    events: list[str] = []

    async def operation(payload: dict[str, Any]) -> OperationResult:
        name = payload["Document"]["formName"]
        events.append(f"start:{name}")
        await anyio.sleep(0.01)
        events.append(f"end:{name}")
        if name == "B":
            raise RuntimeError("x")
        return OperationResult(success=True, data={"form": name})

    collection = {"Document": [_doc("A"), _doc("B"), _doc("C")]}
    result = await dispatcher.execute(collection, operation)

    assert events == ["start:A", "end:A", "start:B", "end:B", "start:C", "end:C"]
    assert isinstance(result, AggregateResult)
    assert result.success is True
    assert result.all_succeeded is False
    assert [(item.index, item.success) for item in result.results] == [
        (0, True),
        (1, False),
        (2, True),
    ]
    assert result.results[1].message == "x"
    assert result.results[0].data == {"form": "A"}

    dumped = result.model_dump(mode="json", by_alias=True)
    assert dumped["multiDocument"] is True
    assert dumped["data"] == dumped["results"]


@pytest.mark.anyio
async def test_execute_records_unsuccessful_results_and_fails_when_all_fail() -> None:
    async def operation(payload: dict[str, Any]) -> OperationResult:
        return OperationResult(success=False, message="denied", data=None, status=403)

    result = await dispatcher.execute({"Document": [_doc("A"), _doc("B")]}, operation)

    assert isinstance(result, AggregateResult)
    assert result.success is False
    assert [item.message for item in result.results] == ["denied", "denied"]


@pytest.mark.anyio
async def test_execute_wraps_each_document_in_single_container() -> None:
    received: list[Any] = []

    async def operation(payload: dict[str, Any]) -> OperationResult:
        received.append(payload)
        return OperationResult(success=True)

    collection = sample_multi_document()
    await dispatcher.execute(collection, operation)

    assert received == [{"Document": document} for document in collection["Document"]]
