from __future__ import annotations

import pytest

from core.documents.paths import FieldPath, IndexSegment, KeySegment, coerce_path
from core.utils.errors import PathResolutionError


def test_parse_mixed_key_and_index_segments() -> None:
    path = FieldPath.parse("Document[2].Fields[0].Values[1]")

    assert path.segments == (
        IndexSegment("Document", 2),
        IndexSegment("Fields", 0),
        IndexSegment("Values", 1),
    )


def test_parse_single_document_path() -> None:
    path = FieldPath.parse("Document.Fields[3].fieldName")

    assert path.segments == (
        KeySegment("Document"),
        IndexSegment("Fields", 3),
        KeySegment("fieldName"),
    )


def test_builder_and_text_form_agree() -> None:
    built = FieldPath.root("Document", 1).index("Fields", 0).key("fieldName")

    assert str(built) == "Document[1].Fields[0].fieldName"
    assert FieldPath.parse(str(built)) == built


@pytest.mark.parametrize("text", ["", "Document..formName", "Fields[x]", "Fields[0", "[0]"])
def test_parse_rejects_malformed_paths(text: str) -> None:
    with pytest.raises(PathResolutionError):
        FieldPath.parse(text)


def test_coerce_path_passes_field_path_through() -> None:
    path = FieldPath.root("Document")

    assert coerce_path(path) is path
    assert coerce_path("Document") == path
