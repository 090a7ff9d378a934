from __future__ import annotations

import httpx
import pytest

from apps.api.main import app


@pytest.mark.anyio
async def test_meta_returns_operation_catalog_and_request_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("DOCAPI_ENDPOINT", "http://upstream.test/rest/v1/")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 200
    assert response.headers["X-Docapi-Request-Id"]

    payload = response.json()
    assert payload["version"]
    assert payload["package_version"]
    assert payload["supported_operations"] == [
        "getDocuments",
        "createDocument",
        "updateDocument",
        "routeDocument",
    ]
    assert payload["default_endpoint"] == "http://upstream.test/rest/v1"

    operations = {operation["name"]: operation for operation in payload["operations"]}
    assert operations["createDocument"]["needs_json_editor"] is True
    assert operations["getDocuments"]["needs_json_editor"] is False
    assert "default_json" not in operations["createDocument"]
    required = [param["name"] for param in operations["routeDocument"]["parameters"] if param["required"]]
    assert required == ["applicationName", "formName", "documentIds", "phaseName"]


@pytest.mark.anyio
async def test_samples_endpoint_returns_single_and_multi_bodies() -> None:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        single = await client.get("/v1/samples/createDocument")
        multi = await client.get("/v1/samples/createDocument", params={"multi": "true"})
        empty = await client.get("/v1/samples/getDocuments")
        unknown = await client.get("/v1/samples/dropTables")

    assert isinstance(single.json()["json"]["Document"], dict)
    assert len(multi.json()["json"]["Document"]) == 2
    assert empty.json() == {"json": {}}
    assert unknown.status_code == 404
    assert unknown.json()["error_code"] == "UNKNOWN_OPERATION"
