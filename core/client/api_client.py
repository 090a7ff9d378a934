"""Async HTTP client for the upstream document API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from core.client.config import ClientConfig
from core.documents.models import OperationResult

logger = logging.getLogger("docapi.client")

_BODY_METHODS = {"POST", "PUT"}


class DocumentApiClient:
    """Issue one request per call and report it as an ``OperationResult``.

    Transport failures never raise; they come back as ``success=False`` with
    ``status=0``.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        method = method.upper()
        query = {
            key: value
            for key, value in (params or {}).items()
            if value is not None and value != ""
        }
        content: str | None = None
        if data is not None and method in _BODY_METHODS:
            content = data if isinstance(data, str) else _encode_json(data)

        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    f"{self.config.endpoint}{path}",
                    params=query or None,
                    content=content,
                )
        except httpx.HTTPError as exc:
            logger.error("request failed: %s %s: %s", method, path, exc)
            return OperationResult(success=False, status=0, message=f"Error: {exc}")

        return OperationResult(
            success=response.is_success,
            status=response.status_code,
            data=_decode_body(response),
        )

    async def test_auth(self) -> OperationResult:
        """Probe the documents endpoint with the configured credentials."""

        try:
            async with self._client() as client:
                response = await client.request("OPTIONS", f"{self.config.endpoint}/documents")
        except httpx.HTTPError as exc:
            logger.error("authentication probe failed: %s", exc)
            return OperationResult(success=False, status=0, message=f"Error: {exc}")

        return OperationResult(
            success=response.is_success,
            status=response.status_code,
            message=(
                "Authentication successful" if response.is_success else "Authentication failed"
            ),
        )

    def _client(self) -> httpx.AsyncClient:
        auth = (
            httpx.BasicAuth(self.config.username, self.config.password)
            if self.config.has_credentials
            else None
        )
        return httpx.AsyncClient(
            auth=auth,
            headers={"Content-Type": "application/json"},
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )


def _encode_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


def _decode_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text
