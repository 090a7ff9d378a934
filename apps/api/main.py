"""FastAPI service backing the document API web console."""

from __future__ import annotations

import base64
import binascii
import hmac
import importlib.metadata
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from core.client.api_client import DocumentApiClient
from core.client.config import load_client_config
from core.documents import dispatcher
from core.documents.models import AggregateResult, dump_result
from core.documents.projector import mutate, project
from core.documents.samples import sample_json
from core.operations.registry import find_operation, get_operation, list_supported_operations
from core.orchestrator.pipeline import run_operation
from core.utils.errors import MissingParametersError, PathResolutionError, UnknownOperationError

app = FastAPI(title="docapi-client API", version="0.1.0")
logger = logging.getLogger("docapi.api")

_BASIC_AUTH_REALM = "docapi"
_REQUEST_ID_HEADER = "X-Docapi-Request-Id"
_STATIC_DIR = Path(__file__).resolve().parent / "static"
_STATIC_MEDIA_TYPES = {
    "web_console.js": "application/javascript",
    "web_console.css": "text/css",
}
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store, max-age=0",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self'; style-src 'self'; "
        "connect-src 'self'; img-src 'self' data:; frame-ancestors 'none'"
    ),
}


class Credentials(BaseModel):
    model_config = ConfigDict(extra="forbid")

    endpoint: str | None = None
    username: str | None = None
    password: str | None = None


class JsonBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    json_value: Any = Field(default=None, alias="json")


class FieldUpdateBody(JsonBody):
    path: str
    value: str


class AuthTestBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    credentials: Credentials = Field(default_factory=Credentials)


class ExecuteBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    json_value: Any = Field(default=None, alias="json")
    credentials: Credentials = Field(default_factory=Credentials)


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}
        self.headers = headers


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.exception_handler(ApiRequestError)
async def api_request_error_handler(request: Request, exc: ApiRequestError) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
        extra_headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    request_id = _request_id_from_request(request)
    return _error_response(
        status_code=400,
        error_code="INVALID_ARGUMENT",
        message="request body validation failed",
        request_id=request_id,
        detail={"errors": json.loads(json.dumps(exc.errors(), default=str))},
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta", response_model=None)
async def meta_v1(request: Request) -> JSONResponse:
    """Operation catalog for the console bootstrap."""

    request_id = _request_id_from_request(request)
    auth_error = _guard_access(request, request_id, enabled=_meta_enabled(), surface="meta")
    if auth_error is not None:
        return auth_error

    operations = [get_operation(name) for name in list_supported_operations()]
    payload = {
        "version": app.version,
        "package_version": _package_version(),
        "supported_operations": [operation.name for operation in operations],
        "operations": [
            operation.model_dump(mode="json", exclude={"default_json"})
            for operation in operations
        ],
        "default_endpoint": load_client_config().endpoint,
    }
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.get("/v1/samples/{operation_name}")
async def sample_v1(request: Request, operation_name: str, multi: bool = False) -> dict[str, Any]:
    """Starting JSON body for an operation."""

    _require_basic_auth(request)
    if find_operation(operation_name) is None:
        raise _unknown_operation(operation_name)
    return {"json": sample_json(operation_name, multi=multi)}


@app.post("/v1/fields")
async def fields_v1(request: Request, body: JsonBody) -> dict[str, Any]:
    """Project a document container into form fields."""

    _require_basic_auth(request)
    return _fields_payload(body.json_value)


@app.post("/v1/fields/update")
async def update_field_v1(request: Request, body: FieldUpdateBody) -> dict[str, Any]:
    """Write one edited form value back into the JSON."""

    _require_basic_auth(request)
    try:
        updated = mutate(body.json_value, body.path, body.value)
    except PathResolutionError as exc:
        raise ApiRequestError(
            status_code=422,
            error_code="PATH_NOT_RESOLVED",
            message=str(exc),
            detail={"path": exc.path, "segment": exc.segment},
        ) from exc

    _log_event(
        logging.DEBUG,
        "field_updated",
        _request_id_from_request(request),
        path=body.path,
    )
    payload = _fields_payload(updated)
    payload["json"] = updated
    return payload


@app.post("/v1/documents/multi")
async def to_multi_v1(request: Request, body: JsonBody) -> dict[str, Any]:
    _require_basic_auth(request)
    return _document_payload(dispatcher.normalize(body.json_value))


@app.post("/v1/documents/single")
async def to_single_v1(request: Request, body: JsonBody) -> dict[str, Any]:
    """Keep only the first document; later documents are discarded."""

    _require_basic_auth(request)
    return _document_payload(dispatcher.denormalize(body.json_value))


@app.post("/v1/documents/add")
async def add_document_v1(request: Request, body: JsonBody) -> dict[str, Any]:
    _require_basic_auth(request)
    return _document_payload(dispatcher.add_document(body.json_value))


@app.post("/v1/documents/remove-last")
async def remove_last_document_v1(request: Request, body: JsonBody) -> dict[str, Any]:
    _require_basic_auth(request)
    return _document_payload(dispatcher.remove_last(body.json_value))


@app.post("/v1/auth/test", response_model=None)
async def auth_test_v1(request: Request, body: AuthTestBody) -> JSONResponse:
    """Probe the upstream API with the supplied credentials."""

    _require_basic_auth(request)
    request_id = _request_id_from_request(request)
    client = _build_client(body.credentials)
    result = await client.test_auth()
    _log_event(
        logging.INFO,
        "auth_test",
        request_id,
        endpoint=client.config.endpoint,
        success=result.success,
        status=result.status,
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content=result.model_dump(mode="json"),
    )


@app.post("/v1/execute", response_model=None)
async def execute_v1(request: Request, body: ExecuteBody) -> JSONResponse:
    """Submit one operation, fanning out per document for collections."""

    _require_basic_auth(request)
    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    client = _build_client(body.credentials)

    _log_event(
        logging.INFO,
        "start",
        request_id,
        operation=body.operation,
        endpoint=client.config.endpoint,
        multi_document=dispatcher.is_collection(body.json_value),
        document_count=dispatcher.document_count(body.json_value),
    )

    try:
        result = await run_operation(
            client,
            body.operation,
            body.parameters,
            body.json_value,
        )
    except UnknownOperationError as exc:
        raise _unknown_operation(exc.operation) from exc
    except MissingParametersError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="MISSING_REQUIRED_PARAMETERS",
            message=str(exc),
            detail={"missing": exc.missing},
        ) from exc

    _log_event(
        logging.INFO,
        "done",
        request_id,
        operation=body.operation,
        success=result.success,
        multi_document=isinstance(result, AggregateResult),
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content={"result": dump_result(result)},
    )


@app.get("/web", response_model=None)
async def web_console(request: Request) -> HTMLResponse | JSONResponse:
    """Built-in web console entry point."""

    request_id = _request_id_from_request(request)
    auth_error = _guard_access(
        request, request_id, enabled=_web_console_enabled(), surface="web console"
    )
    if auth_error is not None:
        return auth_error

    html = (_STATIC_DIR / "web_console.html").read_text(encoding="utf-8")
    return HTMLResponse(
        content=html,
        headers={_REQUEST_ID_HEADER: request_id, **_SECURITY_HEADERS},
    )


@app.get("/web/static/{asset_name}", response_model=None)
async def web_console_asset(request: Request, asset_name: str) -> Response:
    request_id = _request_id_from_request(request)
    auth_error = _guard_access(
        request, request_id, enabled=_web_console_enabled(), surface="web console"
    )
    if auth_error is not None:
        return auth_error

    media_type = _STATIC_MEDIA_TYPES.get(asset_name)
    if media_type is None:
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message="asset not found",
            request_id=request_id,
            detail={"path": request.url.path},
        )

    content = (_STATIC_DIR / asset_name).read_text(encoding="utf-8")
    return Response(
        content=content,
        media_type=media_type,
        headers={_REQUEST_ID_HEADER: request_id, **_SECURITY_HEADERS},
    )


def _fields_payload(json_value: Any) -> dict[str, Any]:
    return {
        "multi_document": dispatcher.is_collection(json_value),
        "document_count": dispatcher.document_count(json_value),
        "fields": [item.model_dump(mode="json") for item in project(json_value)],
    }


def _document_payload(json_value: Any) -> dict[str, Any]:
    return {
        "json": json_value,
        "document_count": dispatcher.document_count(json_value),
    }


def _build_client(credentials: Credentials) -> DocumentApiClient:
    config = load_client_config(
        endpoint=credentials.endpoint,
        username=credentials.username,
        password=credentials.password,
    )
    return DocumentApiClient(config, transport=_upstream_transport())


def _upstream_transport() -> httpx.AsyncBaseTransport | None:
    """Transport override hook; ``None`` uses the default network transport."""

    return None


def _unknown_operation(operation_name: str) -> ApiRequestError:
    return ApiRequestError(
        status_code=404,
        error_code="UNKNOWN_OPERATION",
        message="unsupported operation",
        detail={
            "operation": operation_name,
            "supported_operations": list_supported_operations(),
        },
    )


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _guard_access(
    request: Request, request_id: str, *, enabled: bool, surface: str
) -> JSONResponse | None:
    if not enabled:
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message=f"{surface} is disabled",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    return _basic_auth_error_response_if_needed(request, request_id)


def _web_console_enabled() -> bool:
    return _env_flag("DOCAPI_ENABLE_WEB_CONSOLE", default="1")


def _meta_enabled() -> bool:
    return _env_flag("DOCAPI_ENABLE_META", default="1")


def _env_flag(name: str, *, default: str) -> bool:
    raw = os.getenv(name, default).strip().lower()
    return raw not in {"0", "false", "off", "no"}


def _basic_auth_error_response_if_needed(request: Request, request_id: str) -> JSONResponse | None:
    expected = _basic_auth_credentials()
    if expected is None:
        return None

    if _request_has_valid_basic_auth(request, expected):
        return None

    return _error_response(
        status_code=401,
        error_code="UNAUTHORIZED",
        message="authentication required",
        request_id=request_id,
        detail={
            "path": request.url.path,
            "auth_enabled": True,
        },
        extra_headers={"WWW-Authenticate": f'Basic realm="{_BASIC_AUTH_REALM}"'},
    )


def _require_basic_auth(request: Request) -> None:
    expected = _basic_auth_credentials()
    if expected is None or _request_has_valid_basic_auth(request, expected):
        return

    raise ApiRequestError(
        status_code=401,
        error_code="UNAUTHORIZED",
        message="authentication required",
        detail={"path": request.url.path, "auth_enabled": True},
        headers={"WWW-Authenticate": f'Basic realm="{_BASIC_AUTH_REALM}"'},
    )


def _basic_auth_credentials() -> tuple[str, str] | None:
    raw = os.getenv("DOCAPI_WEB_BASIC_AUTH")
    if raw is None:
        return None

    candidate = raw.strip()
    if ":" not in candidate:
        return None

    username, password = candidate.split(":", 1)
    if not username or not password:
        return None
    return username, password


def _request_has_valid_basic_auth(request: Request, expected: tuple[str, str]) -> bool:
    auth_header = request.headers.get("authorization")
    if auth_header is None:
        return False

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "basic" or not token:
        return False

    try:
        decoded = base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
    except (ValueError, UnicodeDecodeError, binascii.Error):
        return False

    if ":" not in decoded:
        return False
    username, password = decoded.split(":", 1)
    expected_username, expected_password = expected
    return hmac.compare_digest(username, expected_username) and hmac.compare_digest(
        password, expected_password
    )


def _package_version() -> str:
    try:
        return importlib.metadata.version("docapi-client")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
    extra_headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    headers = {_REQUEST_ID_HEADER: request_id}
    if extra_headers is not None:
        headers.update(extra_headers)

    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))
