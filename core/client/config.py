"""Connection settings for the upstream document API."""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_ENDPOINT = "http://localhost:8080/rest/v1"
_DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Credentials and endpoint for one session or request."""

    endpoint: str
    username: str = ""
    password: str = ""
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


def load_client_config(
    endpoint: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> ClientConfig:
    """Build a config from explicit values, falling back to environment defaults."""

    resolved_endpoint = endpoint or os.getenv("DOCAPI_ENDPOINT") or _DEFAULT_ENDPOINT
    return ClientConfig(
        endpoint=resolved_endpoint.rstrip("/"),
        username=username or os.getenv("DOCAPI_USERNAME", ""),
        password=password or os.getenv("DOCAPI_PASSWORD", ""),
        timeout_seconds=_timeout_seconds(),
    )


def _timeout_seconds() -> float:
    raw = os.getenv("DOCAPI_REQUEST_TIMEOUT_SECONDS")
    if raw is None:
        return _DEFAULT_TIMEOUT_SECONDS
    try:
        parsed = float(raw)
    except ValueError:
        return _DEFAULT_TIMEOUT_SECONDS
    return parsed if parsed > 0 else _DEFAULT_TIMEOUT_SECONDS
