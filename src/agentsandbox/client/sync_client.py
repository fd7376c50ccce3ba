"""Synchronous HTTP client for the sandbox REST API.

:class:`SandboxClient` wraps :class:`httpx.Client` and layers on:

- **Bearer auth** -- every request carries ``Authorization: Bearer <token>``.
- **Body handling** -- JSON bodies for ordinary calls, multipart for uploads.
- **Response classification** -- see :func:`~agentsandbox.client.response.parse_response`.
- **Error mapping** -- non-2xx becomes :class:`~agentsandbox.exceptions.ApiRequestError`,
  transport failures become :class:`~agentsandbox.exceptions.ConnectionError_`.

Calls are not retried here; delete-like operations wrap their call in
:func:`~agentsandbox.client.retry.retry_delete`.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from agentsandbox.client.response import parse_response, raise_for_status
from agentsandbox.exceptions import ConnectionError_
from agentsandbox.models import SandboxSettings
from agentsandbox.output import debug


def encode_segment(value: str) -> str:
    """Percent-encode a path segment, slashes included."""
    return quote(value, safe="")


class SandboxClient:
    """Synchronous client for the sandbox API.

    Must be used as a context manager so the underlying connection pool is
    opened and closed.

    Args:
        settings: Supplies ``base_url`` and ``request_timeout``.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with SandboxClient(settings) as client:
            sessions = client.request("GET", "/v1/sessions", token)
    """

    def __init__(
        self,
        settings: SandboxSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> SandboxClient:
        self._client = httpx.Client(
            base_url=self._settings.base_url,
            timeout=self._settings.request_timeout,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def request(
        self,
        method: str,
        path: str,
        token: str,
        body: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send an authenticated request and return the parsed body.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url`` (segments already encoded).
            token: Bearer token.
            body: JSON-serialisable body; omitted when ``None``.
            params: Query parameters.

        Raises:
            ApiRequestError: On any non-2xx status.
            ConnectionError_: On network or timeout errors.
            ResponseParseError: On a JSON response that does not decode.
        """
        kwargs: dict[str, Any] = {"headers": {"Authorization": f"Bearer {token}"}}
        if body is not None:
            kwargs["json"] = body
        if params:
            kwargs["params"] = params
        return self._send(method, path, **kwargs)

    def upload(
        self,
        path: str,
        token: str,
        content: bytes,
        filename: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """POST *content* as the multipart ``file`` field.

        The multipart ``Content-Type`` (with boundary) is set by httpx.
        """
        kwargs: dict[str, Any] = {
            "headers": {"Authorization": f"Bearer {token}"},
            "files": {"file": (filename, content)},
        }
        if params:
            kwargs["params"] = params
        return self._send("POST", path, **kwargs)

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        assert self._client is not None, "Client not initialised -- use as context manager"

        debug(f"{method} {path}")
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(f"API {method} {path} failed: {exc}") from exc

        raise_for_status(response, method, path)
        return parse_response(response)
