"""Response classification for sandbox API calls.

:func:`parse_response` turns a successful :class:`httpx.Response` into the
value tools work with, and :func:`raise_for_status` turns a failed one into
an :class:`~agentsandbox.exceptions.ApiRequestError`.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from agentsandbox.exceptions import ApiRequestError, ResponseParseError


def raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise :class:`ApiRequestError` with method, path, status and raw body on non-2xx."""
    if not response.is_success:
        raise ApiRequestError(method, path, response.status_code, response.text)


def parse_response(response: httpx.Response) -> Any:
    """Extract the body of a successful response.

    * ``204 No Content`` yields ``{}`` whatever the declared content type.
    * A JSON content type yields the decoded value; an empty body yields ``{}``.
    * Any other content type yields the raw text.

    Raises:
        ResponseParseError: If the body is declared JSON but does not decode.
    """
    if response.status_code == 204:
        return {}

    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        text = response.text
        if not text:
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(
                f"Invalid JSON in response ({response.status_code}): {exc}"
            ) from exc

    return response.text
