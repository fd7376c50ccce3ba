"""OAuth2 Authorization Code flow with PKCE against the sandbox auth server.

This module mints the credentials stored by ``agentsandbox auth login`` and
refreshes them on behalf of :class:`~agentsandbox.auth.resolver.TokenResolver`.
It implements the Authorization Code grant with PKCE (:rfc:`7636`):

1. Generate a random verifier, an ``S256`` challenge and a CSRF ``state``.
2. Either prompt the user to paste the redirect URL (remote/headless hosts),
   or listen on the fixed local callback port and open the browser.
3. Check the returned ``state`` and exchange the code for tokens.

If the local listener cannot bind its port, times out, or receives a
redirect without a code, the flow falls back to the paste prompt; both
paths end in the same :func:`exchange_code` call.

Login is never started from inside a tool call -- tools only ever call
:func:`refresh_access_token`.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import httpx

from agentsandbox.exceptions import (
    AuthError,
    OAuthStateMismatchError,
    TokenExchangeError,
    TokenRefreshError,
)
from agentsandbox.models import (
    CallbackParams,
    OAuthTokens,
    PkceState,
    RefreshedTokens,
    SandboxSettings,
)
from agentsandbox.output import debug

OpenUrl = Callable[[str], Any]
Prompt = Callable[[str], str]
Clock = Callable[[], float]

_SUCCESS_PAGE = "<html><body><h1>Authorized. You can close this tab.</h1></body></html>"
_FAILURE_PAGE = (
    "<html><body><h1>No authorization code received.</h1>"
    "<p>Return to the terminal and paste the redirect URL.</p></body></html>"
)


class CallbackListenerError(AuthError):
    """The local callback listener could not deliver a code; the flow falls back to the prompt."""


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE ``(code_verifier, code_challenge)`` pair.

    The verifier is 32 random bytes, base64url-encoded without padding
    (43 characters). The challenge is ``base64url(sha256(verifier))``.
    """
    code_verifier = _b64url(secrets.token_bytes(32))
    code_challenge = _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())
    return code_verifier, code_challenge


def generate_state() -> str:
    """Return a 16-byte random CSRF state as 32 hex characters."""
    return secrets.token_hex(16)


def new_pkce_state() -> PkceState:
    verifier, challenge = generate_pkce_pair()
    return PkceState(verifier=verifier, challenge=challenge, state=generate_state())


def build_authorization_url(settings: SandboxSettings, pkce: PkceState) -> str:
    params = {
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "response_type": "code",
        "code_challenge": pkce.challenge,
        "code_challenge_method": "S256",
        "state": pkce.state,
        "scope": settings.scope,
    }
    return f"{settings.authorize_url}?{urlencode(params)}"


def parse_callback_input(text: str) -> CallbackParams:
    """Parse a pasted redirect URL or a bare authorization code.

    A value with a scheme and host is treated as the redirect URL and must
    carry a ``code`` query parameter; ``state`` is optional. Anything else
    is taken as the code itself after trimming.

    Raises:
        AuthError: If the input is empty or a URL without ``code``.
    """
    trimmed = text.strip()
    if not trimmed:
        raise AuthError("No authorization code provided")

    parsed = urlparse(trimmed)
    if parsed.scheme and parsed.netloc:
        query = parse_qs(parsed.query)
        code = query.get("code", [None])[0]
        if not code:
            raise AuthError("Redirect URL has no 'code' parameter")
        return CallbackParams(code=code, state=query.get("state", [None])[0])

    return CallbackParams(code=trimmed)


def check_state(params: CallbackParams, expected: str) -> None:
    """Reject a returned ``state`` that differs from ours; a missing one is tolerated."""
    if params.state and params.state != expected:
        raise OAuthStateMismatchError("OAuth state mismatch")


def _post_token_request(
    settings: SandboxSettings,
    data: dict[str, str],
    error_cls: type[AuthError],
    label: str,
) -> dict[str, Any]:
    """POST a form-encoded grant to the token endpoint and return the JSON body."""
    try:
        response = httpx.post(
            settings.token_url,
            data=data,
            headers={"Accept": "application/json"},
            timeout=settings.request_timeout,
        )
    except httpx.HTTPError as exc:
        raise error_cls(f"{label} failed: {exc}") from exc

    if not response.is_success:
        raise error_cls(f"{label} failed ({response.status_code}): {response.text}")

    try:
        token_data = response.json()
    except ValueError as exc:
        raise error_cls(f"{label} returned invalid JSON: {response.text}") from exc

    if not isinstance(token_data, dict) or "access_token" not in token_data:
        raise error_cls(f"{label} response missing 'access_token' field")
    return token_data


def _expires_at(
    token_data: dict[str, Any], clock: Clock, error_cls: type[AuthError], label: str
) -> int:
    """Absolute expiry in epoch ms; a missing or null ``expires_in`` means one hour."""
    raw = token_data.get("expires_in")
    if raw is None:
        raw = 3600
    try:
        expires_in = float(raw)
    except (TypeError, ValueError) as exc:
        raise error_cls(f"{label} returned invalid 'expires_in': {raw!r}") from exc
    return int(clock() * 1000 + expires_in * 1000)


def exchange_code(
    settings: SandboxSettings,
    code: str,
    code_verifier: str,
    clock: Clock = time.time,
) -> OAuthTokens:
    """Exchange an authorization code for tokens.

    Returns:
        Access and refresh tokens, the absolute expiry in epoch
        milliseconds, and the optional ``email`` / permanent ``api_key``.

    Raises:
        TokenExchangeError: On transport errors, non-2xx responses (with the
            body embedded) or a response without ``access_token``.
    """
    token_data = _post_token_request(
        settings,
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": settings.redirect_uri,
            "client_id": settings.client_id,
            "code_verifier": code_verifier,
        },
        TokenExchangeError,
        "Token exchange",
    )
    return OAuthTokens(
        access_token=token_data["access_token"],
        refresh_token=token_data.get("refresh_token") or "",
        expires_at=_expires_at(token_data, clock, TokenExchangeError, "Token exchange"),
        email=token_data.get("email"),
        api_key=token_data.get("api_key"),
    )


def refresh_access_token(
    settings: SandboxSettings,
    refresh_token: str,
    clock: Clock = time.time,
) -> RefreshedTokens:
    """Exchange *refresh_token* for a new access token.

    The server rotates the refresh token; callers must persist the one
    returned here. The old token is only reused when the server omits it.

    Raises:
        TokenRefreshError: On transport errors or non-2xx responses (with
            the raw body embedded).
    """
    token_data = _post_token_request(
        settings,
        {"grant_type": "refresh_token", "refresh_token": refresh_token},
        TokenRefreshError,
        "Token refresh",
    )
    return RefreshedTokens(
        access_token=token_data["access_token"],
        refresh_token=token_data.get("refresh_token") or refresh_token,
        expires_at=_expires_at(token_data, clock, TokenRefreshError, "Token refresh"),
    )


class OAuthFlow:
    """Run one interactive or headless PKCE authorization.

    Args:
        settings: Endpoints, client id, callback port and timeouts.
        clock: Returns the current time in seconds; injectable for tests.

    Example::

        flow = OAuthFlow(settings)
        tokens = flow.run(is_remote=False, open_url=webbrowser.open, prompt=input)
    """

    def __init__(self, settings: SandboxSettings, clock: Clock = time.time) -> None:
        self._settings = settings
        self._clock = clock

    def run(self, is_remote: bool, open_url: OpenUrl, prompt: Prompt) -> OAuthTokens:
        """Authorize and exchange the code.

        Args:
            is_remote: Skip the local listener and browser; only prompt.
            open_url: Opens the authorization URL (usually ``webbrowser.open``).
            prompt: Shows a message and returns the user's pasted answer.

        Raises:
            OAuthStateMismatchError: If the returned state is not ours. No
                token request is sent in that case.
            TokenExchangeError: If the code exchange fails.
        """
        pkce = new_pkce_state()
        auth_url = build_authorization_url(self._settings, pkce)

        if is_remote:
            params = parse_callback_input(
                prompt(f"Open this URL and paste the redirect URL (or code):\n{auth_url}")
            )
        else:
            try:
                params = self._wait_for_callback(auth_url, open_url)
            except CallbackListenerError as exc:
                debug(f"Local OAuth callback unavailable: {exc}")
                params = parse_callback_input(
                    prompt(f"Local callback failed. Paste the redirect URL (or code):\n{auth_url}")
                )

        check_state(params, pkce.state)
        return exchange_code(self._settings, params.code, pkce.verifier, clock=self._clock)

    def _wait_for_callback(self, auth_url: str, open_url: OpenUrl) -> CallbackParams:
        """Serve exactly one request on the callback port and return its parameters.

        The browser is opened only after the port is bound. The server is
        closed after the first request or after ``callback_timeout``.

        Raises:
            CallbackListenerError: If the port cannot be bound, nothing
                arrives in time, or the redirect carries no ``code``.
        """
        result: dict[str, Optional[str]] = {"code": None, "state": None}

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                query = parse_qs(urlparse(self.path).query)
                result["code"] = query.get("code", [None])[0]
                result["state"] = query.get("state", [None])[0]
                page = _SUCCESS_PAGE if result["code"] else _FAILURE_PAGE

                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(page.encode("utf-8"))

            def log_message(self, format: str, *args: Any) -> None:
                pass

        port = self._settings.callback_port
        try:
            server = HTTPServer(("127.0.0.1", port), CallbackHandler)
        except OSError as exc:
            raise CallbackListenerError(f"cannot listen on port {port}: {exc}") from exc

        server.timeout = self._settings.callback_timeout
        try:
            open_url(auth_url)
            server.handle_request()
        finally:
            server.server_close()

        if not result["code"]:
            raise CallbackListenerError("no authorization code received on callback")
        return CallbackParams(code=result["code"], state=result["state"])
