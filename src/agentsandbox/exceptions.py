"""Exception hierarchy for agentsandbox.

All exceptions inherit from :class:`SandboxError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`agentsandbox.exit_codes`.
The CLI entry point in :func:`agentsandbox.app.main` catches ``SandboxError``
and exits with the matching code; tool hosts receive the same exceptions
and surface ``str(exc)`` to the caller.

Subclass hierarchy::

    SandboxError (exit 1)
    +-- InvalidUsageError          (exit 2)
    |   +-- InvalidEncodingError
    +-- AuthError                  (exit 3)
    |   +-- NoProfileFoundError
    |   +-- MissingAgentContextError
    |   +-- MissingCredentialError
    |   +-- AllTokensExpiredError
    |   +-- OAuthStateMismatchError
    |   +-- TokenExchangeError
    |   +-- TokenRefreshError
    +-- ApiRequestError            (exit 3/4/5 by status)
    +-- ConnectionError_           (exit 6)
    +-- ResponseParseError         (exit 5)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import Optional

from agentsandbox.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

LOGIN_HINT = (
    "Tell the user to run `agentsandbox auth login` in their terminal, or set "
    "the SANDBOX_API_KEY environment variable. Do NOT attempt the OAuth flow "
    "in this conversation -- it requires a separate CLI command."
)


class SandboxError(Exception):
    """Base exception for all agentsandbox errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SandboxError):
    """Raised for invalid CLI arguments or tool parameters."""

    exit_code = EXIT_INVALID_USAGE


class InvalidEncodingError(InvalidUsageError):
    """Raised when an upload payload is not valid base64."""


class AuthError(SandboxError):
    """Raised when no usable credential can be produced or a login step fails."""

    exit_code = EXIT_AUTH_FAILURE


class NoProfileFoundError(AuthError):
    """The host configuration has no auth profile for the sandbox provider."""


class MissingAgentContextError(AuthError):
    """A tool ran without the agent directory that holds the credential store."""


class MissingCredentialError(AuthError):
    """The profile is configured but the credential store has no record for it."""


class AllTokensExpiredError(AuthError):
    """The record has no key, no fresh access token and no refresh token."""


class OAuthStateMismatchError(AuthError):
    """The ``state`` returned by the authorization server differs from ours."""


class TokenExchangeError(AuthError):
    """The authorization-code exchange at the token endpoint failed."""


class TokenRefreshError(AuthError):
    """The refresh-token grant at the token endpoint failed."""


class ApiRequestError(SandboxError):
    """Raised when the sandbox API answers with a non-2xx status.

    The message always has the shape
    ``API <METHOD> <path> failed (<status>): <body>``; the status is also
    kept as :attr:`status_code` so callers need not parse it back out.

    Args:
        method: HTTP method of the failed request.
        path: Request path relative to the API base URL.
        status_code: HTTP status returned by the server.
        body: Raw response text.
    """

    def __init__(self, method: str, path: str, status_code: int, body: str):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
        if status_code in (401, 403):
            code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            code = EXIT_NOT_FOUND
        else:
            code = EXIT_SERVER_ERROR
        super().__init__(
            f"API {method} {path} failed ({status_code}): {body}", exit_code=code
        )


class ConnectionError_(SandboxError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseParseError(SandboxError):
    """Raised when a successful response declares JSON but cannot be decoded."""

    exit_code = EXIT_SERVER_ERROR


class ConfigError(SandboxError):
    """Raised for configuration problems (invalid settings, unreadable credential store)."""

    exit_code = EXIT_GENERIC_FAILURE


def status_of(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by *exc*, or ``None`` when it has none."""
    return getattr(exc, "status_code", None)
