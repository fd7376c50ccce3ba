"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to an error category and is referenced by the
corresponding :class:`~agentsandbox.exceptions.SandboxError` subclass, so
shell wrappers can tell a rejected credential from an unreachable API
without parsing stderr.

Example::

    $ agentsandbox tools call sandbox_list_sessions
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- run `agentsandbox auth login`
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments or tool parameters (including malformed upload payloads)."""

EXIT_AUTH_FAILURE = 3
"""No usable credential, or the API rejected it (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested sandbox resource does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The sandbox API failed or returned an unreadable response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
