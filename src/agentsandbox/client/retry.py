"""Bounded retry for idempotent delete-like calls.

Deleting something that is already gone is not an error: a 404 ends the
loop immediately as a success. Decision per failure:

=====================================  ==========================================
condition                              action
=====================================  ==========================================
status 404                             success, ``already_gone=True``, no retry
status 429 or 5xx, or no status        sleep ``base_delay * 2**(attempt-1)``, retry
any other 4xx                          raise immediately
attempts exhausted                     raise the last error
=====================================  ==========================================

"No status" covers :class:`~agentsandbox.exceptions.ConnectionError_` and
:class:`~agentsandbox.exceptions.ResponseParseError`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from agentsandbox.exceptions import SandboxError, status_of
from agentsandbox.output import debug


@dataclass
class DeleteOutcome:
    """Result of :func:`retry_delete`.

    Attributes:
        data: Parsed response body; ``None`` when the target was already gone.
        already_gone: ``True`` when the server answered 404.
        attempts: Number of requests made.
    """

    data: Any
    already_gone: bool
    attempts: int


def is_retryable(status: Optional[int]) -> bool:
    if status is None:
        return True
    return status == 429 or 500 <= status <= 599


def retry_delete(
    operation: Callable[[], Any],
    max_attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> DeleteOutcome:
    """Run *operation* under the delete retry policy.

    Args:
        operation: Performs one request and returns its parsed body.
        max_attempts: Total attempts, including the first.
        base_delay: Seconds slept after the first failure; doubles each time.
        sleep: Sleep function; injectable for tests.

    Raises:
        SandboxError: The first non-retryable error, or the last error once
            attempts are exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return DeleteOutcome(data=operation(), already_gone=False, attempts=attempt)
        except SandboxError as exc:
            status = status_of(exc)
            if status == 404:
                return DeleteOutcome(data=None, already_gone=True, attempts=attempt)
            if not is_retryable(status) or attempt == max_attempts:
                raise
            delay = base_delay * 2 ** (attempt - 1)
            debug(
                f"Delete failed ({status or 'no status'}), retrying in {delay}s "
                f"(attempt {attempt}/{max_attempts})"
            )
            sleep(delay)

    raise SandboxError("Delete failed after all retries")  # pragma: no cover
