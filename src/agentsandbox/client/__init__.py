"""HTTP client module for agentsandbox.

Classes and functions:
    :class:`SandboxClient` -- blocking client backed by :class:`httpx.Client`.
    :func:`retry_delete` -- bounded backoff with 404-as-success for deletes.
    :func:`parse_response` -- 204 / JSON / text response classification.

Example::

    from agentsandbox.client import SandboxClient

    with SandboxClient(settings) as client:
        data = client.request("GET", "/v1/sessions", token)
"""

from agentsandbox.client.response import parse_response
from agentsandbox.client.retry import DeleteOutcome, retry_delete
from agentsandbox.client.sync_client import SandboxClient, encode_segment

__all__ = [
    "DeleteOutcome",
    "SandboxClient",
    "encode_segment",
    "parse_response",
    "retry_delete",
]
