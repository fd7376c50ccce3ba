"""Abstract base class for sandbox tools.

This module defines the shapes exchanged with the agent host:

- :class:`ToolResult` -- ``{"content": [{"type": "text", "text": ...}], "details": {...}}``,
  the host's return convention for ``execute(id, params)``.
- :class:`SandboxTool` -- the base every tool extends.

To add a tool, subclass :class:`SandboxTool`, provide :attr:`~SandboxTool.name`,
:attr:`~SandboxTool.label`, :attr:`~SandboxTool.description` and
:attr:`~SandboxTool.params_model`, and implement :meth:`~SandboxTool.run`.
:meth:`~SandboxTool.execute` takes care of validating parameters,
resolving the bearer token and opening a :class:`~agentsandbox.client.SandboxClient`.

See Also:
    :mod:`agentsandbox.tools.registry` for registration and dispatch.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentsandbox.auth.resolver import TokenResolver
from agentsandbox.client import SandboxClient
from agentsandbox.exceptions import InvalidUsageError
from agentsandbox.models import SandboxSettings, ToolContext


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """What a tool returns to the host.

    Attributes:
        content: Text blocks shown to the model.
        details: Structured data for the host; always carries ``ok``.
    """

    content: list[TextContent]
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)


class ToolParams(BaseModel):
    """Base for tool parameter models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, noting the original length."""
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n\n... [truncated — {len(text)} chars total]"


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def merge_details(data: Any, **fields: Any) -> dict[str, Any]:
    """Build ``details`` as ``{"ok": True, **fields, **data}`` when *data* is a dict."""
    details: dict[str, Any] = {"ok": True, **fields}
    if isinstance(data, dict):
        details.update(data)
    return details


class SandboxTool(ABC):
    """Base class for all sandbox tools.

    Each tool call is independent: :meth:`execute` resolves a fresh token
    (refreshing and persisting it if needed) and opens its own client.

    Args:
        ctx: Host context used to locate credentials.
        settings: Active settings.
        resolver: Token resolver; one built from *settings* by default.
        transport: Optional httpx transport handed to the client.
    """

    def __init__(
        self,
        ctx: ToolContext,
        settings: SandboxSettings,
        resolver: Optional[TokenResolver] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._ctx = ctx
        self._settings = settings
        self._resolver = resolver or TokenResolver(settings)
        self._transport = transport

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name, e.g. ``"sandbox_execute"``."""
        ...

    @property
    @abstractmethod
    def label(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def params_model(self) -> type[ToolParams]:
        ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema of the tool's parameters, as declared to the host."""
        return self.params_model.model_json_schema()

    def execute(self, tool_call_id: str, params: Optional[dict[str, Any]] = None) -> ToolResult:
        """Validate *params*, resolve a token and run the tool.

        Args:
            tool_call_id: Host-assigned id of this call (unused by the API).
            params: Raw parameters from the host.

        Raises:
            InvalidUsageError: If *params* fail validation.
            AuthError: If no usable credential exists.
            ApiRequestError: If the API rejects the request.
        """
        try:
            parsed = self.params_model.model_validate(params or {})
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid parameters for {self.name}: {exc}") from exc

        token = self._resolver.resolve(self._ctx)
        with SandboxClient(self._settings, transport=self._transport) as client:
            return self.run(client, token, parsed)

    @abstractmethod
    def run(self, client: SandboxClient, token: str, params: Any) -> ToolResult:
        """Perform the API call(s) and format the result."""
        ...

    # ------------------------------------------------------------------ #
    # Result helpers
    # ------------------------------------------------------------------ #

    def text_result(self, text: str, details: dict[str, Any]) -> ToolResult:
        """Wrap *text*, truncated to ``max_output_chars``."""
        return ToolResult(
            content=[TextContent(text=truncate(text, self._settings.max_output_chars))],
            details=details,
        )

    def json_result(self, data: Any, **fields: Any) -> ToolResult:
        """Render *data* as indented JSON with details merged from it."""
        text = data if isinstance(data, str) else dump_json(data)
        return ToolResult(
            content=[TextContent(text=text)],
            details=merge_details(data, **fields),
        )
