"""Tool registry -- construction and name-based dispatch.

:func:`create_tools` builds every sandbox tool bound to one host context.
:class:`ToolRegistry` keys them by :attr:`~SandboxTool.name` so a host (or
the ``tools call`` command) can dispatch ``execute`` by name.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from agentsandbox.auth.resolver import TokenResolver
from agentsandbox.exceptions import InvalidUsageError
from agentsandbox.models import SandboxSettings, ToolContext
from agentsandbox.tools.base import SandboxTool, ToolResult
from agentsandbox.tools.executions import GetExecutionTool
from agentsandbox.tools.files import (
    DeleteFileTool,
    DownloadFileTool,
    ListFilesTool,
    UploadFileTool,
)
from agentsandbox.tools.sessions import (
    CreateSessionTool,
    DestroySessionTool,
    ExecuteTool,
    GetSessionTool,
    InjectFilesTool,
    ListSessionsTool,
)

TOOL_CLASSES: list[type[SandboxTool]] = [
    ExecuteTool,
    CreateSessionTool,
    ListSessionsTool,
    GetSessionTool,
    DestroySessionTool,
    InjectFilesTool,
    DownloadFileTool,
    ListFilesTool,
    UploadFileTool,
    DeleteFileTool,
    GetExecutionTool,
]


def create_tools(
    ctx: ToolContext,
    settings: Optional[SandboxSettings] = None,
    resolver: Optional[TokenResolver] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> list[SandboxTool]:
    """Instantiate every sandbox tool for *ctx*.

    All tools share one :class:`~agentsandbox.auth.resolver.TokenResolver`.

    Args:
        ctx: Host context (configuration and agent directory).
        settings: Active settings; defaults apply when omitted.
        resolver: Token resolver to share; built from *settings* by default.
        transport: Optional httpx transport handed to every client.
    """
    settings = settings or SandboxSettings()
    resolver = resolver or TokenResolver(settings)
    return [cls(ctx, settings, resolver=resolver, transport=transport) for cls in TOOL_CLASSES]


class ToolRegistry:
    """Registry and dispatcher for sandbox tools.

    Example::

        registry = ToolRegistry.from_context(ctx, settings)
        result = registry.execute("sandbox_list_sessions", "call-1", {})
    """

    def __init__(self) -> None:
        self._tools: dict[str, SandboxTool] = {}

    @classmethod
    def from_context(
        cls,
        ctx: ToolContext,
        settings: Optional[SandboxSettings] = None,
        resolver: Optional[TokenResolver] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> ToolRegistry:
        registry = cls()
        for tool in create_tools(ctx, settings, resolver=resolver, transport=transport):
            registry.register(tool)
        return registry

    def register(self, tool: SandboxTool) -> None:
        """Register *tool* under its name, replacing any previous one."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> SandboxTool:
        """Look up a tool by name.

        Raises:
            InvalidUsageError: If no tool is registered under *name*.
        """
        tool = self._tools.get(name)
        if tool is None:
            available = ", ".join(sorted(self._tools)) or "(none)"
            raise InvalidUsageError(f"Unknown tool '{name}'. Available tools: {available}")
        return tool

    def names(self) -> list[str]:
        return list(self._tools)

    def tools(self) -> list[SandboxTool]:
        return list(self._tools.values())

    def execute(
        self, name: str, tool_call_id: str, params: Optional[dict[str, Any]] = None
    ) -> ToolResult:
        return self.get(name).execute(tool_call_id, params)
