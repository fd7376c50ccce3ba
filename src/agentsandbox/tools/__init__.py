"""Sandbox tools exposed to the agent host.

Each tool follows the host convention ``execute(tool_call_id, params)``
returning ``{"content": [{"type": "text", "text": ...}], "details": {...}}``.
"""

from agentsandbox.tools.base import SandboxTool, ToolResult, truncate
from agentsandbox.tools.files import decode_base64_payload
from agentsandbox.tools.registry import TOOL_CLASSES, ToolRegistry, create_tools

__all__ = [
    "SandboxTool",
    "TOOL_CLASSES",
    "ToolRegistry",
    "ToolResult",
    "create_tools",
    "decode_base64_payload",
    "truncate",
]
