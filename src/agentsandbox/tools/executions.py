"""Execution history lookup."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from agentsandbox.client import SandboxClient, encode_segment
from agentsandbox.tools.base import SandboxTool, ToolParams, ToolResult

# (field, multiline) in display order
_EXECUTION_FIELDS: list[tuple[str, bool]] = [
    ("id", False),
    ("status", False),
    ("language", False),
    ("session_id", False),
    ("code", True),
    ("stdout", True),
    ("stderr", True),
    ("return_code", False),
    ("error", False),
    ("files_count", False),
    ("duration_ms", False),
    ("created_at", False),
]


def format_execution_record(data: dict[str, Any]) -> str:
    parts: list[str] = []
    for field, multiline in _EXECUTION_FIELDS:
        value = data.get(field)
        if value is None or value == "":
            continue
        parts.append(f"{field}:\n{value}" if multiline else f"{field}: {value}")
    return "\n\n".join(parts)


class ExecutionIdParams(ToolParams):
    execution_id: str = Field(description="UUID of the execution to retrieve")


class GetExecutionTool(SandboxTool):
    name = "sandbox_get_execution"
    label = "Get Execution Details"
    description = (
        "Get details of a specific code execution including the code that was run "
        "and its output."
    )
    params_model = ExecutionIdParams

    def run(self, client: SandboxClient, token: str, params: ExecutionIdParams) -> ToolResult:
        path = f"/v1/executions/{encode_segment(params.execution_id)}"
        data = client.request("GET", path, token)
        record = data if isinstance(data, dict) else {}
        details: dict[str, Any] = {"ok": True, "execution_id": params.execution_id, **record}
        return self.text_result(format_execution_record(record), details)
