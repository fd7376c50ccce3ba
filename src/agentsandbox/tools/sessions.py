"""Code execution and session lifecycle tools."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field

from agentsandbox.client import SandboxClient, encode_segment, retry_delete
from agentsandbox.tools.base import SandboxTool, ToolParams, ToolResult


def _as_dict(data: Any) -> dict[str, Any]:
    return data if isinstance(data, dict) else {}


# ------------------------------------------------------------------ #
# sandbox_execute
# ------------------------------------------------------------------ #


class ExecuteParams(ToolParams):
    language: Literal["python", "bash"] = Field(description="Language to execute")
    code: str = Field(description="Code to run")
    session_id: Optional[str] = Field(
        default=None,
        description="Reuse a persistent session. Omit for a one-shot sandbox.",
    )
    env_vars: Optional[dict[str, str]] = Field(
        default=None, description="Environment variables to inject"
    )
    file_ids: Optional[list[str]] = Field(
        default=None, description="IDs of previously uploaded files to make available"
    )


def format_execution_output(data: dict[str, Any]) -> str:
    """Render stdout, stderr, return code, session and files as text blocks."""
    parts: list[str] = []
    if data.get("stdout"):
        parts.append(f"stdout:\n{data['stdout']}")
    if data.get("stderr"):
        parts.append(f"stderr:\n{data['stderr']}")
    return_code = data.get("return_code")
    parts.append(f"return_code: {'unknown' if return_code is None else return_code}")
    if data.get("session_id"):
        parts.append(f"session_id: {data['session_id']}")
    files = data.get("files") or []
    if files:
        listing = "\n".join(f"  {f.get('filename')} ({f.get('file_id')})" for f in files)
        parts.append(f"files:\n{listing}")
    return "\n\n".join(parts)


class ExecuteTool(SandboxTool):
    """Run Python or Bash code, one-shot or inside an existing session."""

    name = "sandbox_execute"
    label = "Execute Code in Sandbox"
    description = (
        "Execute Python or Bash code in a sandboxed environment. "
        "Returns stdout, stderr, return code, and any output files."
    )
    params_model = ExecuteParams

    def run(self, client: SandboxClient, token: str, params: ExecuteParams) -> ToolResult:
        body: dict[str, Any] = {"language": params.language, "code": params.code}
        if params.session_id:
            body["session_id"] = params.session_id
        if params.env_vars:
            body["env_vars"] = params.env_vars
        if params.file_ids:
            body["file_ids"] = params.file_ids

        data = _as_dict(client.request("POST", "/v1/execute", token, body))
        return_code = data.get("return_code")
        return self.text_result(
            format_execution_output(data),
            {
                "ok": return_code == 0,
                "language": params.language,
                "return_code": return_code,
                "session_id": data.get("session_id"),
                "files": data.get("files"),
            },
        )


# ------------------------------------------------------------------ #
# Session lifecycle
# ------------------------------------------------------------------ #


class CreateSessionParams(ToolParams):
    env_vars: Optional[dict[str, str]] = Field(
        default=None, description="Environment variables to inject into the session"
    )
    file_ids: Optional[list[str]] = Field(
        default=None, description="IDs of uploaded files to inject into the session"
    )


class CreateSessionTool(SandboxTool):
    name = "sandbox_create_session"
    label = "Create Sandbox Session"
    description = (
        "Create a persistent sandbox session. Use the returned session_id with "
        "sandbox_execute to preserve filesystem state and installed packages "
        "across executions."
    )
    params_model = CreateSessionParams

    def run(self, client: SandboxClient, token: str, params: CreateSessionParams) -> ToolResult:
        body: dict[str, Any] = {}
        if params.env_vars:
            body["env_vars"] = params.env_vars
        if params.file_ids:
            body["file_ids"] = params.file_ids
        return self.json_result(client.request("POST", "/v1/sessions", token, body))


class NoParams(ToolParams):
    pass


class ListSessionsTool(SandboxTool):
    name = "sandbox_list_sessions"
    label = "List Sandbox Sessions"
    description = "List all active sandbox sessions."
    params_model = NoParams

    def run(self, client: SandboxClient, token: str, params: NoParams) -> ToolResult:
        return self.json_result(client.request("GET", "/v1/sessions", token))


class SessionIdParams(ToolParams):
    session_id: str = Field(description="ID of the session")


class GetSessionTool(SandboxTool):
    name = "sandbox_get_session"
    label = "Get Sandbox Session"
    description = "Get details of a specific sandbox session by its ID."
    params_model = SessionIdParams

    def run(self, client: SandboxClient, token: str, params: SessionIdParams) -> ToolResult:
        path = f"/v1/sessions/{encode_segment(params.session_id)}"
        data = client.request("GET", path, token)
        return self.json_result(data, session_id=params.session_id)


class DestroySessionTool(SandboxTool):
    """Destroy a session; a session that is already gone counts as destroyed."""

    name = "sandbox_destroy_session"
    label = "Destroy Sandbox Session"
    description = (
        "Destroy a sandbox session and terminate its sandbox. "
        "The session_id will no longer be usable."
    )
    params_model = SessionIdParams

    def run(self, client: SandboxClient, token: str, params: SessionIdParams) -> ToolResult:
        path = f"/v1/sessions/{encode_segment(params.session_id)}"
        outcome = retry_delete(
            lambda: client.request("DELETE", path, token),
            max_attempts=self._settings.delete_max_attempts,
            base_delay=self._settings.retry_base_delay,
        )
        if outcome.already_gone:
            return self.text_result(
                "Session destroyed (already absent).",
                {"ok": True, "session_id": params.session_id, "already_gone": True},
            )
        return self.json_result(outcome.data, session_id=params.session_id)


class InjectFilesParams(ToolParams):
    session_id: str = Field(description="ID of the session to inject files into")
    file_ids: list[str] = Field(description="IDs of uploaded files to inject", min_length=1)


class InjectFilesTool(SandboxTool):
    name = "sandbox_inject_files"
    label = "Inject Files into Session"
    description = (
        "Copy previously uploaded files into a running sandbox session so code "
        "executed there can read them."
    )
    params_model = InjectFilesParams

    def run(self, client: SandboxClient, token: str, params: InjectFilesParams) -> ToolResult:
        path = f"/v1/sessions/{encode_segment(params.session_id)}/files"
        data = client.request("POST", path, token, {"file_ids": params.file_ids})
        return self.json_result(data, session_id=params.session_id, file_ids=params.file_ids)
