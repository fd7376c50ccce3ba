"""File tools: upload, download, list and delete."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional

from pydantic import Field

from agentsandbox.client import SandboxClient, encode_segment, retry_delete
from agentsandbox.exceptions import InvalidEncodingError
from agentsandbox.tools.base import SandboxTool, ToolParams, ToolResult, dump_json

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def decode_base64_payload(data: str) -> bytes:
    """Decode standard base64, rejecting anything outside the alphabet.

    Raises:
        InvalidEncodingError: If *data* has stray characters or bad padding.
    """
    if not _BASE64_RE.match(data):
        raise InvalidEncodingError("Invalid base64 encoding in file_data")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise InvalidEncodingError("Invalid base64 encoding in file_data") from exc


class FileIdParams(ToolParams):
    file_id: str = Field(description="ID of the file")


class DownloadFileTool(SandboxTool):
    name = "sandbox_download_file"
    label = "Download Sandbox File"
    description = (
        "Download an output file produced by a sandbox execution. "
        "Use the file_id from the sandbox_execute response."
    )
    params_model = FileIdParams

    def run(self, client: SandboxClient, token: str, params: FileIdParams) -> ToolResult:
        data = client.request("GET", f"/v1/files/{encode_segment(params.file_id)}", token)
        text = data if isinstance(data, str) else dump_json(data)
        return self.text_result(text, {"ok": True, "file_id": params.file_id})


class ListFilesParams(ToolParams):
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Maximum number of files to return (1-100, default 50)",
    )
    offset: Optional[int] = Field(
        default=None, ge=0, description="Number of files to skip (default 0)"
    )


class ListFilesTool(SandboxTool):
    name = "sandbox_list_files"
    label = "List Sandbox Files"
    description = "List files owned by the authenticated user."
    params_model = ListFilesParams

    def run(self, client: SandboxClient, token: str, params: ListFilesParams) -> ToolResult:
        query: dict[str, int] = {}
        if params.limit is not None:
            query["limit"] = params.limit
        if params.offset is not None:
            query["offset"] = params.offset
        return self.json_result(client.request("GET", "/v1/files", token, params=query))


class UploadFileParams(ToolParams):
    file_data: str = Field(description="Base64-encoded file content")
    filename: str = Field(description="Name of the file to upload")
    session_id: Optional[str] = Field(
        default=None, description="Session ID to inject the file into"
    )


class UploadFileTool(SandboxTool):
    """Upload a base64 payload as a multipart file."""

    name = "sandbox_upload_file"
    label = "Upload File to Sandbox"
    description = "Upload a file to the sandbox. Optionally inject it into a specific session."
    params_model = UploadFileParams

    def run(self, client: SandboxClient, token: str, params: UploadFileParams) -> ToolResult:
        content = decode_base64_payload(params.file_data)
        query = {"session_id": params.session_id} if params.session_id else None
        data = client.upload("/v1/files", token, content, params.filename, params=query)
        return self.json_result(data, filename=params.filename)


class DeleteFileTool(SandboxTool):
    name = "sandbox_delete_file"
    label = "Delete Sandbox File"
    description = "Delete a file from the sandbox by its ID."
    params_model = FileIdParams

    def run(self, client: SandboxClient, token: str, params: FileIdParams) -> ToolResult:
        path = f"/v1/files/{encode_segment(params.file_id)}"
        outcome = retry_delete(
            lambda: client.request("DELETE", path, token),
            max_attempts=self._settings.delete_max_attempts,
            base_delay=self._settings.retry_base_delay,
        )
        if outcome.already_gone:
            return self.text_result(
                "File deleted (already absent).",
                {"ok": True, "file_id": params.file_id, "already_gone": True},
            )
        return self.json_result(outcome.data, file_id=params.file_id)
