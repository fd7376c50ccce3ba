"""Shared test fixtures for agentsandbox.

Provides isolated config and agent directories, prebuilt settings and
credential documents, a mock-transport factory for REST traffic, and
output/CLI helpers. These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from agentsandbox.models import (
    HostAuthConfig,
    HostAuthProfile,
    HostConfig,
    SandboxSettings,
    ToolContext,
)
from agentsandbox.output import OutputFormat, OutputManager, reset_output, set_output

PROFILE_ID = "agentsandbox:me@example.com"

_ENV_VARS = [
    "SANDBOX_API_KEY",
    "OPENCLAW_AGENT_DIR",
    "PI_CODING_AGENT_DIR",
    "OPENCLAW_CONFIG_PATH",
    "AGENTSANDBOX_BASE_URL",
    "AGENTSANDBOX_AUTH_BASE_URL",
    "AGENTSANDBOX_CLIENT_ID",
    "AGENTSANDBOX_CALLBACK_PORT",
]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own credentials and host settings out of tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME and XDG_DATA_HOME into *tmp_path*."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings() -> SandboxSettings:
    """Settings pointing at a fake API with no backoff delay."""
    return SandboxSettings(base_url="https://api.test", retry_base_delay=0.0)


# ---------------------------------------------------------------------------
# Host context and credential documents
# ---------------------------------------------------------------------------


@pytest.fixture
def agent_dir(tmp_path: Path) -> Path:
    path = tmp_path / "agent"
    path.mkdir()
    return path


@pytest.fixture
def host_config() -> HostConfig:
    return HostConfig(
        auth=HostAuthConfig(
            profiles={
                "other:default": HostAuthProfile(provider="other"),
                PROFILE_ID: HostAuthProfile(provider="agentsandbox"),
            }
        )
    )


@pytest.fixture
def tool_ctx(host_config: HostConfig, agent_dir: Path) -> ToolContext:
    return ToolContext(config=host_config, agent_dir=agent_dir)


@pytest.fixture
def now_ms() -> int:
    return int(time.time() * 1000)


@pytest.fixture
def write_store(agent_dir: Path) -> Callable[[dict[str, dict[str, Any]]], Path]:
    """Factory writing an ``auth-profiles.json`` document into *agent_dir*."""

    def _write(profiles: dict[str, dict[str, Any]]) -> Path:
        path = agent_dir / "auth-profiles.json"
        path.write_text(json.dumps({"profiles": profiles}))
        return path

    return _write


@pytest.fixture
def read_store(agent_dir: Path) -> Callable[[], dict[str, Any]]:
    return lambda: json.loads((agent_dir / "auth-profiles.json").read_text())


# ---------------------------------------------------------------------------
# REST traffic
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def transport_for() -> type[RecordingTransport]:
    """``transport_for(handler)`` builds a recording transport around *handler*."""
    return RecordingTransport


@pytest.fixture
def json_transport() -> Callable[..., RecordingTransport]:
    """Factory for a transport that answers every request with one JSON body."""

    def _make(body: Any = None, status_code: int = 200) -> RecordingTransport:
        return RecordingTransport(
            lambda request: httpx.Response(status_code, json=body if body is not None else {})
        )

    return _make


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Tool fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Supply the bearer token through the environment override."""
    monkeypatch.setenv("SANDBOX_API_KEY", "key")
    return "key"


@pytest.fixture
def registry_for(settings: SandboxSettings) -> Callable[..., Any]:
    """``registry_for(transport, ctx=None)`` builds a ToolRegistry on *transport*."""
    from agentsandbox.tools import ToolRegistry

    def _make(transport: httpx.BaseTransport, ctx: ToolContext | None = None) -> ToolRegistry:
        return ToolRegistry.from_context(ctx or ToolContext(), settings, transport=transport)

    return _make
