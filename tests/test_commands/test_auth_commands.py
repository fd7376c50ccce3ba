"""Tests for the ``auth`` command group."""

from __future__ import annotations

import json

import pytest

from agentsandbox.app import app
from agentsandbox.auth import OAuthFlow
from agentsandbox.models import OAuthTokens

PROFILE_ID = "agentsandbox:me@example.com"


@pytest.fixture
def fake_flow(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    """Replace the browser flow; returns the recorded ``run`` kwargs."""
    calls: list[dict] = []

    def _run(self, is_remote, open_url, prompt) -> OAuthTokens:
        calls.append({"is_remote": is_remote})
        return OAuthTokens(
            access_token="acc",
            refresh_token="ref",
            expires_at=4_102_444_800_000,
            email="me@example.com",
        )

    monkeypatch.setattr(OAuthFlow, "run", _run)
    return calls


class TestLogin:
    def test_writes_profile(
        self, cli_runner, isolated_config, agent_dir, fake_flow, read_store
    ) -> None:
        result = cli_runner.invoke(app, ["auth", "login", "--remote", "--agent-dir", str(agent_dir)])

        assert result.exit_code == 0, result.output
        assert fake_flow == [{"is_remote": True}]
        saved = read_store()["profiles"][PROFILE_ID]
        assert saved["type"] == "oauth"
        assert saved["provider"] == "agentsandbox"
        assert saved["access"] == "acc"
        assert saved["refresh"] == "ref"
        assert f"Logged in as {PROFILE_ID}" in result.output

    def test_agent_dir_from_env(
        self, cli_runner, isolated_config, agent_dir, fake_flow, read_store, monkeypatch
    ) -> None:
        monkeypatch.setenv("OPENCLAW_AGENT_DIR", str(agent_dir))
        result = cli_runner.invoke(app, ["auth", "login", "--remote"])
        assert result.exit_code == 0, result.output
        assert PROFILE_ID in read_store()["profiles"]

    def test_keeps_other_profiles(
        self, cli_runner, isolated_config, agent_dir, fake_flow, write_store, read_store
    ) -> None:
        write_store({"other:default": {"provider": "other", "key": "x"}})
        result = cli_runner.invoke(app, ["auth", "login", "--remote", "--agent-dir", str(agent_dir)])
        assert result.exit_code == 0, result.output
        profiles = read_store()["profiles"]
        assert profiles["other:default"]["key"] == "x"
        assert PROFILE_ID in profiles

    def test_no_agent_dir(self, cli_runner, isolated_config, fake_flow) -> None:
        result = cli_runner.invoke(app, ["auth", "login", "--remote"])
        assert result.exit_code == 2
        assert "No agent directory" in result.output
        assert fake_flow == []

    def test_suggests_host_config_entry(
        self, cli_runner, isolated_config, agent_dir, fake_flow, tmp_path
    ) -> None:
        host = tmp_path / "host.json"
        host.write_text(json.dumps({"auth": {"profiles": {}}}))
        result = cli_runner.invoke(
            app,
            ["auth", "login", "--remote", "--agent-dir", str(agent_dir), "--host-config", str(host)],
        )
        assert result.exit_code == 0, result.output
        assert "auth.profiles" in result.output


class TestStatus:
    def _status(self, cli_runner, agent_dir):
        return cli_runner.invoke(
            app, ["--json", "--quiet", "auth", "status", "--agent-dir", str(agent_dir)]
        )

    def test_env_var(self, cli_runner, isolated_config, api_key) -> None:
        result = cli_runner.invoke(app, ["--json", "auth", "status"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"source": "env", "env_var": "SANDBOX_API_KEY"}

    def test_key(self, cli_runner, isolated_config, agent_dir, write_store) -> None:
        write_store({PROFILE_ID: {"provider": "agentsandbox", "key": "sk", "email": "me@example.com"}})
        result = self._status(cli_runner, agent_dir)
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["source"] == "key"
        assert data["profile_id"] == PROFILE_ID
        assert data["email"] == "me@example.com"

    def test_valid_access(self, cli_runner, isolated_config, agent_dir, write_store, now_ms) -> None:
        write_store(
            {PROFILE_ID: {"provider": "agentsandbox", "access": "a", "expires": now_ms + 3_600_000}}
        )
        result = self._status(cli_runner, agent_dir)
        data = json.loads(result.stdout)
        assert data["source"] == "access"
        assert data["access_expires"] is not None
        assert data["has_refresh_token"] is False

    def test_refresh_needed(self, cli_runner, isolated_config, agent_dir, write_store, now_ms) -> None:
        write_store(
            {
                PROFILE_ID: {
                    "provider": "agentsandbox",
                    "access": "a",
                    "refresh": "r",
                    "expires": now_ms + 60_000,
                }
            }
        )
        result = self._status(cli_runner, agent_dir)
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["source"] == "refresh"
        assert data["has_refresh_token"] is True

    def test_nothing_usable(self, cli_runner, isolated_config, agent_dir, write_store) -> None:
        write_store({PROFILE_ID: {"provider": "agentsandbox", "access": "a", "expires": 1}})
        result = cli_runner.invoke(app, ["auth", "status", "--agent-dir", str(agent_dir)])
        assert result.exit_code == 3
        assert "none" in result.output

    def test_no_profile(self, cli_runner, isolated_config, agent_dir) -> None:
        result = cli_runner.invoke(app, ["auth", "status", "--agent-dir", str(agent_dir)])
        assert result.exit_code == 3
        assert "No auth profile" in result.output

    def test_missing_credential(self, cli_runner, isolated_config, agent_dir, tmp_path) -> None:
        host = tmp_path / "host.json"
        host.write_text(json.dumps({"auth": {"profiles": {PROFILE_ID: {"provider": "agentsandbox"}}}}))
        result = cli_runner.invoke(
            app,
            ["auth", "status", "--agent-dir", str(agent_dir), "--host-config", str(host)],
        )
        assert result.exit_code == 3
        assert "Missing credential" in result.output
