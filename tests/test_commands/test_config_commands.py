"""Tests for the ``config`` command group."""

from __future__ import annotations

import json

from agentsandbox.app import app
from agentsandbox.config import get_config_dir, load_global_config


def _saved() -> dict:
    return json.loads((get_config_dir() / "config.json").read_text())


class TestConfigSet:
    def test_set_string(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(
            app, ["config", "set", "settings.base_url", "http://localhost:8000"]
        )
        assert result.exit_code == 0, result.output
        assert _saved()["settings"]["base_url"] == "http://localhost:8000"

    def test_set_int_coerced(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["config", "set", "settings.callback_port", "51200"])
        assert result.exit_code == 0, result.output
        assert load_global_config().settings.callback_port == 51200

    def test_set_int_rejects_text(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["config", "set", "settings.callback_port", "abc"])
        assert result.exit_code == 2
        assert "Expected integer" in result.output

    def test_unknown_key(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["config", "set", "settings.nope", "1"])
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_invalid_nested_key(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["config", "set", "output_format.x", "1"])
        assert result.exit_code == 2

    def test_top_level_key(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["config", "set", "output_format", "json"])
        assert result.exit_code == 0, result.output
        assert load_global_config().output_format == "json"


class TestConfigShowAndReset:
    def test_show_json(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["settings"]["callback_port"] == 51199
        assert data["output_format"] == "auto"

    def test_reset_with_force(self, cli_runner, isolated_config) -> None:
        cli_runner.invoke(app, ["config", "set", "settings.client_id", "custom"])
        result = cli_runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().settings.client_id == "openclaw-plugin-client"

    def test_reset_declined(self, cli_runner, isolated_config) -> None:
        cli_runner.invoke(app, ["config", "set", "settings.client_id", "custom"])
        result = cli_runner.invoke(app, ["config", "reset"], input="n\n")
        assert result.exit_code == 0
        assert load_global_config().settings.client_id == "custom"

    def test_broken_config_warns(self, cli_runner, isolated_config) -> None:
        (get_config_dir() / "config.json").write_text("{broken")
        result = cli_runner.invoke(app, ["tools", "list"])
        assert result.exit_code == 0
        assert "Invalid config" in result.output


class TestVersion:
    def test_version(self, cli_runner) -> None:
        from agentsandbox import __version__

        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
