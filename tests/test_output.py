"""Tests for stdout/stderr discipline in the output manager."""

from __future__ import annotations

import json

from agentsandbox.output import OutputFormat, OutputManager


class TestDiagnostics:
    def test_quiet_keeps_warnings_and_errors(self, capsys) -> None:
        output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        output.info("info")
        output.success("done")
        output.suggest("next")
        output.warning("careful")
        output.error("broken")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "Warning: careful\nError: broken\n"

    def test_debug_only_when_verbose(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("shown")
        assert capsys.readouterr().err == "[debug] shown\n"


class TestData:
    def test_json_to_stdout(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"a": 1})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"a": 1}
        assert captured.err == ""

    def test_plain_dict(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": "x"})
        assert capsys.readouterr().out == "a\t1\nb\tx\n"
