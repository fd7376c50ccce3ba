"""Tool commands -- list, describe and invoke sandbox tools from the shell.

Provides the ``agentsandbox tools`` sub-command group. ``call`` runs a tool
exactly as an agent host would: the token is resolved from the environment
or the agent directory's credential store and the result's text is printed
to stdout (the full ``{content, details}`` envelope with ``--json``).

Example::

    agentsandbox tools list
    agentsandbox tools schema sandbox_execute
    agentsandbox tools call sandbox_execute --params '{"language": "python", "code": "print(1)"}'
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Optional

import typer

from agentsandbox.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from agentsandbox.output import OutputFormat, error, format_response, get_output, print_data

if TYPE_CHECKING:
    from agentsandbox.tools import ToolRegistry


tools_app = typer.Typer(no_args_is_help=True)


def _registry(
    agent_dir: Optional[str] = None, host_config: Optional[str] = None
) -> ToolRegistry:
    from agentsandbox.config import load_settings
    from agentsandbox.context import build_tool_context
    from agentsandbox.tools import ToolRegistry

    settings = load_settings()
    ctx = build_tool_context(settings, agent_dir=agent_dir, host_config=host_config)
    return ToolRegistry.from_context(ctx, settings)


@tools_app.command("list")
def tools_list() -> None:
    """List the available tools."""
    from agentsandbox.models import SandboxSettings, ToolContext
    from agentsandbox.tools import create_tools

    rows = [
        [tool.name, tool.label, tool.description]
        for tool in create_tools(ToolContext(), SandboxSettings())
    ]
    get_output().print_table(["name", "label", "description"], rows, title="Sandbox tools")


@tools_app.command("schema")
def tools_schema(
    name: str = typer.Argument(help="Tool name, e.g. sandbox_execute."),
) -> None:
    """Print the JSON Schema of a tool's parameters."""
    from agentsandbox.models import SandboxSettings, ToolContext
    from agentsandbox.tools import ToolRegistry

    registry = ToolRegistry.from_context(ToolContext(), SandboxSettings())
    format_response(registry.get(name).parameters)


@tools_app.command("call")
def tools_call(
    name: str = typer.Argument(help="Tool name, e.g. sandbox_execute."),
    params: str = typer.Option("{}", "--params", "-P", help="Tool parameters as a JSON object."),
    agent_dir: Optional[str] = typer.Option(
        None, "--agent-dir", help="Agent directory holding auth-profiles.json."
    ),
    host_config: Optional[str] = typer.Option(
        None, "--host-config", help="Path to the host's JSON configuration."
    ),
) -> None:
    """Invoke a tool.

    Exits with code 1 when the tool reports ``ok: false`` (for example a
    non-zero return code from ``sandbox_execute``).

    Example::

        agentsandbox tools call sandbox_list_sessions
        agentsandbox --json tools call sandbox_get_session --params '{"session_id": "s1"}'
    """
    try:
        parsed = json.loads(params)
    except json.JSONDecodeError as exc:
        error(f"--params is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if not isinstance(parsed, dict):
        error("--params must be a JSON object.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    result = _registry(agent_dir, host_config).execute(name, "cli", parsed)

    if get_output().format == OutputFormat.JSON:
        format_response(result.model_dump(mode="json"))
    else:
        print_data(result.text)

    if not result.details.get("ok", True):
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
