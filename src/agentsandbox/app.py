"""Typer application and CLI entry point for agentsandbox.

This module wires together the root Typer application and its built-in
sub-commands (``auth``, ``tools``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app.
:class:`~agentsandbox.exceptions.SandboxError` exits cleanly with the
error's ``exit_code``; anything else is written to a crash log under the
data directory.

See Also:
    :mod:`agentsandbox.config`: Settings and host context resolution.
    :mod:`agentsandbox.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from agentsandbox import __version__
from agentsandbox.commands.auth import auth_app
from agentsandbox.commands.config import config_app
from agentsandbox.commands.tools import tools_app
from agentsandbox.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="agentsandbox",
    help="Run code in remote sandboxes and manage sandbox credentials.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(auth_app, name="auth", help="Authentication management.")
app.add_typer(tools_app, name="tools", help="List and call sandbox tools.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"agentsandbox {__version__}")
        raise typer.Exit()


def _configured_format() -> tuple[str, Optional[str]]:
    """Return the saved output format and, if the config is unreadable, why."""
    from agentsandbox.config import load_global_config
    from agentsandbox.exceptions import ConfigError

    try:
        return load_global_config().output_format, None
    except ConfigError as exc:
        return "auto", str(exc)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~agentsandbox.output.OutputManager` from
    CLI flags (falling back to ``output_format`` in the user config) and
    stores shared options in ``ctx.obj``.
    """
    from agentsandbox.output import OutputFormat, OutputManager, set_output, warning

    configured, config_problem = _configured_format()
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    elif configured in {f.value for f in OutputFormat}:
        fmt = OutputFormat(configured)
    else:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if config_problem:
        warning(config_problem)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from agentsandbox.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``agentsandbox`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from agentsandbox.exceptions import SandboxError
        from agentsandbox.output import error

        if isinstance(exc, SandboxError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
