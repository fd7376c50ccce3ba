"""Auth commands -- log in to the sandbox service and inspect stored credentials.

Provides the ``agentsandbox auth`` sub-command group. ``login`` runs the
OAuth PKCE flow and writes the resulting profile into the agent
directory's ``auth-profiles.json``; ``status`` reports which credential a
tool call would use without contacting the server.

Typical workflow::

    agentsandbox auth login --agent-dir ~/.openclaw/agent
    agentsandbox auth status
"""

from __future__ import annotations

import os
import time
import webbrowser
from datetime import datetime, timezone
from typing import Optional

import typer

from agentsandbox.exit_codes import EXIT_AUTH_FAILURE, EXIT_INVALID_USAGE
from agentsandbox.output import error, format_response, info, success, suggest, warning


auth_app = typer.Typer(no_args_is_help=True)


def _prompt(message: str) -> str:
    return typer.prompt(message)


@auth_app.command("login")
def auth_login(
    remote: bool = typer.Option(
        False,
        "--remote",
        help="Headless mode: paste the redirect URL instead of listening locally.",
    ),
    agent_dir: Optional[str] = typer.Option(
        None, "--agent-dir", help="Agent directory holding auth-profiles.json."
    ),
    host_config: Optional[str] = typer.Option(
        None, "--host-config", help="Path to the host's JSON configuration."
    ),
) -> None:
    """Log in with OAuth (PKCE) and store the credential.

    Opens the browser and waits for the redirect on the local callback port.
    With ``--remote`` (or when the port is unavailable) the authorization
    URL is printed and the redirect URL or bare code is read from the
    terminal. A permanent API key stored by an earlier login is kept unless
    the server issues a new one.

    Example::

        agentsandbox auth login --agent-dir ~/.openclaw/agent
        agentsandbox auth login --remote
    """
    from agentsandbox.auth import CredentialStore, find_profile_id, login, persist_login
    from agentsandbox.config import load_settings
    from agentsandbox.context import build_tool_context

    settings = load_settings()
    ctx = build_tool_context(settings, agent_dir=agent_dir, host_config=host_config)
    if ctx.agent_dir is None:
        error("No agent directory. Pass --agent-dir or set OPENCLAW_AGENT_DIR.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    store = CredentialStore(ctx.agent_dir)
    existing_profile_id = find_profile_id(ctx.config, settings.provider_id)

    if not remote:
        info("Opening the browser to authorize...")
    result = login(
        settings,
        store,
        existing_profile_id,
        is_remote=remote,
        open_url=webbrowser.open,
        prompt=_prompt,
    )
    persist_login(store, result)

    success(f"Logged in as {result.profile_id}.")
    info(f"Credential saved to {store.path}")
    if host_config and result.profile_id not in ctx.config.auth.profiles:
        suggest(
            f'Add "{result.profile_id}" with provider "{settings.provider_id}" '
            "to auth.profiles in your host config."
        )
    suggest("Check it: agentsandbox auth status")


@auth_app.command("status")
def auth_status(
    agent_dir: Optional[str] = typer.Option(
        None, "--agent-dir", help="Agent directory holding auth-profiles.json."
    ),
    host_config: Optional[str] = typer.Option(
        None, "--host-config", help="Path to the host's JSON configuration."
    ),
) -> None:
    """Show which credential the next tool call would use.

    Reports the source (``env``, ``key``, ``access``, ``refresh``) in the
    same order the token resolver tries them. Nothing is refreshed.

    Example::

        agentsandbox auth status
        agentsandbox --json auth status
    """
    from agentsandbox.auth import CredentialStore, find_profile_id
    from agentsandbox.config import load_settings
    from agentsandbox.context import build_tool_context

    settings = load_settings()
    if os.environ.get(settings.api_key_env_var, "").strip():
        format_response({"source": "env", "env_var": settings.api_key_env_var})
        return

    ctx = build_tool_context(settings, agent_dir=agent_dir, host_config=host_config)
    profile_id = find_profile_id(ctx.config, settings.provider_id)
    if profile_id is None:
        error(f"No auth profile for {settings.provider_id}.")
        suggest("Log in: agentsandbox auth login")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    if ctx.agent_dir is None:
        error("No agent directory. Pass --agent-dir or set OPENCLAW_AGENT_DIR.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    record = CredentialStore(ctx.agent_dir).get(profile_id)
    if record is None:
        error(f"Missing credential for profile {profile_id}.")
        suggest("Log in: agentsandbox auth login")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    now_ms = int(time.time() * 1000)
    buffer_ms = settings.token_expiry_buffer_seconds * 1000
    if record.has_key:
        source = "key"
    elif record.access_valid(now_ms, buffer_ms):
        source = "access"
    elif record.refresh:
        source = "refresh"
    else:
        source = "none"

    expires = None
    if record.expires:
        expires = datetime.fromtimestamp(record.expires / 1000, tz=timezone.utc).isoformat()

    format_response(
        {
            "source": source,
            "profile_id": profile_id,
            "email": record.email,
            "access_expires": expires,
            "has_refresh_token": bool(record.refresh),
        }
    )
    if source == "none":
        warning("All tokens expired and no refresh token is stored.")
        suggest("Log in again: agentsandbox auth login")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
