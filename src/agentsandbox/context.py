"""Build the :class:`~agentsandbox.models.ToolContext` the CLI hands to tools.

Inside an agent host the context arrives ready-made. From the command line
it is assembled here: the agent directory from ``--agent-dir`` or the host's
environment, the host config from ``--host-config`` / ``$OPENCLAW_CONFIG_PATH``,
or -- when neither is given -- from the provider's own records in the
credential store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from agentsandbox.auth.credential_store import CredentialStore
from agentsandbox.config import load_host_config, resolve_agent_dir
from agentsandbox.models import (
    HostAuthConfig,
    HostAuthProfile,
    HostConfig,
    SandboxSettings,
    ToolContext,
)
from agentsandbox.output import debug


def derive_host_config(agent_dir: Path, provider_id: str) -> HostConfig:
    """Synthesize a host config listing every stored profile of *provider_id*."""
    profile_ids = CredentialStore(agent_dir).provider_profiles(provider_id)
    return HostConfig(
        auth=HostAuthConfig(
            profiles={pid: HostAuthProfile(provider=provider_id) for pid in profile_ids}
        )
    )


def build_tool_context(
    settings: SandboxSettings,
    agent_dir: Optional[str] = None,
    host_config: Optional[str] = None,
) -> ToolContext:
    """Resolve the agent directory and host config for a CLI invocation.

    Args:
        settings: Supplies the provider id used when deriving the host config.
        agent_dir: ``--agent-dir`` value, if any.
        host_config: ``--host-config`` value, if any.

    Raises:
        ConfigError: If an explicitly configured host config cannot be read.
    """
    resolved_dir = resolve_agent_dir(agent_dir)
    config = load_host_config(host_config)
    if config is None and resolved_dir is not None:
        debug(f"No host config given; deriving profiles from {resolved_dir}")
        config = derive_host_config(resolved_dir, settings.provider_id)
    return ToolContext(config=config, agent_dir=resolved_dir)
