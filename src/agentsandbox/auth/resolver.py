"""Bearer-token resolution for tool calls.

:class:`TokenResolver` turns a :class:`~agentsandbox.models.ToolContext`
into a bearer token. The first source that yields a candidate wins:

1. The ``SANDBOX_API_KEY`` environment variable (trimmed, non-empty).
2. The record's permanent ``key``.
3. The record's ``access`` token while ``now < expires - 5 minutes``.
4. A refresh with the record's ``refresh`` token; the rotated tokens are
   written back to the store before the new access token is returned.

When none applies the resolver raises an :class:`~agentsandbox.exceptions.AuthError`
subclass telling the user to run ``agentsandbox auth login``. It never
starts an interactive login itself.
"""

from __future__ import annotations

import os
import time
from typing import Callable, Optional

from agentsandbox.auth.credential_store import CredentialStore
from agentsandbox.auth.oauth import refresh_access_token
from agentsandbox.exceptions import (
    LOGIN_HINT,
    AllTokensExpiredError,
    MissingAgentContextError,
    MissingCredentialError,
    NoProfileFoundError,
)
from agentsandbox.models import HostConfig, RefreshedTokens, SandboxSettings, ToolContext
from agentsandbox.output import debug

Refresher = Callable[[SandboxSettings, str], RefreshedTokens]


def find_profile_id(config: Optional[HostConfig], provider_id: str) -> Optional[str]:
    """Return the first host profile id whose ``provider`` is *provider_id*."""
    if config is None:
        return None
    for profile_id, profile in config.auth.profiles.items():
        if profile.provider == provider_id:
            return profile_id
    return None


class TokenResolver:
    """Produce a valid bearer token for the sandbox API.

    Args:
        settings: Supplies the provider id, env var name and expiry buffer.
        refresher: Performs the refresh-token grant. Defaults to
            :func:`~agentsandbox.auth.oauth.refresh_access_token`.
        clock: Returns the current time in seconds.

    Example::

        resolver = TokenResolver(settings)
        token = resolver.resolve(ToolContext(config=host_config, agent_dir=agent_dir))
    """

    def __init__(
        self,
        settings: SandboxSettings,
        refresher: Optional[Refresher] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._refresher = refresher or refresh_access_token
        self._clock = clock

    def resolve(self, ctx: ToolContext) -> str:
        """Return a bearer token, refreshing and persisting it if needed.

        Raises:
            NoProfileFoundError: No host profile belongs to the provider.
            MissingAgentContextError: ``ctx.agent_dir`` is absent.
            MissingCredentialError: The store has no record for the profile.
            AllTokensExpiredError: No key, no fresh access token, no refresh token.
            TokenRefreshError: The refresh grant failed.
        """
        env_token = os.environ.get(self._settings.api_key_env_var, "").strip()
        if env_token:
            return env_token

        profile_id = find_profile_id(ctx.config, self._settings.provider_id)
        if not profile_id:
            raise NoProfileFoundError(
                f"No auth profile for {self._settings.provider_id}. {LOGIN_HINT}"
            )
        if ctx.agent_dir is None:
            raise MissingAgentContextError(
                "agent_dir missing; tool must run in an agent context."
            )

        store = CredentialStore(ctx.agent_dir)
        record = store.get(profile_id)
        if record is None:
            raise MissingCredentialError(
                f"Missing credential for profile {profile_id}. {LOGIN_HINT}"
            )

        if record.key:
            return record.key

        now_ms = int(self._clock() * 1000)
        buffer_ms = self._settings.token_expiry_buffer_seconds * 1000
        if record.access and record.access_valid(now_ms, buffer_ms):
            return record.access

        if record.refresh:
            debug(f"Access token for {profile_id} expired; refreshing")
            refreshed = self._refresher(self._settings, record.refresh)
            record.access = refreshed.access_token
            record.refresh = refreshed.refresh_token
            record.expires = refreshed.expires_at
            store.upsert(profile_id, record)
            return refreshed.access_token

        raise AllTokensExpiredError(
            f"All tokens expired and no refresh token available. {LOGIN_HINT}"
        )
