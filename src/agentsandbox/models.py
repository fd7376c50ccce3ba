"""Canonical Pydantic models shared across all agentsandbox modules.

The models fall into three groups:

**Settings** -- :class:`SandboxSettings`, the injected configuration that
replaces hard-coded endpoints, ports and client ids.

**Host and credential documents** -- the shapes owned by the agent host:
:class:`HostConfig` (which profile ids exist and which provider they belong
to) and :class:`AuthProfileStore` / :class:`CredentialRecord` (the
``auth-profiles.json`` file). These use ``extra="allow"`` so that keys
written by the host or by other providers survive a read-modify-write.

**OAuth values** -- :class:`PkceState`, :class:`CallbackParams`,
:class:`OAuthTokens` and :class:`RefreshedTokens`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Settings ---


class SandboxSettings(BaseModel):
    """Endpoints, identifiers and limits used by the client, resolver and login flow.

    Loaded by :func:`~agentsandbox.config.load_settings`; tests construct
    it directly to point at fakes.

    Example::

        settings = SandboxSettings(base_url="http://localhost:8000")
        assert settings.token_url == "http://localhost:8000/oauth/token"
    """

    provider_id: str = Field(
        default="agentsandbox", description="Provider id matched in host auth profiles"
    )
    base_url: str = Field(
        default="https://api.agentsandbox.co", description="Sandbox REST API base URL"
    )
    auth_base_url: Optional[str] = Field(
        default=None,
        description="Host serving /oauth/authorize and /oauth/token (defaults to base_url)",
    )
    client_id: str = Field(default="openclaw-plugin-client", description="OAuth client id")
    callback_port: int = Field(default=51199, description="Fixed local OAuth callback port")
    scope: str = Field(default="sandbox", description="OAuth scope requested at login")
    api_key_env_var: str = Field(
        default="SANDBOX_API_KEY",
        description="Environment variable that overrides the credential store",
    )
    token_expiry_buffer_seconds: int = Field(
        default=300, description="Treat access tokens as expired this long before expiry"
    )
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    callback_timeout: float = Field(
        default=120.0, description="Seconds the local callback listener waits"
    )
    max_output_chars: int = Field(default=50_000, description="Tool text truncation limit")
    delete_max_attempts: int = Field(default=3, description="Attempts for delete-like calls")
    retry_base_delay: float = Field(
        default=0.5, description="Backoff base in seconds for delete-like calls"
    )

    @property
    def oauth_base(self) -> str:
        return (self.auth_base_url or self.base_url).rstrip("/")

    @property
    def authorize_url(self) -> str:
        return f"{self.oauth_base}/oauth/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.oauth_base}/oauth/token"

    @property
    def redirect_uri(self) -> str:
        return f"http://localhost:{self.callback_port}/callback"


class GlobalConfig(BaseModel):
    """User-wide settings file persisted at ``~/.config/agentsandbox/config.json``.

    Only fields that differ from the defaults need to be present. Values
    here are overridden by environment variables and CLI flags; see
    :func:`~agentsandbox.config.load_settings`.
    """

    settings: SandboxSettings = Field(default_factory=SandboxSettings)
    output_format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


# --- Host configuration ---


class HostAuthProfile(BaseModel):
    """A host-side auth profile entry; only ``provider`` matters here."""

    model_config = ConfigDict(extra="allow")

    provider: Optional[str] = None


class HostAuthConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    profiles: dict[str, HostAuthProfile] = Field(default_factory=dict)


class HostConfig(BaseModel):
    """The subset of the agent host's configuration this package reads.

    Shape: ``{"auth": {"profiles": {"<profile id>": {"provider": "..."}}}}``.
    """

    model_config = ConfigDict(extra="allow")

    auth: HostAuthConfig = Field(default_factory=HostAuthConfig)


# --- Credential store ---


class CredentialRecord(BaseModel):
    """One stored credential in ``auth-profiles.json``.

    A record is usable when it has a permanent ``key``, an ``access`` token
    with an ``expires`` timestamp, or a ``refresh`` token. ``key`` always
    wins over the time-limited ``access`` token.

    Attributes:
        type: Credential kind written by the login flow (``"oauth"``).
        provider: Provider id (``"agentsandbox"``).
        access: Short-lived bearer token.
        refresh: Refresh token; rotated by the server on every refresh.
        expires: Absolute expiry of ``access`` in epoch milliseconds.
        key: Permanent API key.
        email: Account email reported by the token endpoint.
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    provider: Optional[str] = None
    access: Optional[str] = None
    refresh: Optional[str] = None
    expires: Optional[int] = None
    key: Optional[str] = None
    email: Optional[str] = None

    def access_valid(self, now_ms: int, buffer_ms: int) -> bool:
        """Return ``True`` when ``access`` is set and still outside the safety buffer."""
        if not self.access or not self.expires:
            return False
        return now_ms < self.expires - buffer_ms

    @property
    def has_key(self) -> bool:
        return bool(self.key)

    @property
    def is_usable(self) -> bool:
        return bool(self.key or (self.access and self.expires) or self.refresh)


class AuthProfileStore(BaseModel):
    """The whole ``auth-profiles.json`` document: ``{"profiles": {id: record}}``.

    Profiles are kept as the raw JSON the host wrote. Only the record being
    read or replaced is validated, so other providers' entries round-trip
    unchanged whatever their shape.
    """

    model_config = ConfigDict(extra="allow")

    profiles: dict[str, Any] = Field(default_factory=dict)

    def record(self, profile_id: str) -> Optional[CredentialRecord]:
        """Validate and return one profile's record.

        Raises:
            pydantic.ValidationError: If that record does not fit :class:`CredentialRecord`.
        """
        raw = self.profiles.get(profile_id)
        if raw is None:
            return None
        return CredentialRecord.model_validate(raw)

    def put(self, profile_id: str, record: CredentialRecord) -> None:
        """Store *record*, writing only the fields it was loaded or built with."""
        self.profiles[profile_id] = record.model_dump(mode="json", exclude_unset=True)


@dataclass
class ToolContext:
    """Per-invocation context handed to tools by the host.

    Attributes:
        config: Host configuration used to find the provider's profile id.
        agent_dir: Directory holding ``auth-profiles.json``.
    """

    config: Optional[HostConfig] = None
    agent_dir: Optional[Path] = None


# --- OAuth values ---


class PkceState(BaseModel):
    """Ephemeral secrets of one authorization attempt."""

    verifier: str
    challenge: str
    state: str


class CallbackParams(BaseModel):
    """``code`` and optional ``state`` returned through the redirect."""

    code: str
    state: Optional[str] = None


class RefreshedTokens(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: int = Field(description="Epoch milliseconds")


class OAuthTokens(RefreshedTokens):
    """Result of a completed authorization-code exchange."""

    email: Optional[str] = None
    api_key: Optional[str] = None
