"""Login orchestration: run the OAuth flow and turn its tokens into a stored profile.

Used by ``agentsandbox auth login``. Re-authenticating keeps a permanent
API key that was stored for the provider earlier unless the server hands out
a new one; the lookup of the old key is best effort and never fails a login.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from agentsandbox.auth.credential_store import CredentialStore
from agentsandbox.auth.oauth import OAuthFlow, OpenUrl, Prompt
from agentsandbox.models import CredentialRecord, OAuthTokens, SandboxSettings


@dataclass
class LoginResult:
    """The profile id and credential record produced by a successful login."""

    profile_id: str
    credential: CredentialRecord


def profile_id_for(provider_id: str, email: Optional[str]) -> str:
    """Build ``"<provider>:<email-or-default>"``."""
    return f"{provider_id}:{email or 'default'}"


def build_credential(
    settings: SandboxSettings,
    tokens: OAuthTokens,
    existing_key: Optional[str] = None,
) -> CredentialRecord:
    """Map exchanged tokens to a record; a fresh ``api_key`` beats *existing_key*."""
    fields = {
        "type": "oauth",
        "provider": settings.provider_id,
        "access": tokens.access_token,
        "refresh": tokens.refresh_token or None,
        "expires": tokens.expires_at,
        "email": tokens.email,
        "key": tokens.api_key or existing_key or None,
    }
    # unset fields stay out of the stored record
    return CredentialRecord(**{name: value for name, value in fields.items() if value is not None})


def login(
    settings: SandboxSettings,
    store: Optional[CredentialStore],
    existing_profile_id: Optional[str],
    is_remote: bool,
    open_url: OpenUrl,
    prompt: Prompt,
    flow: Optional[OAuthFlow] = None,
) -> LoginResult:
    """Run the PKCE flow and return the profile to persist.

    Args:
        settings: Active settings.
        store: Credential store of the agent directory, if known; used only
            to look up a key to preserve.
        existing_profile_id: Profile id already configured for the provider.
        is_remote: Prompt for the redirect instead of listening locally.
        open_url: Browser opener.
        prompt: Reads the pasted redirect URL or code.
        flow: Flow runner; a new :class:`OAuthFlow` by default.
    """
    existing_key = None
    if store is not None and existing_profile_id:
        existing_key = store.existing_key(existing_profile_id)

    runner = flow or OAuthFlow(settings)
    tokens = runner.run(is_remote=is_remote, open_url=open_url, prompt=prompt)

    return LoginResult(
        profile_id=profile_id_for(settings.provider_id, tokens.email),
        credential=build_credential(settings, tokens, existing_key),
    )


def persist_login(store: CredentialStore, result: LoginResult) -> None:
    store.upsert(result.profile_id, result.credential)
