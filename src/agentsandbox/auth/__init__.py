"""Credential lifecycle for the sandbox API.

This package covers everything between "the user has never logged in" and
"a tool call has a bearer token":

- :class:`CredentialStore` -- the host's ``auth-profiles.json`` document.
- :class:`OAuthFlow` -- interactive or headless PKCE authorization, plus
  :func:`refresh_access_token` for the refresh grant.
- :class:`TokenResolver` -- env var, permanent key, access token, refresh.
- :func:`login` / :func:`persist_login` -- turn a completed flow into a
  stored profile.

Typical usage::

    from agentsandbox.auth import TokenResolver

    token = TokenResolver(settings).resolve(ctx)
"""

from agentsandbox.auth.credential_store import CredentialStore
from agentsandbox.auth.login import LoginResult, login, persist_login
from agentsandbox.auth.oauth import OAuthFlow, refresh_access_token
from agentsandbox.auth.resolver import TokenResolver, find_profile_id

__all__ = [
    "CredentialStore",
    "LoginResult",
    "OAuthFlow",
    "TokenResolver",
    "find_profile_id",
    "login",
    "persist_login",
    "refresh_access_token",
]
