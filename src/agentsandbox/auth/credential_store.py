"""Accessor for the host's ``auth-profiles.json`` credential store.

The store is a single JSON document in the agent directory mapping profile
ids to :class:`~agentsandbox.models.CredentialRecord` entries::

    {"profiles": {"agentsandbox:me@example.com": {"type": "oauth", ...}}}

Every update is a read-modify-write of the *whole* document written
atomically with ``0o600`` permissions. Two processes refreshing at the same
time race with last-writer-wins semantics; the loser's refresh token may be
lost, which only costs one extra login or refresh later.

See Also:
    :class:`~agentsandbox.auth.resolver.TokenResolver` -- reads and refreshes records.
    :func:`~agentsandbox.auth.login.persist_login` -- writes new records.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from agentsandbox.config import atomic_write
from agentsandbox.exceptions import ConfigError
from agentsandbox.models import AuthProfileStore, CredentialRecord

STORE_FILENAME = "auth-profiles.json"


class CredentialStore:
    """Read/write the credential document in one agent directory.

    Args:
        agent_dir: Directory that holds ``auth-profiles.json``.

    Example::

        store = CredentialStore(Path("~/.openclaw/agent").expanduser())
        record = store.get("agentsandbox:default")
    """

    def __init__(self, agent_dir: Path) -> None:
        self._path = Path(agent_dir) / STORE_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AuthProfileStore:
        """Load the whole document.

        Individual profiles are not validated here; see :meth:`get`.

        Returns:
            The parsed store; an empty one when the file does not exist.

        Raises:
            ConfigError: If the file is unreadable, not JSON, or not an
                object with a ``profiles`` mapping.
        """
        if not self._path.is_file():
            return AuthProfileStore()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return AuthProfileStore.model_validate(data)
        except (json.JSONDecodeError, ValidationError, OSError) as exc:
            raise ConfigError(f"Invalid credential store at {self._path}: {exc}") from exc

    def save(self, store: AuthProfileStore) -> None:
        """Persist the whole document atomically with ``0o600`` permissions."""
        data = store.model_dump(mode="json")
        atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)

    def get(self, profile_id: str) -> Optional[CredentialRecord]:
        """Return the validated record for *profile_id*, or ``None``.

        Raises:
            ConfigError: If the store or this profile's record is malformed.
        """
        store = self.load()
        try:
            return store.record(profile_id)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid credential for {profile_id} in {self._path}: {exc}"
            ) from exc

    def upsert(self, profile_id: str, record: CredentialRecord) -> None:
        """Replace one profile's record, keeping every other profile untouched."""
        store = self.load()
        store.put(profile_id, record)
        self.save(store)

    def provider_profiles(self, provider_id: str) -> list[str]:
        """Return the ids of stored records whose ``provider`` is *provider_id*."""
        return [
            profile_id
            for profile_id, raw in self.load().profiles.items()
            if isinstance(raw, dict) and raw.get("provider") == provider_id
        ]

    def existing_key(self, profile_id: str) -> Optional[str]:
        """Return the permanent key already stored for *profile_id*, if any.

        Best effort: a missing or unreadable store yields ``None``.
        """
        try:
            record = self.get(profile_id)
        except ConfigError:
            return None
        return record.key if record else None
