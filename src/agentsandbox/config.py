"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for agentsandbox:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.agentsandbox/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Settings** -- :func:`load_settings` merges CLI overrides, environment
  variables, the user's ``config.json`` and defaults into a
  :class:`~agentsandbox.models.SandboxSettings`.
* **Host context** -- :func:`resolve_agent_dir` and :func:`load_host_config`
  locate the agent directory (which holds ``auth-profiles.json``) and the
  host's profile configuration.

All file writes go through :func:`atomic_write` (temp file then rename) so
that a crash never leaves a half-written credential or settings file.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from agentsandbox.exceptions import ConfigError
from agentsandbox.models import GlobalConfig, HostConfig, SandboxSettings

_APP_NAME = "agentsandbox"
_CONFIG_FILENAME = "config.json"

AGENT_DIR_ENV_VARS = ("OPENCLAW_AGENT_DIR", "PI_CODING_AGENT_DIR")
HOST_CONFIG_ENV_VAR = "OPENCLAW_CONFIG_PATH"

_SETTINGS_ENV_VARS: dict[str, str] = {
    "AGENTSANDBOX_BASE_URL": "base_url",
    "AGENTSANDBOX_AUTH_BASE_URL": "auth_base_url",
    "AGENTSANDBOX_CLIENT_ID": "client_id",
    "AGENTSANDBOX_CALLBACK_PORT": "callback_port",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/agentsandbox/`` (default ``~/.config/agentsandbox/``).
    On macOS/Windows: ``~/.agentsandbox/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/agentsandbox/`` (default ``~/.local/share/agentsandbox/``).
    On macOS/Windows: ``~/.agentsandbox/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using a temp file and ``os.replace``.

    The temporary file lives in the same directory as *path* so the rename
    is atomic on POSIX. When *mode* is given it is applied to the temp file
    before any content is written.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the user settings file, or defaults when it does not exist.

    Raises:
        ConfigError: If the file exists but is invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Write *config*, leaving out values equal to their defaults."""
    data = config.model_dump(mode="json", exclude_defaults=True)
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def load_settings(overrides: Optional[dict[str, Any]] = None) -> SandboxSettings:
    """Resolve the effective :class:`~agentsandbox.models.SandboxSettings`.

    Precedence (high to low):
        1. *overrides* (CLI flags; ``None`` values are ignored)
        2. ``AGENTSANDBOX_*`` environment variables
        3. User config (``~/.config/agentsandbox/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the merged values fail validation.
    """
    data = load_global_config().settings.model_dump(exclude_unset=True)

    for env_var, field in _SETTINGS_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    for field, value in (overrides or {}).items():
        if value is not None:
            data[field] = value

    try:
        return SandboxSettings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


# --- Host context ---


def resolve_agent_dir(cli_value: Optional[str] = None) -> Optional[Path]:
    """Return the agent directory from the CLI flag or the host's env vars.

    ``OPENCLAW_AGENT_DIR`` takes precedence over ``PI_CODING_AGENT_DIR``.
    Returns ``None`` when nothing is configured.
    """
    if cli_value:
        return Path(cli_value).expanduser()
    for env_var in AGENT_DIR_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            return Path(value).expanduser()
    return None


def load_host_config(path: Optional[str] = None) -> Optional[HostConfig]:
    """Load the host configuration from *path* or ``$OPENCLAW_CONFIG_PATH``.

    Returns:
        The parsed :class:`~agentsandbox.models.HostConfig`, or ``None``
        when no path is configured.

    Raises:
        ConfigError: If the file is missing, not JSON, or has the wrong shape.
    """
    raw_path = path or os.environ.get(HOST_CONFIG_ENV_VAR)
    if not raw_path:
        return None
    config_path = Path(raw_path).expanduser()
    if not config_path.is_file():
        raise ConfigError(f"Host config not found at {config_path}")
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return HostConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid host config at {config_path}: {exc}") from exc
