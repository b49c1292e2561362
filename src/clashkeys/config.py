"""Configuration loading with XDG paths and precedence resolution.

This module handles the settings of a :class:`~clashkeys.models.ClientConfig`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.clashkeys/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- an optional ``config.json`` in the config directory
  holding any subset of :class:`~clashkeys.models.ClientConfig` fields.
* **Precedence resolution** -- :func:`resolve_config` merges explicit
  overrides, ``CLASHKEYS_*`` environment variables, the user config file and
  the model defaults.
* **Credential resolution** -- :func:`resolve_credential` reads the account
  email or password from env vars, files, or an interactive prompt.

Nothing here persists keys or tokens; the only file written by the package
is a crash log (see :func:`clashkeys.app.main`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from clashkeys.exceptions import ConfigError
from clashkeys.models import ClientConfig

_APP_NAME = "clashkeys"
_CONFIG_FILENAME = "config.json"

# Environment variable -> ClientConfig field
_ENV_FIELDS = {
    "CLASHKEYS_API_URL": "api_url",
    "CLASHKEYS_API_VERSION": "api_version",
    "CLASHKEYS_DEVELOPER_URL": "developer_url",
    "CLASHKEYS_IP_CHECKER_URL": "ip_checker_url",
    "CLASHKEYS_TIMEOUT": "timeout",
    "CLASHKEYS_VERIFY_SSL": "verify_ssl",
    "CLASHKEYS_ROTATION": "rotation",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG Base Directory paths (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
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
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/clashkeys/`` (default ``~/.config/clashkeys/``).
    On macOS/Windows: ``~/.clashkeys/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clashkeys/`` (default ``~/.local/share/clashkeys/``).
    On macOS/Windows: ``~/.clashkeys/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- User config ---


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the user config file as a dict of :class:`ClientConfig` fields.

    Args:
        path: Explicit file to read. Defaults to ``<config_dir>/config.json``.

    Returns:
        The parsed JSON object, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = path or get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, str]:
    return {
        field: os.environ[var]
        for var, field in _ENV_FIELDS.items()
        if os.environ.get(var)
    }


# --- Precedence resolution ---


def resolve_config(
    config_path: Optional[Path] = None,
    **overrides: Any,
) -> ClientConfig:
    """Resolve the effective :class:`ClientConfig`.

    Precedence (high to low):
        1. Keyword ``overrides`` whose value is not ``None``
        2. Environment variables (``CLASHKEYS_API_URL``, ``CLASHKEYS_TIMEOUT``, ...)
        3. User config file (``~/.config/clashkeys/config.json``)
        4. Model defaults

    Raises:
        ConfigError: If the file is invalid or a merged value fails validation.
    """
    merged: dict[str, Any] = load_config_file(config_path)
    merged.update(_env_overrides())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, prompt: str = "Enter credential: ") -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively without echo (requires a TTY)

    Args:
        source: The source descriptor string.
        prompt: Text shown for the ``prompt`` source.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(prompt)

    raise ConfigError(f"Unknown credential source format: {source}")
