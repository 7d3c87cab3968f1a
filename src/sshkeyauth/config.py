"""Configuration management with XDG paths and precedence resolution.

This module handles all persistent configuration for sshkeyauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.sshkeyauth/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- A single :class:`~sshkeyauth.models.GlobalConfig`
  JSON file storing connector defaults, authenticator allow/deny lists,
  and the log level.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables over the global config file.
* **Secret resolution** -- :func:`resolve_secret` reads passphrases and
  passwords from env vars, files, or interactive prompts.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
from pathlib import Path

from sshkeyauth.exceptions import ConfigError
from sshkeyauth.models import GlobalConfig

_APP_NAME = "sshkeyauth"
_CONFIG_FILENAME = "config.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/sshkeyauth/`` (default ``~/.config/sshkeyauth/``).
    On macOS/Windows: ``~/.sshkeyauth/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~sshkeyauth.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def _env_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got '{raw}'")


def resolve_config() -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. Environment variables (``SSHKEYAUTH_TIMEOUT``,
           ``SSHKEYAUTH_STRICT_HOST_KEY_CHECKING``, ``SSHKEYAUTH_LOG_LEVEL``)
        2. User config (``~/.config/sshkeyauth/config.json``)
        3. Defaults

    CLI flags are applied on top of the result by the command that reads them.

    Raises:
        ConfigError: If the config file is invalid or an environment
            variable cannot be parsed.
    """
    cfg = load_global_config()

    timeout = os.environ.get("SSHKEYAUTH_TIMEOUT")
    if timeout:
        # ValidationError from the ge=1 bound is a ValueError too.
        try:
            cfg.connector.timeout = int(timeout)
        except ValueError:
            raise ConfigError(
                "Environment variable SSHKEYAUTH_TIMEOUT must be a positive integer, "
                f"got '{timeout}'"
            ) from None

    strict = os.environ.get("SSHKEYAUTH_STRICT_HOST_KEY_CHECKING")
    if strict:
        cfg.connector.strict_host_key_checking = _env_bool(
            "SSHKEYAUTH_STRICT_HOST_KEY_CHECKING", strict
        )

    log_level = os.environ.get("SSHKEYAUTH_LOG_LEVEL")
    if log_level:
        cfg.log_level = log_level.upper()

    return cfg


# --- Secret source resolution ---


def resolve_secret(source: str) -> str:
    """Resolve a passphrase or password from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of trailing newlines
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved secret string.

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
            raise ConfigError(f"Secret file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").rstrip("\r\n")
        except OSError as exc:
            raise ConfigError(f"Cannot read secret file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for secret: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter passphrase: ")

    raise ConfigError(f"Unknown secret source format: {source}")
