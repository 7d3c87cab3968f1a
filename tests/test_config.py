"""Tests for sshkeyauth.config -- XDG paths, precedence, and secret sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from sshkeyauth.config import (
    get_config_dir,
    load_global_config,
    resolve_config,
    resolve_secret,
)
from sshkeyauth.exceptions import ConfigError


class _FakeStdin:
    def __init__(self, tty: bool) -> None:
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_config_home(self, isolated_config: Path) -> None:
        path = get_config_dir()
        assert path == isolated_config / "config" / "sshkeyauth"
        assert path.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sshkeyauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "sshkeyauth"

    def test_non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sshkeyauth.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".sshkeyauth"


# ---------------------------------------------------------------------------
# Global config and precedence
# ---------------------------------------------------------------------------


class TestLoadGlobalConfig:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg.connector.timeout == 30

    def test_reads_file(self, isolated_config: Path) -> None:
        _write_json(
            get_config_dir() / "config.json",
            {
                "connector": {"timeout": 5, "known_hosts": "/etc/ssh/known_hosts"},
                "authenticators": {"disabled": ["password"]},
            },
        )
        cfg = load_global_config()
        assert cfg.connector.timeout == 5
        assert cfg.connector.known_hosts == "/etc/ssh/known_hosts"
        assert cfg.authenticators.disabled == ["password"]

    def test_invalid_json(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_values(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"connector": {"timeout": -1}})
        with pytest.raises(ConfigError):
            load_global_config()


class TestResolveConfig:
    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(get_config_dir() / "config.json", {"connector": {"timeout": 5}})
        monkeypatch.setenv("SSHKEYAUTH_TIMEOUT", "12")
        monkeypatch.setenv("SSHKEYAUTH_STRICT_HOST_KEY_CHECKING", "no")
        monkeypatch.setenv("SSHKEYAUTH_LOG_LEVEL", "debug")
        cfg = resolve_config()
        assert cfg.connector.timeout == 12
        assert cfg.connector.strict_host_key_checking is False
        assert cfg.log_level == "DEBUG"

    def test_file_value_without_env(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"log_level": "INFO"})
        assert resolve_config().log_level == "INFO"

    def test_bad_timeout(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSHKEYAUTH_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="SSHKEYAUTH_TIMEOUT"):
            resolve_config()

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_non_positive_timeout(
        self, value: str, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SSHKEYAUTH_TIMEOUT", value)
        with pytest.raises(ConfigError, match="positive integer"):
            resolve_config()

    def test_bad_bool(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSHKEYAUTH_STRICT_HOST_KEY_CHECKING", "maybe")
        with pytest.raises(ConfigError, match="boolean"):
            resolve_config()


# ---------------------------------------------------------------------------
# Secret sources
# ---------------------------------------------------------------------------


class TestResolveSecret:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEY_PASSPHRASE", "s3cret")
        assert resolve_secret("env:KEY_PASSPHRASE") == "s3cret"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("KEY_PASSPHRASE", raising=False)
        with pytest.raises(ConfigError, match="KEY_PASSPHRASE"):
            resolve_secret("env:KEY_PASSPHRASE")

    def test_file_strips_trailing_newline(self, tmp_path: Path) -> None:
        secret = tmp_path / "secret"
        secret.write_text("s3cret\r\n")
        assert resolve_secret(f"file:{secret}") == "s3cret"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_secret(f"file:{tmp_path / 'absent'}")

    def test_prompt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sshkeyauth.config.sys.stdin", _FakeStdin(tty=True))
        monkeypatch.setattr("getpass.getpass", lambda prompt: "typed")
        assert resolve_secret("prompt") == "typed"

    def test_prompt_without_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sshkeyauth.config.sys.stdin", _FakeStdin(tty=False))
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_secret("prompt")

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="Unknown secret source"):
            resolve_secret("vault:secret/ssh")
