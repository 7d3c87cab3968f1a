"""Canonical Pydantic models shared across all sshkeyauth modules.

The models fall into three groups:

**Capability tags** -- :class:`ConnectorKind` and :class:`CredentialKind`.
    Connectors and credentials advertise one of these tags; authenticator
    factories match on the pair instead of inspecting runtime classes.

**Credentials** -- :class:`StandardUsernameCredentials` and its variants
    :class:`SSHUserPrivateKey` and :class:`UsernamePasswordCredentials`.
    Each variant pins its ``kind`` with a ``Literal`` so the set of
    credential kinds is closed and can be parsed as a discriminated union
    (:data:`Credential`). Credentials are frozen: they cannot change
    during an authentication attempt.

**Configuration models** -- serialised as JSON in the user's config
    directory: :class:`ConnectorConfig`, :class:`AuthenticatorsConfig`,
    and :class:`GlobalConfig`.
"""

from __future__ import annotations

import enum
import uuid
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from sshkeyauth.exceptions import ConfigError


# --- Capability tags ---


class ConnectorKind(str, enum.Enum):
    """Connector implementations an authenticator factory can target."""

    PARAMIKO = "paramiko"


class CredentialKind(str, enum.Enum):
    """Credential variants an authenticator factory can consume."""

    SSH_PRIVATE_KEY = "ssh_private_key"
    USERNAME_PASSWORD = "username_password"


# --- Private key sources ---


class DirectEntryPrivateKeySource(BaseModel):
    """Key material pasted directly into the credential (PEM or OpenSSH text)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["direct"] = "direct"
    private_key: str = Field(min_length=1)

    def private_keys(self) -> list[str]:
        return [self.private_key]


class FilePrivateKeySource(BaseModel):
    """Key material read from a file on the local machine.

    The file is read every time :meth:`private_keys` is called so that a
    rotated key is picked up by the next attempt.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    path: str = Field(min_length=1)

    def private_keys(self) -> list[str]:
        """Read the key file.

        Returns:
            A single-element list with the file contents.

        Raises:
            ConfigError: If the file does not exist or cannot be read.
        """
        path = Path(self.path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Private key file not found: {path}")
        try:
            return [path.read_text(encoding="utf-8")]
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Cannot read private key file {path}: {exc}") from exc


PrivateKeySource = Annotated[
    Union[DirectEntryPrivateKeySource, FilePrivateKeySource],
    Field(discriminator="type"),
]


# --- Credentials ---


class StandardUsernameCredentials(BaseModel):
    """Fields shared by every credential that authenticates as a named user.

    Attributes:
        id: Stable identifier of the credential. Generated when omitted.
        username: Remote account name.
        description: Free-form label shown in listings.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str = Field(min_length=1)
    description: str = ""


class SSHUserPrivateKey(StandardUsernameCredentials):
    """A username with one or more private keys and an optional passphrase.

    The passphrase applies to every key of the credential.

    Example::

        SSHUserPrivateKey(
            username="deploy",
            private_key_source=DirectEntryPrivateKeySource(private_key=pem),
            passphrase="hunter2",
        )
    """

    kind: Literal[CredentialKind.SSH_PRIVATE_KEY] = CredentialKind.SSH_PRIVATE_KEY
    private_key_source: PrivateKeySource
    passphrase: Optional[SecretStr] = None

    @property
    def private_keys(self) -> list[str]:
        """Return the key blobs of this credential, in order.

        Raises:
            ConfigError: If the source yields no keys or cannot be read.
        """
        keys = self.private_key_source.private_keys()
        if not keys:
            raise ConfigError(f"Credential '{self.id}' has no private keys")
        return keys

    @classmethod
    def from_private_key(
        cls,
        username: str,
        private_key: str,
        passphrase: Optional[str] = None,
        **kwargs: object,
    ) -> SSHUserPrivateKey:
        """Build a credential around a directly entered key."""
        return cls(
            username=username,
            private_key_source=DirectEntryPrivateKeySource(private_key=private_key),
            passphrase=passphrase,
            **kwargs,
        )

    @classmethod
    def from_file(
        cls,
        username: str,
        path: str | Path,
        passphrase: Optional[str] = None,
        **kwargs: object,
    ) -> SSHUserPrivateKey:
        """Build a credential whose key is read from *path* on demand."""
        return cls(
            username=username,
            private_key_source=FilePrivateKeySource(path=str(path)),
            passphrase=passphrase,
            **kwargs,
        )


class UsernamePasswordCredentials(StandardUsernameCredentials):
    """A username and password pair."""

    kind: Literal[CredentialKind.USERNAME_PASSWORD] = CredentialKind.USERNAME_PASSWORD
    password: SecretStr


Credential = Annotated[
    Union[SSHUserPrivateKey, UsernamePasswordCredentials],
    Field(discriminator="kind"),
]
"""Closed set of credential variants, discriminated by ``kind``."""


# --- Configuration ---


class ConnectorConfig(BaseModel):
    """Settings applied to every connector created by the CLI.

    Assignments are validated, so environment overrides applied to a
    loaded instance obey the same constraints as the config file.
    """

    model_config = ConfigDict(validate_assignment=True)

    timeout: int = Field(default=30, ge=1, description="Connect timeout in seconds")
    strict_host_key_checking: bool = Field(
        default=True, description="Refuse hosts missing from known_hosts"
    )
    known_hosts: str = Field(
        default="~/.ssh/known_hosts", description="Path to the known_hosts file"
    )


class AuthenticatorsConfig(BaseModel):
    """Explicit authenticator factory allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/sshkeyauth/config.json``.

    Loaded by :func:`~sshkeyauth.config.load_global_config`; environment
    variables layered on top by :func:`~sshkeyauth.config.resolve_config`.
    """

    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    authenticators: AuthenticatorsConfig = Field(default_factory=AuthenticatorsConfig)
    log_level: str = Field(default="WARNING", description="Root log level for the CLI")
