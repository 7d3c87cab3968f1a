"""Private-key authentication for paramiko connectors.

This module provides :class:`ParamikoPublicKeyAuthenticator`, which
installs every private key of an
:class:`~sshkeyauth.models.SSHUserPrivateKey` credential into the
connector's identity store, and :class:`PublicKeyAuthenticatorFactory`,
which the registry uses to pair the two.

The authenticator runs in
:attr:`~sshkeyauth.auth.base.AuthenticationMode.BEFORE_CONNECT` mode:
paramiko offers the registered identities during its own auth exchange,
so they have to be in place before ``session.connect()`` is called.

See Also:
    :class:`sshkeyauth.auth.base.SSHAuthenticator` for the base interface.
"""

from __future__ import annotations

from typing import Optional

from sshkeyauth.auth.base import AuthenticationMode, SSHAuthenticator
from sshkeyauth.auth.registry import SSHAuthenticatorFactory
from sshkeyauth.connector import ParamikoConnector
from sshkeyauth.exceptions import AuthenticatorError, ConfigError, ProtocolError
from sshkeyauth.models import ConnectorKind, CredentialKind, SSHUserPrivateKey


class ParamikoPublicKeyAuthenticator(
    SSHAuthenticator[ParamikoConnector, SSHUserPrivateKey]
):
    """Register a credential's private keys with a :class:`ParamikoConnector`."""

    @property
    def authentication_mode(self) -> AuthenticationMode:
        return AuthenticationMode.BEFORE_CONNECT

    def can_authenticate(self) -> bool:
        """Allowed before any session exists, or on a connected session nobody else drives.

        A session carrying a keyboard-interactive handler belongs to
        another strategy, so identities are not touched.
        """
        connector = self.connector
        if not connector.has_session():
            return True
        session = connector.session
        return session.is_connected() and session.user_interaction_handler is None

    def do_authenticate(self) -> bool:
        """Register every private key under :attr:`username`.

        Returns:
            ``True`` if all keys were registered, ``False`` if the connector
            rejected one of them (logged to :attr:`listener`).

        Raises:
            AuthenticatorError: If the passphrase or a key cannot be encoded
                as UTF-8.
            ConfigError: If the key source cannot be read. Logged to
                :attr:`listener` first; this is a local setup problem, not
                a rejected key.
        """
        user = self.user
        try:
            passphrase: Optional[bytes] = None
            if user.passphrase is not None:
                passphrase = user.passphrase.get_secret_value().encode("utf-8")
            for private_key in self.private_keys(user):
                self.connector.register_identity(
                    self.username, private_key.encode("utf-8"), None, passphrase
                )
            return True
        except ProtocolError:
            self.listener.error("Failed to authenticate with public key", exc_info=True)
            return False
        except ConfigError as exc:
            self.listener.error("Cannot read private keys of credential '%s': %s", user.id, exc)
            raise
        except UnicodeEncodeError as exc:
            raise AuthenticatorError(
                f"Cannot encode key material for credential '{user.id}': {exc}"
            ) from exc


class PublicKeyAuthenticatorFactory(SSHAuthenticatorFactory):
    """Pairs :class:`ParamikoConnector` with :class:`SSHUserPrivateKey`."""

    @property
    def name(self) -> str:
        return "public_key"

    @property
    def connector_kind(self) -> ConnectorKind:
        return ConnectorKind.PARAMIKO

    @property
    def credential_kind(self) -> CredentialKind:
        return CredentialKind.SSH_PRIVATE_KEY

    @property
    def authentication_mode(self) -> AuthenticationMode:
        return AuthenticationMode.BEFORE_CONNECT

    def create(
        self,
        connector: ParamikoConnector,
        user: SSHUserPrivateKey,
        username: Optional[str],
    ) -> ParamikoPublicKeyAuthenticator:
        return ParamikoPublicKeyAuthenticator(connector, user, username)
