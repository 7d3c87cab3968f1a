"""Password authentication for paramiko connectors.

Provides :class:`ParamikoPasswordAuthenticator`, which installs the
password of a :class:`~sshkeyauth.models.UsernamePasswordCredentials`
credential on the connector's session. The session offers it after all
key identities have been tried.
"""

from __future__ import annotations

from typing import Optional

from sshkeyauth.auth.base import AuthenticationMode, SSHAuthenticator
from sshkeyauth.auth.registry import SSHAuthenticatorFactory
from sshkeyauth.connector import ParamikoConnector
from sshkeyauth.models import (
    ConnectorKind,
    CredentialKind,
    UsernamePasswordCredentials,
)


class ParamikoPasswordAuthenticator(
    SSHAuthenticator[ParamikoConnector, UsernamePasswordCredentials]
):
    """Set a credential's password on a :class:`ParamikoConnector` session."""

    @property
    def authentication_mode(self) -> AuthenticationMode:
        return AuthenticationMode.BEFORE_CONNECT

    def can_authenticate(self) -> bool:
        connector = self.connector
        if not connector.has_session():
            return True
        session = connector.session
        return session.is_connected() and session.user_interaction_handler is None

    def do_authenticate(self) -> bool:
        session = self.connector.session
        if session.is_connected():
            self.listener.error(
                "Failed to authenticate with password: session is already connected"
            )
            return False
        session.password = self.user.password.get_secret_value()
        return True


class PasswordAuthenticatorFactory(SSHAuthenticatorFactory):
    """Pairs :class:`ParamikoConnector` with :class:`UsernamePasswordCredentials`."""

    @property
    def name(self) -> str:
        return "password"

    @property
    def connector_kind(self) -> ConnectorKind:
        return ConnectorKind.PARAMIKO

    @property
    def credential_kind(self) -> CredentialKind:
        return CredentialKind.USERNAME_PASSWORD

    @property
    def authentication_mode(self) -> AuthenticationMode:
        return AuthenticationMode.BEFORE_CONNECT

    def create(
        self,
        connector: ParamikoConnector,
        user: UsernamePasswordCredentials,
        username: Optional[str],
    ) -> ParamikoPasswordAuthenticator:
        return ParamikoPasswordAuthenticator(connector, user, username)
