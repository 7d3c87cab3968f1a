"""Abstract base class for SSH authenticators.

An authenticator binds one credential to one connector and prepares the
connector so that its session can log in. Concrete strategies subclass
:class:`SSHAuthenticator` and implement:

- :meth:`~SSHAuthenticator.can_authenticate` -- whether the connector is
  in a state this strategy can work with right now.
- :meth:`~SSHAuthenticator.do_authenticate` -- the actual work, returning
  ``True`` on success.

Strategies that must act before the transport handshake (installing key
identities, setting a password) override
:attr:`~SSHAuthenticator.authentication_mode` to return
:attr:`AuthenticationMode.BEFORE_CONNECT`.

Callers never invoke :meth:`~SSHAuthenticator.do_authenticate` directly;
they call :meth:`~SSHAuthenticator.authenticate`, which re-checks
:meth:`~SSHAuthenticator.can_authenticate` and records the outcome.

See Also:
    :mod:`sshkeyauth.auth.registry` for factory registration and dispatch.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from sshkeyauth.models import SSHUserPrivateKey, StandardUsernameCredentials

logger = logging.getLogger(__name__)

C = TypeVar("C")
U = TypeVar("U", bound=StandardUsernameCredentials)


class AuthenticationMode(str, enum.Enum):
    """When an authenticator has to run relative to the session connect."""

    BEFORE_CONNECT = "before_connect"
    AFTER_CONNECT = "after_connect"


class AuthenticationState(str, enum.Enum):
    """Progress of the most recent :meth:`SSHAuthenticator.authenticate` call."""

    NOT_ATTEMPTED = "not_attempted"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class SSHAuthenticator(ABC, Generic[C, U]):
    """Base class for strategies that authenticate a connector with a credential.

    Instances are created per attempt (normally by
    :meth:`~sshkeyauth.auth.registry.AuthenticatorRegistry.resolve`) and
    discarded afterwards. Neither the connector nor the credential is
    owned: the authenticator never opens or closes the connector.

    Args:
        connector: The connection being authenticated.
        user: The credential to authenticate with.
        username: Optional override for the credential's username.
    """

    def __init__(self, connector: C, user: U, username: Optional[str] = None) -> None:
        self._connector = connector
        self._user = user
        self._username = username
        self._state = AuthenticationState.NOT_ATTEMPTED
        self._listener = logger

    @property
    def connector(self) -> C:
        return self._connector

    @property
    def user(self) -> U:
        return self._user

    @property
    def username(self) -> str:
        """The override username if one was given, else the credential's."""
        if self._username is not None:
            return self._username
        return self._user.username

    @property
    def listener(self) -> logging.Logger:
        """Diagnostic sink for authentication failures.

        Defaults to this module's logger; callers may substitute a logger
        of their own (e.g. one that feeds a build log).
        """
        return self._listener

    @listener.setter
    def listener(self, value: Optional[logging.Logger]) -> None:
        self._listener = value if value is not None else logger

    @property
    def authentication_mode(self) -> AuthenticationMode:
        """Whether :meth:`authenticate` must run before or after the session connects."""
        return AuthenticationMode.AFTER_CONNECT

    @property
    def state(self) -> AuthenticationState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        """``True`` if the last :meth:`authenticate` call succeeded."""
        return self._state is AuthenticationState.AUTHENTICATED

    @abstractmethod
    def can_authenticate(self) -> bool:
        """Return whether this strategy can run against the connector's current state.

        Implementations must not cache the answer: session state can change
        between attempts.
        """
        ...

    @abstractmethod
    def do_authenticate(self) -> bool:
        """Perform the strategy. Only called when :meth:`can_authenticate` holds.

        Returns:
            ``True`` on success, ``False`` if the credential was rejected.
            Failures are logged to :attr:`listener` before returning.

        Raises:
            AuthenticatorError: For environment defects that are not
                information about the credential.
        """
        ...

    def authenticate(self) -> bool:
        """Run the strategy once and record the outcome.

        Returns ``True`` immediately if a previous call already succeeded.
        Otherwise :meth:`can_authenticate` is re-evaluated; when it is
        ``False`` the attempt is recorded as failed without calling
        :meth:`do_authenticate`. No retries are performed.

        Returns:
            Whether the connector is now authenticated by this strategy.
        """
        if self._state is AuthenticationState.AUTHENTICATED:
            return True
        if not self.can_authenticate():
            self._listener.debug(
                "%s cannot authenticate %s in its current state",
                type(self).__name__,
                self._connector,
            )
            self._state = AuthenticationState.FAILED
            return False

        self._state = AuthenticationState.AUTHENTICATING
        try:
            succeeded = self.do_authenticate()
        except BaseException:
            self._state = AuthenticationState.FAILED
            raise
        self._state = (
            AuthenticationState.AUTHENTICATED if succeeded else AuthenticationState.FAILED
        )
        return succeeded

    @staticmethod
    def private_keys(user: SSHUserPrivateKey) -> list[str]:
        """Return the private keys of *user*, each terminated by a newline.

        Some key parsers reject PEM blocks whose footer is not followed by a
        line break, which is common for keys pasted into a form.
        """
        return [key if key.endswith("\n") else key + "\n" for key in user.private_keys]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(connector={self._connector!r}, "
            f"username={self.username!r}, state={self._state.value})"
        )
