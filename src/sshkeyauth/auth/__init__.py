"""Pluggable authentication for SSH connectors.

This package provides the two halves of the authentication framework:

- :class:`SSHAuthenticator` -- abstract base class for strategies that
  prepare a connector with a credential.
- :class:`AuthenticatorRegistry` -- ordered collection of
  :class:`SSHAuthenticatorFactory` objects that picks the first strategy
  compatible with a given connector and credential.

Typical usage::

    from sshkeyauth.auth import resolve

    authenticator = resolve(connector, credential)
    if authenticator is not None and authenticator.can_authenticate():
        authenticator.authenticate()
"""

from sshkeyauth.auth.base import (
    AuthenticationMode,
    AuthenticationState,
    SSHAuthenticator,
)
from sshkeyauth.auth.registry import (
    AuthenticatorRegistry,
    SSHAuthenticatorFactory,
    create_default_registry,
    get_registry,
    register_factory,
    reset_registry,
    resolve,
    set_registry,
)

__all__ = [
    "AuthenticationMode",
    "AuthenticationState",
    "AuthenticatorRegistry",
    "SSHAuthenticator",
    "SSHAuthenticatorFactory",
    "create_default_registry",
    "get_registry",
    "register_factory",
    "reset_registry",
    "resolve",
    "set_registry",
]
