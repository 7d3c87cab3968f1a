"""Authenticator registry -- capability-based dispatch to authenticator factories.

Each :class:`SSHAuthenticatorFactory` declares the connector kind and the
credential kind it handles. Given a live connector and credential,
:meth:`AuthenticatorRegistry.resolve` walks the registered factories in
registration order and returns the first authenticator produced. When no
factory applies, the result is ``None``: a missing authenticator is an
expected outcome, not an error.

Registration order is the only tie-break. Two factories claiming the same
(connector kind, credential kind) pair make the result depend on which was
registered first; the registry does not try to arbitrate.

The registry is append-only. Factories are registered once at process
start (built-ins first, then entry points in the
``sshkeyauth.authenticators`` group) and never removed, so concurrent
:meth:`~AuthenticatorRegistry.resolve` calls need no locking as long as
registration has finished before the first lookup.

Third-party packages register factories with an entry point::

    [project.entry-points."sshkeyauth.authenticators"]
    my-agent = "my_package.agent:AgentAuthenticatorFactory"
"""

from __future__ import annotations

import importlib.metadata
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional

from sshkeyauth.auth.base import AuthenticationMode, SSHAuthenticator
from sshkeyauth.exceptions import PluginError
from sshkeyauth.models import AuthenticatorsConfig, ConnectorKind, CredentialKind

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "sshkeyauth.authenticators"
"""The entry-point group name used for factory discovery."""


def _kind_of(obj: Any) -> Any:
    return getattr(obj, "kind", None)


class SSHAuthenticatorFactory(ABC):
    """Builds authenticators for one (connector kind, credential kind) pair.

    Subclasses declare :attr:`connector_kind`, :attr:`credential_kind`,
    and :attr:`authentication_mode`, and implement :meth:`create`.
    :meth:`new_instance` performs the capability check, so :meth:`create`
    only ever sees compatible arguments.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique factory name used for allow/deny lists and listings."""
        ...

    @property
    @abstractmethod
    def connector_kind(self) -> ConnectorKind:
        ...

    @property
    @abstractmethod
    def credential_kind(self) -> CredentialKind:
        ...

    @property
    def authentication_mode(self) -> AuthenticationMode:
        """Mode of the authenticators this factory builds."""
        return AuthenticationMode.AFTER_CONNECT

    def supports(self, connector_kind: Any, credential_kind: Any) -> bool:
        """Return whether this factory handles the given capability tags. Pure."""
        return (
            connector_kind == self.connector_kind
            and credential_kind == self.credential_kind
        )

    def new_instance(
        self, connector: Any, user: Any, username: Optional[str] = None
    ) -> Optional[SSHAuthenticator]:
        """Build an authenticator if *connector* and *user* are supported.

        Args:
            connector: The connector to authenticate.
            user: The credential to authenticate with.
            username: Optional override for the credential's username.

        Returns:
            A new authenticator, or ``None`` when this factory does not
            apply to the pair.
        """
        if not self.supports(_kind_of(connector), _kind_of(user)):
            return None
        return self.create(connector, user, username)

    @abstractmethod
    def create(
        self, connector: Any, user: Any, username: Optional[str]
    ) -> SSHAuthenticator:
        """Construct the authenticator. Called only for supported pairs."""
        ...


class AuthenticatorRegistry:
    """Ordered, append-only collection of authenticator factories.

    Example::

        registry = AuthenticatorRegistry()
        registry.register(PublicKeyAuthenticatorFactory())
        authenticator = registry.resolve(connector, credential)
        if authenticator is None:
            ...  # try another credential
    """

    def __init__(self) -> None:
        self._factories: list[SSHAuthenticatorFactory] = []

    def register(self, factory: SSHAuthenticatorFactory) -> None:
        """Append *factory* to the registry.

        Raises:
            PluginError: If a factory with the same name is already registered.
        """
        for existing in self._factories:
            if existing.name == factory.name:
                raise PluginError(
                    f"Authenticator factory '{factory.name}' is already registered"
                )
        self._factories.append(factory)
        logger.debug(
            "Registered authenticator factory '%s' (%s, %s)",
            factory.name,
            factory.connector_kind.value,
            factory.credential_kind.value,
        )

    @property
    def factories(self) -> tuple[SSHAuthenticatorFactory, ...]:
        """Registered factories, in registration order."""
        return tuple(self._factories)

    def resolve(
        self, connector: Any, user: Any, username: Optional[str] = None
    ) -> Optional[SSHAuthenticator]:
        """Return an authenticator from the first factory that supports the pair.

        Args:
            connector: The connector to authenticate.
            user: The credential to authenticate with.
            username: Optional override for the credential's username.

        Returns:
            The first non-``None`` result of
            :meth:`SSHAuthenticatorFactory.new_instance`, or ``None`` if no
            registered factory applies.
        """
        for factory in self._factories:
            authenticator = factory.new_instance(connector, user, username)
            if authenticator is not None:
                logger.debug(
                    "Resolved '%s' for %r", factory.name, connector
                )
                return authenticator
        logger.debug(
            "No authenticator for connector kind %s and credential kind %s",
            _kind_of(connector),
            _kind_of(user),
        )
        return None

    def is_supported(self, connector_kind: Any, credential_kind: Any) -> bool:
        """Return whether any registered factory handles the capability pair."""
        return any(f.supports(connector_kind, credential_kind) for f in self._factories)

    def discover(self, config: Optional[AuthenticatorsConfig] = None) -> list[str]:
        """Register factories published under the ``sshkeyauth.authenticators`` entry points.

        Entry points that fail to load are logged as warnings and skipped.

        Args:
            config: Allow/deny lists filtering entry points by name.

        Returns:
            Names of the factories that were registered.
        """
        config = config or AuthenticatorsConfig()
        loaded_names: list[str] = []

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if not is_allowed(ep.name, config):
                logger.debug("Authenticator '%s' is not allowed, skipping", ep.name)
                continue
            try:
                factory_cls = ep.load()
                factory: SSHAuthenticatorFactory = factory_cls()
                self.register(factory)
                loaded_names.append(factory.name)
            except Exception as exc:
                logger.warning("Failed to load authenticator '%s': %s", ep.name, exc)

        return loaded_names

    def __iter__(self) -> Iterator[SSHAuthenticatorFactory]:
        return iter(self.factories)

    def __len__(self) -> int:
        return len(self._factories)


def is_allowed(name: str, config: AuthenticatorsConfig) -> bool:
    """Apply the allow/deny lists: *enabled*, when non-empty, is exhaustive."""
    if config.enabled and name not in config.enabled:
        return False
    return name not in config.disabled


def create_default_registry(
    config: Optional[AuthenticatorsConfig] = None,
) -> AuthenticatorRegistry:
    """Create a registry holding the built-in factories and discovered entry points.

    Built-ins are registered first, in this order:

    - ``public_key`` -- private-key identities (paramiko connector).
    - ``password`` -- password (paramiko connector).

    Args:
        config: Allow/deny lists applied to built-ins and entry points alike.

    Returns:
        A fully initialised :class:`AuthenticatorRegistry`.
    """
    from sshkeyauth.plugins.password import PasswordAuthenticatorFactory
    from sshkeyauth.plugins.public_key import PublicKeyAuthenticatorFactory

    config = config or AuthenticatorsConfig()
    registry = AuthenticatorRegistry()
    for factory in (PublicKeyAuthenticatorFactory(), PasswordAuthenticatorFactory()):
        if is_allowed(factory.name, config):
            registry.register(factory)
    registry.discover(config)
    return registry


# ------------------------------------------------------------------ #
# Process-wide registry
# ------------------------------------------------------------------ #

_registry: Optional[AuthenticatorRegistry] = None


def get_registry() -> AuthenticatorRegistry:
    """Return the process-wide registry, building the default one on first use."""
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry


def set_registry(registry: AuthenticatorRegistry) -> None:
    """Install *registry* as the process-wide registry.

    Must happen before any thread calls :func:`resolve`.
    """
    global _registry
    _registry = registry


def reset_registry() -> None:
    """Drop the process-wide registry. Primarily useful in test suites."""
    global _registry
    _registry = None


def register_factory(factory: SSHAuthenticatorFactory) -> None:
    """Append *factory* to the process-wide registry."""
    get_registry().register(factory)


def resolve(
    connector: Any, user: Any, username: Optional[str] = None
) -> Optional[SSHAuthenticator]:
    """Resolve an authenticator using the process-wide registry.

    This is the entry point for callers outside the auth package.
    """
    return get_registry().resolve(connector, user, username)
