"""Paramiko-backed connector: session handle plus identity store.

A :class:`ParamikoConnector` describes *where* to connect (user, host,
port) and collects the key identities that will be offered during the SSH
handshake. Its :class:`Session` is created lazily on first access and only
touches the network in :meth:`Session.connect`.

The split mirrors the order of operations authenticators rely on:

1. Create the connector. ``has_session()`` is ``False``.
2. Register identities (``register_identity``) and/or a password.
3. Call ``connector.session.connect()``; every registered identity is
   offered in registration order, then the password, then the
   keyboard-interactive handler.

Once the session is connected, no further identities may be registered.
"""

from __future__ import annotations

import base64
import io
import logging
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, ClassVar, Optional

import paramiko
from paramiko.hostkeys import InvalidHostKey
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from sshkeyauth.exceptions import AuthError, ProtocolError
from sshkeyauth.models import ConnectorConfig, ConnectorKind

logger = logging.getLogger(__name__)

InteractionHandler = Callable[[str, str, list[tuple[str, bool]]], list[str]]
"""Keyboard-interactive callback: ``(title, instructions, prompts) -> responses``."""

_SUPPORTED_CURVES = ("secp256r1", "secp384r1", "secp521r1")


# --- Key decoding ---


def _load_crypto_key(data: bytes, passphrase: Optional[bytes]):
    if b"BEGIN OPENSSH PRIVATE KEY" in data:
        loader = serialization.load_ssh_private_key
    else:
        loader = serialization.load_pem_private_key
    try:
        return loader(data, password=passphrase)
    except TypeError:
        # A passphrase handed to an unencrypted key is ignored.
        if passphrase is None:
            raise
        return loader(data, password=None)


def load_private_key(data: bytes, passphrase: Optional[bytes] = None) -> paramiko.PKey:
    """Decode PEM (PKCS#1, PKCS#8, SEC1) or OpenSSH key material into a paramiko key.

    Args:
        data: The encoded private key.
        passphrase: Passphrase for encrypted keys. Ignored for unencrypted keys.

    Returns:
        An :class:`paramiko.RSAKey`, :class:`paramiko.ECDSAKey`, or
        :class:`paramiko.Ed25519Key`.

    Raises:
        ProtocolError: If the data cannot be decoded, the passphrase is
            wrong or missing, or the key type is not usable for SSH.
    """
    try:
        key = _load_crypto_key(data, passphrase)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ProtocolError(f"invalid private key: {exc}") from exc

    if isinstance(key, rsa.RSAPrivateKey):
        return paramiko.RSAKey(key=key)
    if isinstance(key, ec.EllipticCurvePrivateKey):
        if key.curve.name not in _SUPPORTED_CURVES:
            raise ProtocolError(f"unsupported elliptic curve: {key.curve.name}")
        return paramiko.ECDSAKey(vals=(key, key.public_key()))
    if isinstance(key, ed25519.Ed25519PrivateKey):
        text = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.OpenSSH,
            serialization.NoEncryption(),
        ).decode("ascii")
        return paramiko.Ed25519Key(file_obj=io.StringIO(text))
    raise ProtocolError(f"unsupported private key type: {type(key).__name__}")


def _check_public_key(pkey: paramiko.PKey, public_key: bytes) -> None:
    """Verify that an OpenSSH ``authorized_keys`` line belongs to *pkey*."""
    parts = public_key.split()
    if len(parts) < 2:
        raise ProtocolError("invalid public key: expected '<type> <base64> [comment]'")
    try:
        blob = base64.b64decode(parts[1], validate=True)
    except ValueError as exc:
        raise ProtocolError(f"invalid public key: {exc}") from exc
    if blob != pkey.asbytes():
        raise ProtocolError("public key does not match private key")


# --- Identities ---


@dataclass(frozen=True)
class Identity:
    """A decoded key registered with a connector under a descriptive name."""

    name: str
    pkey: paramiko.PKey

    @property
    def fingerprint(self) -> str:
        return self.pkey.fingerprint


# --- Session ---


class Session:
    """SSH session owned by a :class:`ParamikoConnector`.

    Attributes:
        user_interaction_handler: Optional keyboard-interactive callback.
            Setting it signals that a strategy has claimed interactive
            control of the session.
        password: Optional password offered after all key identities.
        strict_host_key_checking: Refuse servers whose host key is not in
            :attr:`known_hosts`.
        known_hosts: Path to an OpenSSH ``known_hosts`` file.
    """

    def __init__(self, connector: ParamikoConnector) -> None:
        self._connector = connector
        self._transport: Optional[paramiko.Transport] = None
        self.user_interaction_handler: Optional[InteractionHandler] = None
        self.password: Optional[str] = None
        self.strict_host_key_checking = connector.config.strict_host_key_checking
        self.known_hosts = connector.config.known_hosts

    @property
    def transport(self) -> Optional[paramiko.Transport]:
        return self._transport

    def is_connected(self) -> bool:
        transport = self._transport
        return (
            transport is not None
            and transport.is_active()
            and transport.is_authenticated()
        )

    def connect(self, timeout: Optional[float] = None) -> None:
        """Open the transport, verify the host key, and authenticate.

        Args:
            timeout: Seconds to wait for TCP connect, negotiation, and each
                auth exchange. Defaults to the connector's configured timeout.

        Raises:
            ProtocolError: On network, negotiation, or host key failures, or
                if the session is already connected.
            AuthError: If the server rejects every offered credential.
        """
        if self.is_connected():
            raise ProtocolError("session is already connected")
        connector = self._connector
        if timeout is None:
            timeout = connector.config.timeout

        try:
            sock = socket.create_connection((connector.host, connector.port), timeout=timeout)
        except OSError as exc:
            raise ProtocolError(
                f"Cannot connect to {connector.host}:{connector.port}: {exc}"
            ) from exc

        transport = paramiko.Transport(sock)
        transport.banner_timeout = timeout
        transport.auth_timeout = timeout
        try:
            transport.start_client(timeout=timeout)
            self._verify_host_key(transport)
            self._authenticate(transport)
        except paramiko.SSHException as exc:
            transport.close()
            raise ProtocolError(f"SSH negotiation with {connector.host} failed: {exc}") from exc
        except BaseException:
            transport.close()
            raise
        self._transport = transport
        logger.info(
            "Connected to %s:%d as %s", connector.host, connector.port, connector.username
        )

    def disconnect(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    def _verify_host_key(self, transport: paramiko.Transport) -> None:
        if not self.strict_host_key_checking:
            return
        connector = self._connector
        host_keys = paramiko.HostKeys()
        path = Path(self.known_hosts).expanduser()
        if path.is_file():
            try:
                host_keys.load(str(path))
            except InvalidHostKey as exc:
                raise ProtocolError(f"Malformed entry in {path}: {exc.line.strip()}") from exc
        if connector.port == 22:
            lookup = connector.host
        else:
            lookup = f"[{connector.host}]:{connector.port}"
        if not host_keys.check(lookup, transport.get_remote_server_key()):
            raise ProtocolError(f"Host key for {lookup} is not present in {path}")

    def _authenticate(self, transport: paramiko.Transport) -> None:
        username = self._connector.username
        for identity in self._connector.identities:
            try:
                transport.auth_publickey(username, identity.pkey)
            except paramiko.AuthenticationException:
                logger.debug("Identity '%s' rejected for %s", identity.name, username)
                continue
            if transport.is_authenticated():
                return

        if self.password is not None:
            try:
                transport.auth_password(username, self.password)
            except paramiko.AuthenticationException:
                logger.debug("Password rejected for %s", username)
            if transport.is_authenticated():
                return

        if self.user_interaction_handler is not None:
            try:
                transport.auth_interactive(username, self.user_interaction_handler)
            except paramiko.AuthenticationException:
                logger.debug("Keyboard-interactive rejected for %s", username)
            if transport.is_authenticated():
                return

        raise AuthError(f"Authentication failed for {username}@{self._connector.host}")


# --- Connector ---


class ParamikoConnector:
    """Connection target plus the identities to offer when connecting.

    Args:
        username: Remote account the session logs in as.
        host: Server host name or address.
        port: Server port.
        config: Timeout and host key settings. Defaults to
            :class:`~sshkeyauth.models.ConnectorConfig` defaults.

    Example::

        with ParamikoConnector("deploy", "build.example.com") as connector:
            connector.register_identity("deploy", pem_bytes)
            connector.session.connect()
    """

    kind: ClassVar[ConnectorKind] = ConnectorKind.PARAMIKO

    def __init__(
        self,
        username: str,
        host: str,
        port: int = 22,
        config: Optional[ConnectorConfig] = None,
    ) -> None:
        self.username = username
        self.host = host
        self.port = port
        self.config = config or ConnectorConfig()
        self._session: Optional[Session] = None
        self._identities: list[Identity] = []

    def has_session(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session:
        """The connector's session, created on first access."""
        if self._session is None:
            self._session = Session(self)
        return self._session

    @property
    def identities(self) -> list[Identity]:
        """Registered identities, in registration order."""
        return list(self._identities)

    def register_identity(
        self,
        name: str,
        private_key: bytes,
        public_key: Optional[bytes] = None,
        passphrase: Optional[bytes] = None,
    ) -> Identity:
        """Decode *private_key* and add it to the identities offered on connect.

        Registering the same key twice keeps the first registration.

        Args:
            name: Label for the identity, usually the username it belongs to.
            private_key: Encoded private key material.
            public_key: Optional OpenSSH public key line that must match.
            passphrase: Passphrase bytes for encrypted keys.

        Returns:
            The registered (or previously registered) :class:`Identity`.

        Raises:
            ProtocolError: If the key cannot be decoded, does not match
                *public_key*, or the session is already connected.
        """
        if self._session is not None and self._session.is_connected():
            raise ProtocolError("cannot register identities on a connected session")
        pkey = load_private_key(private_key, passphrase)
        if public_key is not None:
            _check_public_key(pkey, public_key)
        for existing in self._identities:
            if existing.pkey.asbytes() == pkey.asbytes():
                return existing
        identity = Identity(name=name, pkey=pkey)
        self._identities.append(identity)
        logger.debug("Registered identity '%s' (%s)", name, pkey.get_name())
        return identity

    def close(self) -> None:
        """Disconnect and drop the session. Registered identities are kept."""
        if self._session is not None:
            self._session.disconnect()
            self._session = None

    def __enter__(self) -> ParamikoConnector:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ParamikoConnector({self.username}@{self.host}:{self.port})"
