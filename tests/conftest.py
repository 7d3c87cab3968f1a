"""Shared test fixtures for sshkeyauth.

Provides generated key material, credentials, an in-process paramiko SSH
server, isolated config directories, and a CLI runner. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
import socket
import threading
from pathlib import Path
from typing import Callable, Optional

import paramiko
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sshkeyauth.auth.registry import reset_registry
from sshkeyauth.models import ConnectorConfig, SSHUserPrivateKey
from sshkeyauth.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals_between_tests() -> None:
    """Reset the global OutputManager and authenticator registry after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    The registry is process-wide and CLI commands replace it.
    """
    yield
    reset_output()
    reset_registry()
    package_logger = logging.getLogger("sshkeyauth")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


def _pkcs8(key: rsa.RSAPrivateKey, passphrase: Optional[str] = None) -> str:
    encryption: serialization.KeySerializationEncryption
    if passphrase:
        encryption = serialization.BestAvailableEncryption(passphrase.encode("utf-8"))
    else:
        encryption = serialization.NoEncryption()
    return key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, encryption
    ).decode("ascii")


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """The key the test server accepts for ``foobar``."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    """A well-formed key the test server does not accept."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    """``rsa_key`` as an unencrypted ``BEGIN PRIVATE KEY`` block."""
    return _pkcs8(rsa_key)


@pytest.fixture(scope="session")
def encrypted_rsa_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    """``rsa_key`` encrypted with the passphrase ``"s3cret"``."""
    return _pkcs8(rsa_key, "s3cret")


@pytest.fixture(scope="session")
def other_rsa_pem(other_rsa_key: rsa.RSAPrivateKey) -> str:
    return _pkcs8(other_rsa_key)


@pytest.fixture(scope="session")
def rsa_public_blob(rsa_key: rsa.RSAPrivateKey) -> bytes:
    """SSH wire encoding of ``rsa_key``'s public half."""
    return paramiko.RSAKey(key=rsa_key).asbytes()


@pytest.fixture
def user(rsa_pem: str) -> SSHUserPrivateKey:
    """A ``foobar`` credential holding ``rsa_key``, without passphrase."""
    return SSHUserPrivateKey.from_private_key("foobar", rsa_pem, id="foobar")


# ---------------------------------------------------------------------------
# In-process SSH server
# ---------------------------------------------------------------------------


class _ServerInterface(paramiko.ServerInterface):
    def __init__(
        self, username: str, public_blob: Optional[bytes], password: Optional[str]
    ) -> None:
        self._username = username
        self._public_blob = public_blob
        self._password = password

    def get_allowed_auths(self, username: str) -> str:
        methods = []
        if self._public_blob is not None:
            methods.append("publickey")
        if self._password is not None:
            methods.append("password")
        return ",".join(methods)

    def check_auth_publickey(self, username: str, key: paramiko.PKey) -> int:
        if username == self._username and key.asbytes() == self._public_blob:
            return paramiko.AUTH_SUCCESSFUL
        return paramiko.AUTH_FAILED

    def check_auth_password(self, username: str, password: str) -> int:
        if (
            self._password is not None
            and username == self._username
            and password == self._password
        ):
            return paramiko.AUTH_SUCCESSFUL
        return paramiko.AUTH_FAILED


class SSHTestServer:
    """Accepts SSH connections on 127.0.0.1 and authenticates a single user.

    Only authentication is supported; channel requests are refused.
    """

    def __init__(
        self,
        username: str,
        public_blob: Optional[bytes] = None,
        password: Optional[str] = None,
    ) -> None:
        self.username = username
        self.host_key = paramiko.ECDSAKey.generate()
        self._interface = _ServerInterface(username, public_blob, password)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(5)
        self._sock.settimeout(0.2)
        self.host, self.port = self._sock.getsockname()
        self._transports: list[paramiko.Transport] = []
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> SSHTestServer:
        self._thread.start()
        return self

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            transport = paramiko.Transport(conn)
            transport.add_server_key(self.host_key)
            self._transports.append(transport)
            try:
                transport.start_server(server=self._interface)
            except (paramiko.SSHException, EOFError, OSError):
                transport.close()

    def known_hosts_line(self) -> str:
        return f"[{self.host}]:{self.port} {self.host_key.get_name()} {self.host_key.get_base64()}\n"

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=5)
        self._sock.close()
        for transport in self._transports:
            transport.close()


@pytest.fixture
def make_ssh_server() -> Callable[..., SSHTestServer]:
    """Factory for started :class:`SSHTestServer` instances, stopped at teardown."""
    servers: list[SSHTestServer] = []

    def _make(
        username: str = "foobar",
        public_blob: Optional[bytes] = None,
        password: Optional[str] = None,
    ) -> SSHTestServer:
        server = SSHTestServer(username, public_blob, password).start()
        servers.append(server)
        return server

    yield _make
    for server in servers:
        server.stop()


@pytest.fixture
def ssh_server(make_ssh_server: Callable[..., SSHTestServer], rsa_public_blob: bytes) -> SSHTestServer:
    """A server that accepts ``rsa_key`` for user ``foobar``."""
    return make_ssh_server("foobar", public_blob=rsa_public_blob)


@pytest.fixture
def insecure_config() -> ConnectorConfig:
    """Connector settings that skip host key verification and fail fast."""
    return ConnectorConfig(timeout=10, strict_host_key_checking=False)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME at ``tmp_path/config``, forces the XDG layout,
    and clears all SSHKEYAUTH_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr("sshkeyauth.config._is_xdg_platform", lambda: True)
    for var in [
        "SSHKEYAUTH_TIMEOUT",
        "SSHKEYAUTH_STRICT_HOST_KEY_CHECKING",
        "SSHKEYAUTH_LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
