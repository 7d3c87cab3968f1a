"""sshkeyauth -- pluggable SSH authentication with capability-based dispatch.

This package pairs SSH credentials (private keys, passwords) with the
connectors that can use them. Callers hand a connector and a credential to
the authenticator registry, which picks the first compatible
authenticator; the authenticator then prepares the connector's session
before the transport handshake begins.

Typical workflow::

    from sshkeyauth import ParamikoConnector, SSHUserPrivateKey, resolve

    with ParamikoConnector("deploy", "build.example.com") as connector:
        authenticator = resolve(connector, credential)
        if authenticator is not None and authenticator.authenticate():
            connector.session.connect(timeout=30)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for credentials, key sources, and configuration.
    connector: Paramiko-backed connector, session, and identity store.
    auth: Authenticator base class and factory registry.
    config: XDG-aware configuration and secret source resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from sshkeyauth.auth import (  # noqa: E402
    AuthenticationMode,
    AuthenticationState,
    AuthenticatorRegistry,
    SSHAuthenticator,
    SSHAuthenticatorFactory,
    get_registry,
    resolve,
)
from sshkeyauth.connector import ParamikoConnector  # noqa: E402
from sshkeyauth.models import (  # noqa: E402
    SSHUserPrivateKey,
    UsernamePasswordCredentials,
)

__all__ = [
    "AuthenticationMode",
    "AuthenticationState",
    "AuthenticatorRegistry",
    "ParamikoConnector",
    "SSHAuthenticator",
    "SSHAuthenticatorFactory",
    "SSHUserPrivateKey",
    "UsernamePasswordCredentials",
    "get_registry",
    "resolve",
]
