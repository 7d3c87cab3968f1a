"""Exception hierarchy for sshkeyauth.

All exceptions inherit from :class:`SSHKeyAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sshkeyauth.exit_codes`.
The top-level error handler in :func:`sshkeyauth.app.main` catches
``SSHKeyAuthError`` and exits with the appropriate code.

Two failure classes are deliberately kept apart:

* :class:`ProtocolError` and :class:`AuthError` describe the remote
  endpoint or the credential. Authenticators recover from them, log them,
  and report ``False``.
* :class:`AuthenticatorError` describes a defect in the local environment
  (for example a passphrase that cannot be encoded). It is never
  converted into a boolean result.

Subclass hierarchy::

    SSHKeyAuthError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ProtocolError       (exit 6)
    +-- PluginError         (exit 10)
    +-- AuthenticatorError  (exit 1)
    +-- ConfigError         (exit 1)

Capability mismatches (no authenticator for a connector/credential pair)
are not exceptions at all; the registry returns ``None``.
"""

from sshkeyauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_PROTOCOL_ERROR,
)


class SSHKeyAuthError(Exception):
    """Base exception for all sshkeyauth errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SSHKeyAuthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(SSHKeyAuthError):
    """Raised when the remote endpoint rejects every offered credential."""

    exit_code = EXIT_AUTH_FAILURE


class ProtocolError(SSHKeyAuthError):
    """Raised on SSH-level failures.

    Covers undecodable or mismatched key material handed to
    :meth:`~sshkeyauth.connector.ParamikoConnector.register_identity`,
    identity registration after the session connected, and negotiation,
    host key, or network failures during connect.
    """

    exit_code = EXIT_PROTOCOL_ERROR


class PluginError(SSHKeyAuthError):
    """Raised when an authenticator factory fails to load or register."""

    exit_code = EXIT_PLUGIN_ERROR


class AuthenticatorError(SSHKeyAuthError):
    """Raised for environment defects detected while authenticating.

    Signals a problem with the platform rather than with the credential,
    so callers must not treat it as a rejected key and try the next
    authenticator.
    """

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(SSHKeyAuthError):
    """Raised for configuration problems (invalid JSON, unresolvable secret sources)."""

    exit_code = EXIT_GENERIC_FAILURE
