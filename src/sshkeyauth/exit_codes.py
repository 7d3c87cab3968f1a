"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sshkeyauth.exceptions.SSHKeyAuthError` subclass.
Shell wrappers can inspect the exit code of ``sshkeyauth check`` to tell a
rejected key apart from an unreachable host without parsing stderr.

Example::

    $ sshkeyauth check build.example.com --user deploy --key ~/.ssh/id_rsa
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the server rejected every identity
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The remote endpoint rejected the credential."""

EXIT_NO_AUTHENTICATOR = 4
"""No registered authenticator supports the connector/credential pair."""

EXIT_PROTOCOL_ERROR = 6
"""An SSH-level error occurred (key decoding, negotiation, host key, network)."""

EXIT_PLUGIN_ERROR = 10
"""An authenticator factory failed to load or register."""
