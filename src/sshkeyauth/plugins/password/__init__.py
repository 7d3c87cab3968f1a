"""Password authentication plugin.

Implements the ``password`` authenticator for paramiko connectors.
"""

from sshkeyauth.plugins.password.plugin import (
    ParamikoPasswordAuthenticator,
    PasswordAuthenticatorFactory,
)

__all__ = ["ParamikoPasswordAuthenticator", "PasswordAuthenticatorFactory"]
