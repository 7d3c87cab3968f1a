"""Private-key authentication plugin.

Implements the ``public_key`` authenticator, which registers the keys of an
:class:`~sshkeyauth.models.SSHUserPrivateKey` credential as identities of a
paramiko connector before the session connects.

See Also:
    :class:`~sshkeyauth.plugins.public_key.plugin.ParamikoPublicKeyAuthenticator`
    :mod:`sshkeyauth.auth.base` for the authenticator contract.
"""

from sshkeyauth.plugins.public_key.plugin import (
    ParamikoPublicKeyAuthenticator,
    PublicKeyAuthenticatorFactory,
)

__all__ = ["ParamikoPublicKeyAuthenticator", "PublicKeyAuthenticatorFactory"]
