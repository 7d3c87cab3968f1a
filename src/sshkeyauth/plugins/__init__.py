"""Built-in authenticator plugins for sshkeyauth.

Each sub-package contributes one authenticator and the factory that the
registry uses to select it:

* :mod:`sshkeyauth.plugins.public_key` -- private-key identities.
* :mod:`sshkeyauth.plugins.password` -- password.

Third-party factories are discovered through the
``sshkeyauth.authenticators`` entry-point group; see
:mod:`sshkeyauth.auth.registry`.
"""
