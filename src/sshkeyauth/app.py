"""Typer application and CLI entry point for sshkeyauth.

Two commands are provided:

* ``authenticators`` -- list the registered authenticator factories in
  registration order, i.e. the order in which they are tried.
* ``check`` -- resolve an authenticator for a key or password, prepare a
  connector with it, and connect to a host to prove the credential works.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from sshkeyauth import __version__
from sshkeyauth.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NO_AUTHENTICATOR


app = typer.Typer(
    name="sshkeyauth",
    help="Check SSH credentials with pluggable authenticators.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"sshkeyauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~sshkeyauth.output.OutputManager` and
    stores ``verbose`` in the Typer context for sub-commands.
    """
    from sshkeyauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup(ctx: typer.Context):
    """Resolve config, configure logging, and install the process-wide registry."""
    from sshkeyauth.auth import create_default_registry, set_registry
    from sshkeyauth.config import resolve_config
    from sshkeyauth.output import configure_logging

    cfg = resolve_config()
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    configure_logging("DEBUG" if verbose else cfg.log_level)
    set_registry(create_default_registry(cfg.authenticators))
    return cfg


@app.command("authenticators")
def list_authenticators(ctx: typer.Context) -> None:
    """List registered authenticators in the order they are tried."""
    from sshkeyauth.auth import get_registry
    from sshkeyauth.exceptions import SSHKeyAuthError
    from sshkeyauth.output import error, info, print_table

    try:
        _setup(ctx)
    except SSHKeyAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [
        [
            factory.name,
            factory.connector_kind.value,
            factory.credential_kind.value,
            factory.authentication_mode.value,
        ]
        for factory in get_registry()
    ]
    if not rows:
        info("No authenticators registered.")
        return
    print_table(["Name", "Connector", "Credential", "Mode"], rows, title="Authenticators")


@app.command("check")
def check(
    ctx: typer.Context,
    host: str = typer.Argument(help="Host to connect to."),
    user: str = typer.Option(..., "--user", "-u", help="Remote username."),
    port: int = typer.Option(22, "--port", "-p", help="SSH port."),
    key: Optional[Path] = typer.Option(
        None, "--key", "-k", help="Private key file (PEM or OpenSSH)."
    ),
    passphrase: Optional[str] = typer.Option(
        None,
        "--passphrase",
        help="Key passphrase source: env:VAR, file:/path, or prompt.",
    ),
    password: Optional[str] = typer.Option(
        None,
        "--password",
        help="Password source: env:VAR, file:/path, or prompt.",
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", "-t", help="Connect timeout in seconds."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Skip host key verification."
    ),
) -> None:
    """Authenticate to HOST with a key or password and report the outcome.

    Example::

        sshkeyauth check build.example.com -u deploy -k ~/.ssh/id_ed25519
    """
    from sshkeyauth.auth import resolve
    from sshkeyauth.config import resolve_secret
    from sshkeyauth.connector import ParamikoConnector
    from sshkeyauth.exceptions import AuthError, InvalidUsageError, SSHKeyAuthError
    from pydantic import ValidationError

    from sshkeyauth.models import (
        ConnectorConfig,
        SSHUserPrivateKey,
        UsernamePasswordCredentials,
    )
    from sshkeyauth.output import debug, error, success

    try:
        cfg = _setup(ctx)

        if (key is None) == (password is None):
            raise InvalidUsageError("Pass exactly one of --key or --password")
        if key is not None:
            secret = resolve_secret(passphrase) if passphrase else None
            credential: Any = SSHUserPrivateKey.from_file(user, key, passphrase=secret)
        else:
            credential = UsernamePasswordCredentials(
                username=user, password=resolve_secret(password)
            )

        update: dict[str, Any] = {}
        if timeout is not None:
            update["timeout"] = timeout
        if insecure:
            update["strict_host_key_checking"] = False
        try:
            connector_config = ConnectorConfig.model_validate(
                {**cfg.connector.model_dump(), **update}
            )
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid connector option: {exc}") from exc

        with ParamikoConnector(user, host, port, connector_config) as connector:
            authenticator = resolve(connector, credential)
            if authenticator is None:
                error(f"No authenticator supports {credential.kind.value} credentials")
                raise typer.Exit(code=EXIT_NO_AUTHENTICATOR)
            debug(f"Using {type(authenticator).__name__}")
            if not authenticator.authenticate():
                raise AuthError(f"{type(authenticator).__name__} could not prepare {connector!r}")
            connector.session.connect()
            success(f"Authenticated to {host}:{port} as {user}")
    except SSHKeyAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``sshkeyauth`` console script.

    Unhandled :class:`~sshkeyauth.exceptions.SSHKeyAuthError` instances
    cause a clean exit with the error's ``exit_code``; any other exception
    exits with :data:`~sshkeyauth.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from sshkeyauth.exceptions import SSHKeyAuthError
        from sshkeyauth.output import error

        if isinstance(exc, SSHKeyAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
