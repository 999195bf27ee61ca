"""Typer application and CLI entry point for urloauth.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``endpoints``, ``store``, ``config``) and the
token commands (``token``, ``header``, ``logout``, ``request``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers and invokes the Typer app.
:class:`~urloauth.exceptions.UrlOAuthError` instances exit with their
``exit_code``; any other exception is written to a crash log under the data
directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from urloauth import __version__
from urloauth.commands.config import config_app
from urloauth.commands.endpoints import endpoints_app
from urloauth.commands.store import store_app
from urloauth.commands.tokens import (
    header_command,
    logout_command,
    request_command,
    token_command,
)
from urloauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="urloauth",
    help="OAuth 2.0 bearer tokens for registered HTTP endpoints.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(endpoints_app, name="endpoints", help="Register OAuth-protected URLs.")
app.add_typer(store_app, name="store", help="Inspect the credential store.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.command("token")(token_command)
app.command("header")(header_command)
app.command("logout")(logout_command)
app.command("request")(request_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"urloauth {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


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
    json_output: bool = typer.Option(False, "--json", help="JSON table output."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Token endpoint and request timeout in seconds."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~urloauth.output.OutputManager`, configures
    logging, and stores shared options in ``ctx.obj``.
    """
    from urloauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["timeout"] = timeout
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from urloauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``urloauth`` console script.

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
        from urloauth.exceptions import UrlOAuthError
        from urloauth.output import error

        if isinstance(exc, UrlOAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
