"""Credential store commands -- inspect and clear stored secrets.

Provides the ``urloauth store`` sub-command group.  Secret values are never
printed in full.
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer

from urloauth.output import get_output, info, success


store_app = typer.Typer(no_args_is_help=True)


def _preview(secret: str) -> str:
    return secret[:4] + "..." if len(secret) > 4 else "..."


def _expiry(value: str | None) -> str:
    if value is None:
        return "never"
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc).isoformat()
    except ValueError:
        return value


@store_app.command("list")
def store_list() -> None:
    """List stored client secrets and bearer tokens."""
    from urloauth.auth.credential_store import CredentialStore

    store = CredentialStore()
    entries = store.entries()
    if not entries:
        info("The credential store is empty.")
        return

    rows = []
    for entry in entries:
        attributes = entry.attributes
        rows.append(
            [
                "bearer" if attributes.expiry is not None else "client secret",
                attributes.user,
                attributes.host,
                str(attributes.port) if attributes.port is not None else "-",
                attributes.path,
                attributes.scope,
                _expiry(attributes.expiry),
                "yes" if entry.is_expired() else "no",
                _preview(entry.secret),
            ]
        )
    get_output().print_table(
        ["Kind", "User", "Host", "Port", "Path", "Scope", "Expires", "Expired", "Secret"],
        rows,
        title="Stored Credentials",
    )


@store_app.command("clear")
def store_clear(ctx: typer.Context) -> None:
    """Delete every stored client secret and bearer token.

    Asks for confirmation unless ``--force`` is given.
    """
    from urloauth.auth.credential_store import CredentialStore

    store = CredentialStore()
    if not store.path.is_file():
        info("The credential store is empty.")
        return

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Delete all stored credentials?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store.clear()
    success("Credential store cleared.")
