"""Token commands -- obtain, inspect and use bearer tokens.

These are registered directly on the root application:

* ``urloauth token URL`` -- print the bearer token for *URL*.
* ``urloauth header URL`` -- print the ``Authorization`` header value, or
  exit 1 when no scheme applies.
* ``urloauth logout URL`` -- delete stored tokens for *URL*.
* ``urloauth request URL`` -- send a request with authentication applied.

Each command runs the interactive authorization flow when no valid token
is stored.
"""

from __future__ import annotations

from typing import Optional

import typer

from urloauth.output import get_output, info, print_data, success


def _timeout(ctx: typer.Context) -> Optional[float]:
    return ctx.obj.get("timeout") if ctx.obj else None


def token_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Registered resource URL."),
) -> None:
    """Print the bearer token for a registered URL.

    Example::

        urloauth token https://api.example.com/data
    """
    from urloauth.context import load_context

    context = load_context(_timeout(ctx))
    print_data(context.flow.get_bearer_token(url))


def header_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request URL."),
) -> None:
    """Print the Authorization header value for a request URL.

    Exits with status 1 and prints nothing when no auth scheme applies.

    Example::

        curl -H "Authorization: $(urloauth header https://api.example.com/data)" ...
    """
    from urloauth.context import load_context

    context = load_context(_timeout(ctx))
    value = context.authorize(url)
    if value is None:
        info(f"No auth scheme applies to {url}.")
        raise typer.Exit(code=1)
    print_data(value)


def logout_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Registered resource URL."),
) -> None:
    """Delete the stored bearer tokens for a registered URL."""
    from urloauth.context import load_context

    context = load_context(_timeout(ctx))
    removed = context.flow.forget(url)
    if removed:
        success(f"Removed {removed} stored token(s) for {url}.")
    else:
        info(f"No stored token for {url}.")


def request_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request URL."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Raw request body."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Name: value' (repeatable)."
    ),
) -> None:
    """Send an HTTP request, authenticating it when the URL is registered.

    The response body is printed to stdout and the status line to stderr.

    Example::

        urloauth request https://api.example.com/data
        urloauth request https://api.example.com/data -X POST -d '{"a": 1}' \\
            -H 'Content-Type: application/json'
    """
    from urloauth.client import SyncClient
    from urloauth.context import load_context

    headers: dict[str, str] = {}
    for item in header or []:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            get_output().error(f"Expected 'Name: value', got: {item!r}")
            raise typer.Exit(code=2)
        headers[name.strip()] = value.strip()

    context = load_context(_timeout(ctx))
    with SyncClient(context) as client:
        response = client.request(method, url, headers=headers, body=data)

    info(f"HTTP {response.status_code} {response.reason_phrase}")
    print_data(response.text)
