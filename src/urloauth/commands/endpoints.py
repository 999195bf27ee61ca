"""Endpoint commands -- register and unregister OAuth-protected URLs.

Provides the ``urloauth endpoints`` sub-command group.  Endpoints are
persisted in ``endpoints.json`` under the config directory and interposed
into the registry every time the CLI starts.

Typical workflow::

    urloauth endpoints add https://api.example.com/data \\
        --authorization-endpoint https://auth.example.com/authorize \\
        --token-endpoint https://auth.example.com/token \\
        --client-id myapp --scope read
    urloauth endpoints list
    urloauth endpoints remove https://api.example.com/data
"""

from __future__ import annotations

from typing import Optional

import typer

from urloauth.output import error, get_output, info, success


endpoints_app = typer.Typer(no_args_is_help=True)


def _parse_extra_arguments(values: list[str]) -> list[tuple[str, str]]:
    """Turn ``name=value`` strings into ordered pairs."""
    pairs: list[tuple[str, str]] = []
    for value in values:
        name, sep, arg = value.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected name=value, got: {value!r}")
        pairs.append((name, arg))
    return pairs


@endpoints_app.command("add")
def endpoints_add(
    url: str = typer.Argument(help="Protected resource URL."),
    authorization_endpoint: str = typer.Option(
        ..., "--authorization-endpoint", "-a", help="Authorization endpoint URL."
    ),
    token_endpoint: str = typer.Option(
        ..., "--token-endpoint", "-t", help="Token endpoint URL."
    ),
    client_id: str = typer.Option(..., "--client-id", "-c", help="OAuth client identifier."),
    scope: str = typer.Option(..., "--scope", "-s", help="Requested scope."),
    client_secret_method: str = typer.Option(
        "none",
        "--client-secret-method",
        help="Client authentication at the token endpoint: none, prompt (or promptForSecret).",
    ),
    extra: Optional[list[str]] = typer.Option(
        None,
        "--extra",
        "-e",
        help="Extra authorization query argument as name=value (repeatable).",
    ),
) -> None:
    """Register an OAuth-protected URL.

    The query string of *url* is ignored: every request to the same
    scheme, host, port and path uses this configuration.  Registering a
    URL again replaces its configuration.

    Example::

        urloauth endpoints add https://api.example.com/data \\
            -a https://auth.example.com/authorize \\
            -t https://auth.example.com/token -c myapp -s read \\
            -e redirect_uri=https://myapp.example.com/cb
    """
    from urloauth.auth.registry import EndpointRegistry
    from urloauth.config import add_endpoint
    from urloauth.exceptions import InvalidConfigError
    from urloauth.models import EndpointConfig

    try:
        extra_arguments = _parse_extra_arguments(extra or [])
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    try:
        endpoint = EndpointConfig.parse(
            {
                "url": url,
                "authorization_endpoint": authorization_endpoint,
                "token_endpoint": token_endpoint,
                "client_identifier": client_id,
                "scope": scope,
                "client_secret_method": client_secret_method,
                "authorization_extra_arguments": extra_arguments,
            }
        )
        # Same validation the registry applies at start-up.
        EndpointRegistry().interpose(endpoint)
    except InvalidConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    replaced = add_endpoint(endpoint)
    success(f'{"Updated" if replaced else "Added"} endpoint {endpoint.key}.')


@endpoints_app.command("remove")
def endpoints_remove(
    url: str = typer.Argument(help="Registered resource URL."),
) -> None:
    """Unregister an OAuth-protected URL.

    Stored tokens are kept; use ``urloauth logout`` first to delete them.
    """
    from urloauth.config import remove_endpoint
    from urloauth.exceptions import ConfigError, InvalidConfigError

    try:
        endpoint = remove_endpoint(url)
    except (ConfigError, InvalidConfigError) as exc:
        error(str(exc))
        raise typer.Exit(code=1) from None
    success(f"Removed endpoint {endpoint.key}.")


@endpoints_app.command("list")
def endpoints_list() -> None:
    """List registered endpoints."""
    from urloauth.config import load_endpoints

    endpoints = load_endpoints()
    if not endpoints:
        info("No endpoints registered.")
        return

    rows = [
        [
            endpoint.key,
            endpoint.client_identifier,
            endpoint.scope,
            endpoint.client_secret_method.value,
            endpoint.token_endpoint,
        ]
        for endpoint in sorted(endpoints, key=lambda e: e.key)
    ]
    get_output().print_table(
        ["URL", "Client", "Scope", "Secret", "Token Endpoint"],
        rows,
        title="OAuth Endpoints",
    )
