"""urloauth -- OAuth 2.0 bearer tokens for outgoing HTTP requests.

Applications register ("interpose") the URLs of OAuth-protected resources
together with their authorization and token endpoints.  Every request to a
registered URL then gets an ``Authorization: Bearer`` header: the token
comes from the credential store when one is cached, or from an interactive
Authorization Code flow when it is not.

Typical workflow::

    urloauth endpoints add https://api.example.com/data \\
        --authorization-endpoint https://auth.example.com/authorize \\
        --token-endpoint https://auth.example.com/token \\
        --client-id myapp --scope read
    urloauth request https://api.example.com/data

Modules:
    app: Typer application and CLI entry point.
    auth: Registry, credential store, token exchange, flow and auth schemes.
    client: HTTP client that authenticates through the auth schemes.
    config: XDG-aware configuration and endpoint persistence.
    context: Wiring of the auth components for one process.
    models: Pydantic models shared across the package.
    urls: URL normalisation helpers.
"""

__version__ = "0.1.0"
