"""OAuth 2.0 Authorization Code support for outgoing HTTP requests.

The package is organised leaf-first:

- :class:`EndpointRegistry` -- which URLs are OAuth-governed and how.
- :class:`CredentialStore` / :class:`CredentialAdapter` -- persisted client
  secrets and bearer tokens keyed by (user, host, port, path, scope).
- :class:`TokenExchangeClient` -- authorization-code-for-token exchange.
- :class:`AuthorizationFlow` -- the interactive flow producing a token.
- :class:`OAuthScheme` / :class:`SchemeManager` / :class:`SchemeAuth` --
  the ``Authorization`` header hook for HTTP clients.

Typical usage::

    from urloauth.context import create_context

    context = create_context(endpoints=[config])
    context.schemes.authorization_for("https://api.example.com/data")
    # -> "Bearer ..."
"""

from urloauth.auth.credential_store import CredentialStore, PendingEntry
from urloauth.auth.credentials import CredentialAdapter, FoundSecret
from urloauth.auth.flow import (
    AuthorizationFlow,
    FlowState,
    build_authorization_url,
    extract_authorization_code,
)
from urloauth.auth.registry import EndpointRegistry
from urloauth.auth.scheme import (
    OAUTH_PRIORITY,
    AuthScheme,
    OAuthScheme,
    SchemeAuth,
    SchemeManager,
)
from urloauth.auth.token_exchange import TokenExchangeClient

__all__ = [
    "OAUTH_PRIORITY",
    "AuthScheme",
    "AuthorizationFlow",
    "CredentialAdapter",
    "CredentialStore",
    "EndpointRegistry",
    "FlowState",
    "FoundSecret",
    "OAuthScheme",
    "PendingEntry",
    "SchemeAuth",
    "SchemeManager",
    "TokenExchangeClient",
    "build_authorization_url",
    "extract_authorization_code",
]
