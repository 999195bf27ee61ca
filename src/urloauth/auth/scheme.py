"""Auth schemes -- the seam between the HTTP client and the OAuth flow.

An HTTP client asks a :class:`SchemeManager` for the ``Authorization``
header of each outgoing request.  The manager tries its registered
:class:`AuthScheme` instances from the highest priority down and uses the
first one that applies to the URL.

:class:`OAuthScheme` applies to every URL interposed in the
:class:`~urloauth.auth.registry.EndpointRegistry` and answers with
``Bearer <token>``.  :class:`SchemeAuth` plugs the manager into
:mod:`httpx` as an :class:`httpx.Auth`.

To add a scheme, subclass :class:`AuthScheme`, set :attr:`~AuthScheme.name`
and :attr:`~AuthScheme.priority`, and implement
:meth:`~AuthScheme.authorize`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Generator, Optional

import httpx

from urloauth.auth.flow import AuthorizationFlow
from urloauth.auth.registry import EndpointRegistry
from urloauth.exceptions import AuthError, NotConfiguredError

logger = logging.getLogger(__name__)

OAUTH_SCHEME_NAME = "oauth"
OAUTH_PRIORITY = 9
"""Preferred over weaker schemes (Basic is conventionally 2, Digest 5)."""


class AuthScheme(ABC):
    """Abstract base class for authentication schemes."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique scheme name, e.g. ``"oauth"``."""
        ...

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return the scheme's priority.  Higher values are tried first."""
        ...

    @abstractmethod
    def authorize(self, url: str) -> Optional[str]:
        """Return the ``Authorization`` header value for *url*.

        Returns:
            The header value, or ``None`` when the scheme does not apply to
            *url*.  ``None`` is not an error.

        Raises:
            AuthError: If the scheme applies but cannot produce credentials.
        """
        ...


class OAuthScheme(AuthScheme):
    """Bearer-token authentication for OAuth-governed URLs.

    Args:
        registry: Decides which URLs the scheme applies to.
        flow: Produces the bearer tokens.
        priority: Override for :data:`OAUTH_PRIORITY`.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        flow: AuthorizationFlow,
        priority: int = OAUTH_PRIORITY,
    ) -> None:
        self._registry = registry
        self._flow = flow
        self._priority = priority

    @property
    def name(self) -> str:
        return OAUTH_SCHEME_NAME

    @property
    def priority(self) -> int:
        return self._priority

    def authorize(self, url: str) -> Optional[str]:
        if self._registry.lookup(url) is None:
            return None
        try:
            token = self._flow.get_bearer_token(url)
        except NotConfiguredError:
            # uninterposed after the lookup above
            return None
        return f"Bearer {token}"


class SchemeManager:
    """Registry and dispatcher for auth schemes.

    Example::

        manager = SchemeManager()
        manager.register(OAuthScheme(registry, flow))
        manager.authorization_for("https://api.example.com/data")
    """

    def __init__(self) -> None:
        self._schemes: dict[str, AuthScheme] = {}

    def register(self, scheme: AuthScheme) -> None:
        """Register *scheme* by name, silently replacing one of the same name."""
        self._schemes[scheme.name] = scheme

    def unregister(self, name: str) -> None:
        self._schemes.pop(name, None)

    def get_scheme(self, name: str) -> AuthScheme:
        """Return the scheme registered as *name*.

        Raises:
            AuthError: If no such scheme is registered.
        """
        scheme = self._schemes.get(name)
        if scheme is None:
            available = ", ".join(sorted(self._schemes)) or "(none)"
            raise AuthError(
                f"No auth scheme registered as '{name}'. Available schemes: {available}"
            )
        return scheme

    def schemes(self) -> list[AuthScheme]:
        """Return the registered schemes, highest priority first."""
        return sorted(self._schemes.values(), key=lambda s: s.priority, reverse=True)

    def authorization_for(self, url: str) -> Optional[str]:
        """Return the header value from the first applicable scheme, or ``None``."""
        for scheme in self.schemes():
            value = scheme.authorize(url)
            if value is not None:
                logger.debug("Using auth scheme '%s' for %s", scheme.name, url)
                return value
        return None


class SchemeAuth(httpx.Auth):
    """:class:`httpx.Auth` that fills in ``Authorization`` from a :class:`SchemeManager`.

    Requests that already carry an ``Authorization`` header are sent
    unchanged.

    Example::

        client = httpx.Client(auth=SchemeAuth(manager))
    """

    def __init__(self, manager: SchemeManager) -> None:
        self._manager = manager

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if "Authorization" not in request.headers:
            value = self._manager.authorization_for(str(request.url))
            if value is not None:
                request.headers["Authorization"] = value
        yield request
