"""Endpoint registry -- which URLs are governed by OAuth.

The :class:`EndpointRegistry` maps normalised URLs (query and fragment
stripped, see :func:`~urloauth.urls.normalize_key`) to
:class:`~urloauth.models.EndpointConfig` entries.  It is constructed once
at application start-up and injected into the authorization flow and the
auth scheme, rather than living in module-global state.

All operations are guarded by a single lock.  Concurrent registrations of
the same key resolve as last-writer-wins.

See Also:
    :class:`~urloauth.auth.flow.AuthorizationFlow` -- consults the registry
    before starting a flow.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Mapping, Optional, Union

from urloauth.exceptions import InvalidConfigError
from urloauth.models import ClientSecretMethod, EndpointConfig
from urloauth.urls import normalize_key

logger = logging.getLogger(__name__)


class EndpointRegistry:
    """Thread-safe mapping from normalised URL to endpoint configuration.

    Example::

        registry = EndpointRegistry()
        registry.interpose(config)
        registry.lookup("https://api.example.com/data?page=2")  # -> config
    """

    def __init__(self) -> None:
        self._endpoints: dict[str, EndpointConfig] = {}
        self._lock = threading.Lock()

    def interpose(self, config: Union[EndpointConfig, Mapping[str, Any]]) -> EndpointConfig:
        """Register *config*, replacing any entry for the same normalised URL.

        Args:
            config: An endpoint configuration, or a mapping that validates
                into one.

        Returns:
            The registered :class:`~urloauth.models.EndpointConfig`.

        Raises:
            InvalidConfigError: If the client-secret method is not recognised
                or the URL cannot be normalised.  The registry is unchanged.
        """
        if not isinstance(config, EndpointConfig):
            config = EndpointConfig.parse(config)
        if config.client_secret_method not in tuple(ClientSecretMethod):
            raise InvalidConfigError(
                f"Unrecognised client secret method {config.client_secret_method!r} "
                f"for {config.url}; expected one of: "
                + ", ".join(method.value for method in ClientSecretMethod)
            )
        try:
            key = normalize_key(config.url)
        except ValueError as exc:
            raise InvalidConfigError(str(exc)) from exc

        with self._lock:
            replaced = key in self._endpoints
            self._endpoints[key] = config
        logger.debug("%s OAuth endpoint %s", "Replaced" if replaced else "Interposed", key)
        return config

    def interpose_all(self, configs: Iterable[EndpointConfig]) -> None:
        """Register every configuration in *configs* in order."""
        for config in configs:
            self.interpose(config)

    def uninterpose(self, config: EndpointConfig) -> None:
        """Remove the entry for ``config.url``.  A no-op when it is not registered."""
        try:
            key = normalize_key(config.url)
        except ValueError:
            return
        with self._lock:
            removed = self._endpoints.pop(key, None)
        if removed is not None:
            logger.debug("Uninterposed OAuth endpoint %s", key)

    def lookup(self, url: str) -> Optional[EndpointConfig]:
        """Return the configuration governing *url*, or ``None``.

        Relative or otherwise unparseable URLs are never governed.
        """
        try:
            key = normalize_key(url)
        except ValueError:
            return None
        with self._lock:
            return self._endpoints.get(key)

    def endpoints(self) -> list[EndpointConfig]:
        """Return a snapshot of the registered configurations, sorted by key."""
        with self._lock:
            return [self._endpoints[key] for key in sorted(self._endpoints)]

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.lookup(url) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._endpoints)
