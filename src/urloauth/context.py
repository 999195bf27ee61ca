"""Process-level wiring of the OAuth components.

:func:`create_context` builds one :class:`OAuthContext` at application
start-up: the endpoint registry, the credential store and its adapter, the
token exchange client, the authorization flow, and a scheme manager with
the OAuth scheme registered.  Everything that needs the registry receives
it from here, so there is no module-level registry.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Iterable, Optional

import httpx

from urloauth.auth.credential_store import CredentialStore
from urloauth.auth.credentials import CredentialAdapter, SecretPrompt
from urloauth.auth.flow import AuthorizationFlow, RedirectPrompt, prompt_for_redirect_url
from urloauth.auth.registry import EndpointRegistry
from urloauth.auth.scheme import OAuthScheme, SchemeAuth, SchemeManager
from urloauth.auth.token_exchange import TokenExchangeClient
from urloauth.config import load_endpoints, resolve_config
from urloauth.models import EndpointConfig, GlobalConfig


@dataclass
class OAuthContext:
    """The auth components of one process, wired together."""

    config: GlobalConfig
    registry: EndpointRegistry
    store: CredentialStore
    credentials: CredentialAdapter
    exchange: TokenExchangeClient
    flow: AuthorizationFlow
    schemes: SchemeManager

    def interpose(self, endpoint: EndpointConfig) -> EndpointConfig:
        return self.registry.interpose(endpoint)

    def uninterpose(self, endpoint: EndpointConfig) -> None:
        self.registry.uninterpose(endpoint)

    def authorize(self, url: str) -> Optional[str]:
        """Return the ``Authorization`` header value for *url*, or ``None``."""
        return self.schemes.authorization_for(url)

    def httpx_auth(self) -> SchemeAuth:
        """Return an :class:`httpx.Auth` backed by this context's schemes."""
        return SchemeAuth(self.schemes)


def create_context(
    config: Optional[GlobalConfig] = None,
    endpoints: Iterable[EndpointConfig] = (),
    prompt: Optional[RedirectPrompt] = None,
    secret_prompt: Optional[SecretPrompt] = None,
    store_path: Optional[Path] = None,
    http_client: Optional[httpx.Client] = None,
) -> OAuthContext:
    """Build an :class:`OAuthContext` and interpose *endpoints*.

    Args:
        config: Request and flow settings.  Defaults to
            :class:`~urloauth.models.GlobalConfig` defaults.
        endpoints: Endpoint configurations to register.
        prompt: Redirect prompt.  Defaults to the terminal prompt, opening
            a browser when ``config.flow.open_browser`` is set.
        secret_prompt: Client-secret prompt for the credential adapter.
        store_path: Credential store file.  Defaults to the data directory.
        http_client: Client the token exchange is sent through.

    Raises:
        InvalidConfigError: If an endpoint is rejected by the registry.
    """
    config = config or GlobalConfig()

    registry = EndpointRegistry()
    registry.interpose_all(endpoints)

    store = CredentialStore(store_path)
    credentials = CredentialAdapter(store, secret_prompt=secret_prompt)
    exchange = TokenExchangeClient(
        credentials,
        timeout=config.request.timeout,
        verify_ssl=config.request.verify_ssl,
        http_client=http_client,
    )
    if prompt is None:
        prompt = partial(prompt_for_redirect_url, open_browser=config.flow.open_browser)
    flow = AuthorizationFlow(
        registry,
        credentials,
        exchange,
        prompt=prompt,
        deduplicate=config.flow.deduplicate,
    )

    schemes = SchemeManager()
    schemes.register(OAuthScheme(registry, flow, priority=config.oauth_priority))

    return OAuthContext(
        config=config,
        registry=registry,
        store=store,
        credentials=credentials,
        exchange=exchange,
        flow=flow,
        schemes=schemes,
    )


def load_context(cli_timeout: Optional[float] = None) -> OAuthContext:
    """Build a context from the user's configuration and stored endpoints.

    Raises:
        ConfigError: If the configuration cannot be loaded.
        InvalidConfigError: If a stored endpoint is invalid.
    """
    return create_context(resolve_config(cli_timeout), load_endpoints())
