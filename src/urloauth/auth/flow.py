"""Authorization flow controller -- from URL to bearer token.

:class:`AuthorizationFlow` drives the three-legged OAuth 2.0 Authorization
Code grant for a registered URL:

1. Look the URL up in the :class:`~urloauth.auth.registry.EndpointRegistry`.
2. Return a stored bearer token when the credential store has one.
3. Otherwise build the authorization URL and block on the redirect prompt
   until the user pastes back the URL they were redirected to.
4. Extract the ``code`` query parameter and exchange it for a token.
5. Check the granted scope, store the token with its expiry, and return it.

Expired tokens are not refreshed; the store stops returning them and the
next call runs the interactive flow again.

The prompt is an injected blocking callable, so applications can replace
the terminal prompt (:func:`prompt_for_redirect_url`) with their own user
interface.
"""

from __future__ import annotations

import enum
import logging
import sys
import threading
import webbrowser
from contextlib import nullcontext
from typing import Callable, ContextManager, Optional

import typer

from urloauth.auth.credentials import CredentialAdapter
from urloauth.auth.registry import EndpointRegistry
from urloauth.auth.token_exchange import TokenExchangeClient
from urloauth.exceptions import (
    AuthError,
    MissingAuthorizationCodeError,
    NotConfiguredError,
    ScopeMismatchError,
    UrlOAuthError,
)
from urloauth.models import CredentialAttributes, EndpointConfig
from urloauth.output import info
from urloauth.urls import query_parameter, with_query

logger = logging.getLogger(__name__)

RedirectPrompt = Callable[[str], str]
"""Blocking callback: receives the authorization URL, returns the pasted redirect URL."""


class FlowState(str, enum.Enum):
    """States of a single :meth:`AuthorizationFlow.get_bearer_token` call."""

    NOT_INTERPOSED = "not_interposed"
    CACHE_HIT = "cache_hit"
    NEED_AUTHORIZATION = "need_authorization"
    EXCHANGING = "exchanging"
    PERSISTED = "persisted"
    FAILED = "failed"


def build_authorization_url(config: EndpointConfig) -> str:
    """Return the URL the user visits to authorize ``config.client_identifier``.

    The query carries ``client_id``, ``response_type=code`` and ``scope``,
    followed by ``config.authorization_extra_arguments`` in order.
    """
    params = [
        ("client_id", config.client_identifier),
        ("response_type", "code"),
        ("scope", config.scope),
    ]
    params.extend(config.authorization_extra_arguments)
    return with_query(config.authorization_endpoint, params)


def extract_authorization_code(redirect_url: str) -> str:
    """Return the ``code`` query parameter of *redirect_url*.

    Raises:
        MissingAuthorizationCodeError: If the URL has no query or no code.
    """
    code = query_parameter(redirect_url.strip(), "code")
    if not code:
        raise MissingAuthorizationCodeError(redirect_url)
    return code


def prompt_for_redirect_url(authorization_url: str, open_browser: bool = True) -> str:
    """Send the user to *authorization_url* and read back the redirect URL.

    The URL is printed to stderr and, when *open_browser* is set, opened in
    a browser from a daemon thread so a slow browser launch cannot block
    the prompt.

    Raises:
        AuthError: If stdin is not a TTY.
    """
    if not sys.stdin.isatty():
        raise AuthError(
            "OAuth authorization requires an interactive terminal "
            "(stdin must be a TTY)"
        )

    info("Authorize access by visiting:")
    info(f"  {authorization_url}")
    if open_browser:
        threading.Thread(
            target=webbrowser.open, args=(authorization_url,), daemon=True
        ).start()

    return typer.prompt("Paste the URL you were redirected to")


class AuthorizationFlow:
    """Obtain bearer tokens for registered URLs.

    Args:
        registry: Endpoint configurations by URL.
        credentials: Credential store adapter for cached tokens.
        exchange: Client for the token endpoint.
        prompt: Blocking redirect prompt.  Defaults to
            :func:`prompt_for_redirect_url`.
        deduplicate: Serialise concurrent flows for the same endpoint, so a
            second caller waits for the first and then finds its token in
            the store instead of prompting the user again.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        credentials: CredentialAdapter,
        exchange: TokenExchangeClient,
        prompt: Optional[RedirectPrompt] = None,
        deduplicate: bool = True,
    ) -> None:
        self._registry = registry
        self._credentials = credentials
        self._exchange = exchange
        self._prompt = prompt or prompt_for_redirect_url
        self._deduplicate = deduplicate
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get_bearer_token(self, url: str) -> str:
        """Return a bearer token for *url*, running the interactive flow if needed.

        Args:
            url: The request URL.  Its query string is ignored.

        Returns:
            The access token (without the ``Bearer`` prefix).

        Raises:
            NotConfiguredError: If *url* is not registered.
            MissingAuthorizationCodeError: If the pasted URL has no code.
            TokenExchangeError: If the token endpoint call fails.
            UnsupportedTokenTypeError: If the server issued a non-bearer token.
            ScopeMismatchError: If the server granted a different scope.
        """
        config = self._registry.lookup(url)
        if config is None:
            self._enter(FlowState.NOT_INTERPOSED, url)
            raise NotConfiguredError(url)

        attributes = CredentialAttributes.for_url(
            url, user=config.client_identifier, scope=config.scope
        )
        with self._flow_lock(config.key):
            return self._run(url, config, attributes)

    def forget(self, url: str) -> int:
        """Delete the stored bearer tokens for *url*.

        Returns:
            The number of tokens removed.

        Raises:
            NotConfiguredError: If *url* is not registered.
        """
        config = self._registry.lookup(url)
        if config is None:
            raise NotConfiguredError(url)
        attributes = CredentialAttributes.for_url(
            url, user=config.client_identifier, scope=config.scope
        )
        return self._credentials.forget_bearer(attributes)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _run(self, url: str, config: EndpointConfig, attributes: CredentialAttributes) -> str:
        cached = self._credentials.find_secret(attributes)
        if cached is not None:
            self._enter(FlowState.CACHE_HIT, url)
            return cached.secret

        try:
            authorization_url = build_authorization_url(config)
            self._enter(FlowState.NEED_AUTHORIZATION, url)
            redirect_url = self._prompt(authorization_url)
            code = extract_authorization_code(redirect_url)

            self._enter(FlowState.EXCHANGING, url)
            grant = self._exchange.exchange_code_for_token(config, code)
            if grant.scope != config.scope:
                raise ScopeMismatchError(config.scope, grant.scope)
        except UrlOAuthError as exc:
            self._enter(FlowState.FAILED, url, exc)
            raise

        pending = self._credentials.store_bearer(attributes, grant.access_token, grant.expiry)
        pending.commit()
        self._enter(FlowState.PERSISTED, url)
        return grant.access_token

    def _flow_lock(self, key: str) -> ContextManager[object]:
        if not self._deduplicate:
            return nullcontext()
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.Lock())
        return lock

    @staticmethod
    def _enter(state: FlowState, url: str, exc: Optional[Exception] = None) -> None:
        if exc is None:
            logger.debug("OAuth flow for %s: %s", url, state.value)
        else:
            logger.debug("OAuth flow for %s: %s (%s)", url, state.value, exc)
