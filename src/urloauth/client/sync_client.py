"""Synchronous HTTP client that authenticates through the auth schemes.

This module provides :class:`SyncClient`, the blocking HTTP client used by
the ``urloauth request`` command.  It wraps :class:`httpx.Client` and
layers on:

- **Auth injection** -- every request goes through
  :class:`~urloauth.auth.scheme.SchemeAuth`, so requests to interposed URLs
  carry ``Authorization: Bearer <token>``.
- **Error mapping** -- HTTP error statuses and network failures become
  :class:`~urloauth.exceptions.UrlOAuthError` subclasses with exit codes.

Requests are never retried.  An authorization failure ends the request.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from urloauth.context import OAuthContext
from urloauth.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from urloauth.models import RequestConfig

logger = logging.getLogger(__name__)


class SyncClient:
    """Synchronous HTTP client for OAuth-protected resources.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        context: Supplies the auth schemes and the default request settings.
        request_config: Overrides ``context.config.request``.
        transport: Optional :mod:`httpx` transport, e.g. an
            :class:`httpx.MockTransport` in tests.

    Example::

        with SyncClient(context) as client:
            response = client.get("https://api.example.com/data")
    """

    def __init__(
        self,
        context: OAuthContext,
        request_config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._context = context
        self._request_config = request_config or context.config.request
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        self._client = httpx.Client(
            auth=self._context.httpx_auth(),
            timeout=self._request_config.timeout,
            verify=self._request_config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request, authenticating it when *url* is interposed.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            params: Query parameters.
            headers: Extra request headers.  An explicit ``Authorization``
                header disables scheme authentication for this request.
            json_body: JSON-serialisable body.
            body: Raw string body.
            data: Form-encoded body.

        Returns:
            The successful :class:`httpx.Response`.

        Raises:
            AuthError: On 401 / 403, or when the OAuth flow fails.
            NotFoundError: On 404.
            ServerError: On any other 4xx or 5xx status.
            ConnectionError_: On network errors and timeouts.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        kwargs: dict[str, Any] = {
            "method": method.upper(),
            "url": url,
            "headers": headers or {},
            "params": params,
        }
        if data is not None:
            kwargs["data"] = data
        elif json_body is not None:
            kwargs["json"] = json_body
        elif body is not None:
            kwargs["content"] = body

        logger.debug("%s %s", kwargs["method"], url)
        try:
            response = self._client.request(**kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc

        self._map_response_error(response)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = (
                    detail.get("error_description")
                    or detail.get("message")
                    or detail.get("error")
                    or detail.get("detail")
                    or ""
                )
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
