"""Authorization-code-for-token exchange against the token endpoint.

:class:`TokenExchangeClient` performs the second leg of the OAuth 2.0
Authorization Code grant (:rfc:`6749` section 4.1.3): it POSTs the code to
the configured token endpoint, optionally authenticating the client with
HTTP Basic credentials, and validates the JSON token response into a
:class:`~urloauth.models.Grant`.

Only ``bearer`` tokens are accepted.  A client secret that was prompted for
during the exchange is committed to the credential store only after the
token endpoint accepted it.
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Optional

import httpx

from urloauth.auth.credentials import CredentialAdapter, FoundSecret
from urloauth.exceptions import TokenExchangeError, UnsupportedTokenTypeError
from urloauth.models import ClientSecretMethod, CredentialAttributes, EndpointConfig, Grant

logger = logging.getLogger(__name__)

BEARER_TOKEN_TYPE = "bearer"


def basic_authorization(client_identifier: str, secret: str) -> str:
    """Return the ``Authorization`` header value for HTTP Basic client authentication."""
    raw = f"{client_identifier}:{secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class TokenExchangeClient:
    """Exchange authorization codes for bearer tokens.

    Args:
        credentials: Adapter used to look up (or prompt for) the client
            secret when an endpoint uses ``client_secret_method="prompt"``.
        timeout: Seconds to wait for the token endpoint.
        verify_ssl: Verify the token endpoint's certificate.
        http_client: Optional :class:`httpx.Client` to send the request
            through.  Without one, :func:`httpx.post` is used.
        clock: Source of the current epoch time, used to turn
            ``expires_in`` into an absolute deadline.
    """

    def __init__(
        self,
        credentials: CredentialAdapter,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._credentials = credentials
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._http_client = http_client
        self._clock = clock

    def exchange_code_for_token(self, config: EndpointConfig, code: str) -> Grant:
        """Exchange *code* for an access token at ``config.token_endpoint``.

        Args:
            config: The endpoint the code was issued for.
            code: The authorization code from the redirect URL.

        Returns:
            The validated :class:`~urloauth.models.Grant`.

        Raises:
            TokenExchangeError: On a non-success status, a network failure
                or timeout, or a malformed token response.
            UnsupportedTokenTypeError: If ``token_type`` is not ``"bearer"``.
            AuthError: If the client secret is needed but cannot be obtained.
        """
        token_endpoint = config.token_endpoint
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        client_secret: Optional[FoundSecret] = None
        if config.client_secret_method == ClientSecretMethod.PROMPT:
            attributes = CredentialAttributes.for_url(
                token_endpoint, user=config.client_identifier, scope=config.scope
            )
            client_secret = self._credentials.find_or_create_client_secret(attributes)
            headers["Authorization"] = basic_authorization(
                config.client_identifier, client_secret.secret
            )

        logger.debug(
            "Exchanging authorization code for client %s at %s",
            config.client_identifier,
            token_endpoint,
        )
        response = self._post(
            token_endpoint,
            {"grant_type": "authorization_code", "code": code},
            headers,
        )
        grant = self._parse_grant(config, response)

        # The endpoint accepted the secret, so it is safe to keep.
        if client_secret is not None:
            client_secret.save()
        return grant

    def _post(self, url: str, data: dict[str, str], headers: dict[str, str]) -> httpx.Response:
        try:
            if self._http_client is not None:
                response = self._http_client.post(
                    url, data=data, headers=headers, timeout=self._timeout
                )
            else:
                response = httpx.post(
                    url,
                    data=data,
                    headers=headers,
                    timeout=self._timeout,
                    verify=self._verify_ssl,
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TokenExchangeError(
                f"Token exchange failed with status {exc.response.status_code}: "
                f"{exc.response.text}",
                status_code=exc.response.status_code,
                body=exc.response.text,
            ) from exc
        except httpx.TimeoutException as exc:
            raise TokenExchangeError(
                f"Token exchange with {url} timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token exchange failed: {exc}") from exc
        return response

    def _parse_grant(self, config: EndpointConfig, response: httpx.Response) -> Grant:
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise TokenExchangeError(
                "Token response is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(payload, dict):
            raise TokenExchangeError(
                "Token response is not a JSON object",
                status_code=response.status_code,
                body=response.text,
            )

        token_type = payload.get("token_type")
        if token_type != BEARER_TOKEN_TYPE:
            raise UnsupportedTokenTypeError(
                token_type, config.client_identifier, config.token_endpoint
            )

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError(
                "Token response missing 'access_token' field",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            expires_in = int(payload["expires_in"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenExchangeError(
                "Token response missing a numeric 'expires_in' field",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        scope = payload.get("scope")

        return Grant(
            access_token=access_token,
            token_type=token_type,
            scope=None if scope is None else str(scope),
            expires_at=self._clock() + expires_in,
        )
