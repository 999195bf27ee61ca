"""Exception hierarchy for urloauth.

All exceptions inherit from :class:`UrlOAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`urloauth.exit_codes`.
The top-level error handler in :func:`urloauth.app.main` catches
``UrlOAuthError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every failure of the authorization flow ends the current attempt.  Nothing
in the package retries automatically.

Subclass hierarchy::

    UrlOAuthError (exit 1)
    +-- InvalidConfigError              (exit 2)
    +-- AuthError                       (exit 3)
    |   +-- NotConfiguredError
    |   +-- MissingAuthorizationCodeError
    |   +-- TokenExchangeError
    |   +-- UnsupportedTokenTypeError
    |   +-- ScopeMismatchError
    +-- NotFoundError                   (exit 4)
    +-- ServerError                     (exit 5)
    +-- ConnectionError_                (exit 6)
    +-- CredentialStoreError            (exit 8)
    +-- ConfigError                     (exit 1)
"""

from __future__ import annotations

from urloauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_CREDENTIAL_STORE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class UrlOAuthError(Exception):
    """Base exception for all urloauth errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidConfigError(UrlOAuthError):
    """Raised when an endpoint configuration is rejected at registration time."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(UrlOAuthError):
    """Raised when the authorization flow fails or credentials are rejected."""

    exit_code = EXIT_AUTH_FAILURE


class NotConfiguredError(AuthError):
    """Raised when a URL has no registered endpoint configuration.

    The auth scheme layer treats this as "scheme not applicable" and never
    lets it reach the HTTP client.
    """

    def __init__(self, url: str):
        super().__init__(f"No OAuth endpoint is registered for {url}")
        self.url = url


class MissingAuthorizationCodeError(AuthError):
    """Raised when the pasted redirect URL carries no ``code`` query parameter."""

    def __init__(self, redirect_url: str):
        super().__init__(
            f"Redirect URL has no 'code' query parameter: {redirect_url!r}"
        )
        self.redirect_url = redirect_url


class TokenExchangeError(AuthError):
    """Raised when the token endpoint call fails.

    Covers non-success HTTP statuses, network failures, timeouts, and
    unparseable token responses.  ``body`` holds the raw response text when
    the server answered at all, so operators can see what it complained
    about.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnsupportedTokenTypeError(AuthError):
    """Raised when the token endpoint returns a token type other than ``bearer``."""

    def __init__(self, token_type: object, client_identifier: str, token_endpoint: str):
        super().__init__(
            f"Unsupported token type {token_type!r} returned for client "
            f"'{client_identifier}' by {token_endpoint}; expected 'bearer'"
        )
        self.token_type = token_type
        self.client_identifier = client_identifier
        self.token_endpoint = token_endpoint


class ScopeMismatchError(AuthError):
    """Raised when the granted scope differs from the requested scope."""

    def __init__(self, requested: str, granted: str | None):
        super().__init__(
            f"Server granted scope {granted!r} but {requested!r} was requested"
        )
        self.requested = requested
        self.granted = granted


class NotFoundError(UrlOAuthError):
    """Raised when the remote server returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(UrlOAuthError):
    """Raised when the remote server returns an error status other than 401/403/404."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(UrlOAuthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class CredentialStoreError(UrlOAuthError):
    """Raised when the credential store cannot be read, written, or is misused."""

    exit_code = EXIT_CREDENTIAL_STORE_ERROR


class ConfigError(UrlOAuthError):
    """Raised for configuration problems (invalid JSON, unknown endpoints, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
