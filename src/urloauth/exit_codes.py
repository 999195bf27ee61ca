"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~urloauth.exceptions.UrlOAuthError` subclass.
Shell wrappers can inspect the exit code to tell an authorization failure
from a network failure without parsing stderr.

Example::

    $ urloauth token https://api.example.com/data
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token exchange was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments or an invalid endpoint configuration."""

EXIT_AUTH_FAILURE = 3
"""The OAuth flow failed or the server rejected the credentials."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote server returned an HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CREDENTIAL_STORE_ERROR = 8
"""The credential store could not be read or written."""
