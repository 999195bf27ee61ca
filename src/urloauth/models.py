"""Canonical Pydantic models shared across all urloauth modules.

This is the single source of truth for data shapes in the project.  The
models fall into three groups:

**Endpoint models** -- what the application registers:
    :class:`ClientSecretMethod` and :class:`EndpointConfig`.

**Flow models** -- what the authorization flow produces and stores:
    :class:`Grant`, :class:`CredentialAttributes` and
    :class:`CredentialEntry`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`RequestConfig`, :class:`FlowConfig` and
:class:`GlobalConfig`.

All models use Pydantic v2.  Endpoint configurations are validated when
they are constructed, so a registry never holds an entry with an unknown
client-secret method or a relative URL.
"""

from __future__ import annotations

import enum
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from urloauth.exceptions import InvalidConfigError
from urloauth.urls import normalize_key, split_url


# --- Endpoint Config ---


class ClientSecretMethod(str, enum.Enum):
    """How the client authenticates itself to the token endpoint.

    ``NONE`` sends no client authentication at all.  ``PROMPT`` looks the
    client secret up in the credential store (prompting the user for it
    the first time) and sends it as HTTP Basic credentials.
    """

    NONE = "none"
    PROMPT = "prompt"


_SECRET_METHOD_ALIASES = {"promptForSecret": ClientSecretMethod.PROMPT.value}


class EndpointConfig(BaseModel):
    """OAuth configuration for one protected resource URL.

    The registry key is derived from :attr:`url` with its query and fragment
    stripped (see :attr:`key`).

    Example::

        EndpointConfig(
            url="https://api.example.com/data",
            authorization_endpoint="https://auth.example.com/authorize",
            token_endpoint="https://auth.example.com/token",
            client_identifier="myapp",
            scope="read",
        )
    """

    url: str = Field(description="Protected resource URL")
    authorization_endpoint: str = Field(
        description="Where the user is sent to authorize the client"
    )
    token_endpoint: str = Field(
        description="Where authorization codes are exchanged for tokens"
    )
    client_identifier: str = Field(description="client_id issued by the server")
    scope: str = Field(description="Requested scope, also a credential attribute")
    client_secret_method: ClientSecretMethod = Field(
        default=ClientSecretMethod.NONE,
        description="Client authentication at the token endpoint: none, prompt (alias promptForSecret)",
    )
    authorization_extra_arguments: list[tuple[str, str]] = Field(
        default_factory=list,
        description="Extra query parameters appended to the authorization URL",
    )

    @field_validator("client_secret_method", mode="before")
    @classmethod
    def _secret_method_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _SECRET_METHOD_ALIASES.get(value, value)
        return value

    @field_validator("url", "authorization_endpoint", "token_endpoint")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        split_url(value)
        return value

    @property
    def key(self) -> str:
        """Normalised registry key for :attr:`url`."""
        return normalize_key(self.url)

    @classmethod
    def parse(cls, data: Any) -> EndpointConfig:
        """Validate *data* into an :class:`EndpointConfig`.

        Raises:
            InvalidConfigError: If *data* does not describe a valid endpoint.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidConfigError(f"Invalid endpoint configuration: {exc}") from exc


# --- Flow results ---


class Grant(BaseModel):
    """Result of a successful authorization-code exchange.

    ``expires_at`` is absolute (seconds since the epoch), computed when the
    token response was received.  ``scope`` is ``None`` when the response
    did not name one.
    """

    access_token: str
    token_type: str
    scope: Optional[str] = None
    expires_at: float

    @property
    def expiry(self) -> str:
        """Expiry as the string of whole epoch seconds stored with the token."""
        return str(int(self.expires_at))


class CredentialAttributes(BaseModel):
    """Attributes identifying a secret in the credential store.

    ``user`` is the OAuth client identifier; ``host``, ``port`` and ``path``
    come from the URL the secret belongs to.  Bearer tokens additionally
    carry an ``expiry`` attribute.
    """

    user: str
    host: str
    port: Optional[int] = None
    path: str = "/"
    scope: str
    expiry: Optional[str] = None

    @classmethod
    def for_url(cls, url: str, user: str, scope: str) -> CredentialAttributes:
        """Build the attribute set for *url* as seen by client *user*."""
        parts = split_url(url)
        return cls(user=user, host=parts.host, port=parts.port, path=parts.path, scope=scope)

    def query(self) -> dict[str, Any]:
        """Return the identifying attributes as a search query.

        ``expiry`` is left out so that lookups find tokens of any expiry.
        ``port`` is kept even when it is ``None``, so a URL without a port
        never matches a secret stored for an explicit one.
        """
        return self.model_dump(exclude={"expiry"})

    def with_expiry(self, expiry: str) -> CredentialAttributes:
        return self.model_copy(update={"expiry": expiry})


class CredentialEntry(BaseModel):
    """A single record in the credential store."""

    attributes: CredentialAttributes
    secret: str = Field(description="Client secret or bearer token")
    label: Optional[str] = Field(default=None, description="Human-readable description")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def matches(self, query: dict[str, Any]) -> bool:
        """Return ``True`` if every attribute in *query* equals this entry's value."""
        values = self.attributes.model_dump()
        return all(values.get(name) == value for name, value in query.items())

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Whether the ``expiry`` attribute lies in the past.

        Entries without an ``expiry`` (client secrets) never expire.  An
        unparseable expiry counts as expired.
        """
        if self.attributes.expiry is None:
            return False
        current = time.time() if now is None else now
        try:
            return float(self.attributes.expiry) <= current
        except ValueError:
            return True


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings for the token endpoint and the request command."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class FlowConfig(BaseModel):
    """Authorization flow behaviour."""

    deduplicate: bool = Field(
        default=True,
        description="Serialise concurrent flows for the same URL so the user is prompted once",
    )
    open_browser: bool = Field(
        default=True, description="Open the authorization URL in a browser"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/urloauth/config.json``.

    Loaded and saved by :func:`~urloauth.config.load_global_config` and
    :func:`~urloauth.config.save_global_config`.  See
    :func:`~urloauth.config.resolve_config` for the precedence chain.
    """

    request: RequestConfig = Field(default_factory=RequestConfig)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    oauth_priority: int = Field(
        default=9, description="Priority of the OAuth scheme among auth schemes"
    )
