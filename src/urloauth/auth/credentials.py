"""Typed credential operations used by the authorization flow.

:class:`CredentialAdapter` wraps a
:class:`~urloauth.auth.credential_store.CredentialStore` with the three
queries the flow needs:

- :meth:`~CredentialAdapter.find_secret` -- look up an existing bearer token.
- :meth:`~CredentialAdapter.find_or_create_client_secret` -- look up the
  client secret, prompting the user for it when it is missing.
- :meth:`~CredentialAdapter.store_bearer` -- stage a freshly issued token.

Newly created secrets come back with a pending save.  The caller commits it
only after the secret has been used successfully, and at most once.
"""

from __future__ import annotations

import getpass
import sys
from typing import Callable, NamedTuple, Optional

from urloauth.auth.credential_store import CredentialStore, PendingEntry
from urloauth.exceptions import AuthError
from urloauth.models import CredentialAttributes

SecretPrompt = Callable[[CredentialAttributes], str]
"""Blocking callback asked for a client secret that is not yet stored."""


class FoundSecret(NamedTuple):
    """A secret value and, when it was just created, its pending save."""

    secret: str
    pending: Optional[PendingEntry] = None

    def save(self) -> None:
        """Commit the pending entry, if any.  Call once, after a successful use."""
        if self.pending is not None:
            self.pending.commit()


def prompt_for_client_secret(attributes: CredentialAttributes) -> str:
    """Ask the user for the client secret on the terminal.

    Raises:
        AuthError: If stdin is not a TTY or the user enters nothing.
    """
    if not sys.stdin.isatty():
        raise AuthError(
            f"Cannot prompt for the client secret of '{attributes.user}': "
            "stdin is not a TTY"
        )
    secret = getpass.getpass(
        f"Client secret for {attributes.user} at {attributes.host}: "
    )
    if not secret:
        raise AuthError("No client secret entered")
    return secret


class CredentialAdapter:
    """Attribute-keyed secret lookups on top of a credential store.

    Args:
        store: The backing store.
        secret_prompt: Called when :meth:`find_or_create_client_secret`
            finds nothing.  Defaults to :func:`prompt_for_client_secret`.
    """

    def __init__(
        self,
        store: CredentialStore,
        secret_prompt: Optional[SecretPrompt] = None,
    ) -> None:
        self._store = store
        self._secret_prompt = secret_prompt or prompt_for_client_secret

    @property
    def store(self) -> CredentialStore:
        return self._store

    def find_secret(self, attributes: CredentialAttributes) -> Optional[FoundSecret]:
        """Return the stored, unexpired bearer token for *attributes*, if any."""
        found = self._store.search(attributes.query(), max=1, expiring=True)
        if not found:
            return None
        return FoundSecret(found[0].secret)

    def find_or_create_client_secret(self, attributes: CredentialAttributes) -> FoundSecret:
        """Return the client secret for *attributes*, prompting for it when missing.

        A prompted secret is staged, not stored.  Call
        :meth:`FoundSecret.save` once the token endpoint accepted it.
        """
        found = self._store.search(attributes.query(), max=1, expiring=False)
        if found:
            return FoundSecret(found[0].secret)
        secret = self._secret_prompt(attributes)
        pending = self._store.stage(
            attributes, secret, label=f"OAuth client secret for {attributes.user}"
        )
        return FoundSecret(secret, pending)

    def store_bearer(
        self,
        attributes: CredentialAttributes,
        token: str,
        expiry: str,
    ) -> PendingEntry:
        """Stage a new bearer-token entry carrying *expiry* (epoch seconds)."""
        return self._store.stage(
            attributes.with_expiry(expiry),
            token,
            label=f"OAuth bearer token for {attributes.user} at {attributes.host}",
        )

    def forget_bearer(self, attributes: CredentialAttributes) -> int:
        """Delete every bearer token stored for *attributes*.

        Returns:
            The number of entries removed.
        """
        return self._store.delete(attributes.query(), expiring=True)
