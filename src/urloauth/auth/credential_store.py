"""Persistent, attribute-keyed credential store.

Stores client secrets and bearer tokens in
``~/.local/share/urloauth/credentials.json`` (XDG) or the
platform-equivalent directory.  Files are written atomically via
:func:`~urloauth.config.atomic_write` with ``0o600`` permissions so that
secrets are never world-readable, even momentarily.

Writes are two-phase: :meth:`CredentialStore.stage` returns a
:class:`PendingEntry` that is only persisted once the caller has confirmed
the secret works and calls :meth:`PendingEntry.commit`.  A failed token
exchange therefore never leaves a wrong client secret behind.

Bearer entries carry an ``expiry`` attribute.  :meth:`CredentialStore.search`
skips entries whose expiry has passed, so callers can trust whatever it
returns.

See Also:
    :class:`~urloauth.auth.credentials.CredentialAdapter` -- the typed
    interface the authorization flow uses.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from urloauth.config import atomic_write, get_data_dir
from urloauth.exceptions import CredentialStoreError
from urloauth.models import CredentialAttributes, CredentialEntry

logger = logging.getLogger(__name__)

_STORE_FILENAME = "credentials.json"


def _kind_matches(entry: CredentialEntry, expiring: Optional[bool]) -> bool:
    """Whether *entry* is a bearer token (has an expiry) when *expiring* asks for one."""
    return expiring is None or (entry.attributes.expiry is not None) == expiring


class PendingEntry:
    """A staged credential that is written only when :meth:`commit` is called.

    Args:
        store: The store the entry will be written to.
        entry: The staged entry.
    """

    def __init__(self, store: CredentialStore, entry: CredentialEntry) -> None:
        self._store = store
        self._entry = entry
        self._committed = False

    @property
    def entry(self) -> CredentialEntry:
        return self._entry

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> None:
        """Persist the staged entry.

        Raises:
            CredentialStoreError: If the entry was already committed.
        """
        if self._committed:
            raise CredentialStoreError("Credential entry has already been committed")
        self._store._persist(self._entry)
        self._committed = True


class CredentialStore:
    """Read/write credentials keyed by (user, host, port, path, scope).

    All writes are atomic and serialised by a lock, so a store instance may
    be shared between threads.

    Args:
        path: JSON file backing the store.  Defaults to
            ``<data dir>/credentials.json``.

    Example::

        store = CredentialStore()
        pending = store.stage(attributes, "tok123", label="bearer token")
        pending.commit()
        store.search(attributes.query())[0].secret  # -> "tok123"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path if path is not None else get_data_dir() / _STORE_FILENAME
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        """The filesystem path of the backing JSON file."""
        return self._path

    def search(
        self,
        query: dict[str, Any],
        max: int = 1,
        expiring: Optional[bool] = None,
        include_expired: bool = False,
    ) -> list[CredentialEntry]:
        """Return entries whose attributes match every item in *query*.

        Results are ordered most specific first (the entry with the most
        attributes set), newest first among equals.

        Args:
            query: Attribute names and required values.
            max: Maximum number of results.
            expiring: ``True`` restricts results to entries with an
                ``expiry`` attribute (bearer tokens), ``False`` to entries
                without one (client secrets), ``None`` returns both.
            include_expired: Also return entries whose ``expiry`` has passed.
        """
        now = time.time()
        with self._lock:
            entries = self._read()
        matches = [
            entry
            for entry in entries
            if entry.matches(query)
            and _kind_matches(entry, expiring)
            and (include_expired or not entry.is_expired(now))
        ]
        matches.sort(
            key=lambda e: (len(e.attributes.model_dump(exclude_none=True)), e.created_at),
            reverse=True,
        )
        return matches[:max]

    def stage(
        self,
        attributes: CredentialAttributes,
        secret: str,
        label: Optional[str] = None,
    ) -> PendingEntry:
        """Prepare a new entry without writing it."""
        return PendingEntry(
            self, CredentialEntry(attributes=attributes, secret=secret, label=label)
        )

    def delete(self, query: dict[str, Any], expiring: Optional[bool] = None) -> int:
        """Delete every entry matching *query*, expired or not.

        Args:
            query: Attribute names and required values.
            expiring: Restrict deletion as in :meth:`search`.

        Returns:
            The number of entries removed.
        """
        with self._lock:
            entries = self._read()
            kept = [
                entry
                for entry in entries
                if not (
                    entry.matches(query)
                    and _kind_matches(entry, expiring)
                )
            ]
            if len(kept) != len(entries):
                self._write(kept)
        return len(entries) - len(kept)

    def entries(self) -> list[CredentialEntry]:
        """Return every stored entry, including expired ones."""
        with self._lock:
            return self._read()

    def clear(self) -> None:
        """Delete the backing file.  A no-op when it does not exist."""
        with self._lock:
            if self._path.is_file():
                self._path.unlink()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _persist(self, entry: CredentialEntry) -> None:
        """Append *entry*, dropping expired entries on the way."""
        now = time.time()
        with self._lock:
            entries = [e for e in self._read() if not e.is_expired(now)]
            entries.append(entry)
            self._write(entries)
        logger.debug(
            "Stored credential for %s@%s%s (scope %r)",
            entry.attributes.user,
            entry.attributes.host,
            entry.attributes.path,
            entry.attributes.scope,
        )

    def _read(self) -> list[CredentialEntry]:
        if not self._path.is_file():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return [CredentialEntry.model_validate(item) for item in data]
        except (json.JSONDecodeError, TypeError, ValidationError, OSError) as exc:
            raise CredentialStoreError(
                f"Cannot read credential store at {self._path}: {exc}"
            ) from exc

    def _write(self, entries: list[CredentialEntry]) -> None:
        data = [entry.model_dump(mode="json") for entry in entries]
        try:
            atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)
        except OSError as exc:
            raise CredentialStoreError(
                f"Cannot write credential store at {self._path}: {exc}"
            ) from exc
