"""Tests for the credential adapter."""

from __future__ import annotations

import time

import pytest

from urloauth.auth.credential_store import CredentialStore
from urloauth.auth.credentials import CredentialAdapter, prompt_for_client_secret
from urloauth.exceptions import AuthError
from urloauth.models import CredentialAttributes


@pytest.fixture
def attrs() -> CredentialAttributes:
    return CredentialAttributes.for_url("https://api.example.com/data", user="myapp", scope="read")


class TestFindSecret:
    def test_nothing_stored(self, credentials: CredentialAdapter, attrs: CredentialAttributes) -> None:
        assert credentials.find_secret(attrs) is None

    def test_returns_bearer(self, credentials: CredentialAdapter, attrs: CredentialAttributes) -> None:
        credentials.store_bearer(attrs, "XYZ", str(int(time.time()) + 60)).commit()
        found = credentials.find_secret(attrs)
        assert found is not None
        assert found.secret == "XYZ"
        assert found.pending is None

    def test_ignores_client_secret(
        self, credentials: CredentialAdapter, store: CredentialStore, attrs: CredentialAttributes
    ) -> None:
        store.stage(attrs, "client-secret").commit()
        assert credentials.find_secret(attrs) is None

    def test_ignores_expired_bearer(
        self, credentials: CredentialAdapter, attrs: CredentialAttributes
    ) -> None:
        credentials.store_bearer(attrs, "OLD", str(int(time.time()) - 1)).commit()
        assert credentials.find_secret(attrs) is None

    def test_other_scope_not_returned(
        self, credentials: CredentialAdapter, attrs: CredentialAttributes
    ) -> None:
        credentials.store_bearer(attrs, "XYZ", str(int(time.time()) + 60)).commit()
        other = attrs.model_copy(update={"scope": "write"})
        assert credentials.find_secret(other) is None


class TestFindOrCreateClientSecret:
    def test_existing_secret(self, store: CredentialStore, attrs: CredentialAttributes) -> None:
        store.stage(attrs, "s3cret").commit()
        adapter = CredentialAdapter(store, secret_prompt=lambda a: pytest.fail("prompted"))
        found = adapter.find_or_create_client_secret(attrs)
        assert found.secret == "s3cret"
        found.save()
        assert len(store.entries()) == 1

    def test_prompts_and_stages(self, store: CredentialStore, attrs: CredentialAttributes) -> None:
        asked: list[CredentialAttributes] = []

        def prompt(a: CredentialAttributes) -> str:
            asked.append(a)
            return "typed"

        adapter = CredentialAdapter(store, secret_prompt=prompt)
        found = adapter.find_or_create_client_secret(attrs)
        assert found.secret == "typed"
        assert asked == [attrs]
        assert store.entries() == []

        found.save()
        assert [e.secret for e in store.entries()] == ["typed"]
        assert store.entries()[0].label == "OAuth client secret for myapp"

    def test_ignores_bearer_entries(self, store: CredentialStore, attrs: CredentialAttributes) -> None:
        CredentialAdapter(store).store_bearer(attrs, "XYZ", str(int(time.time()) + 60)).commit()
        adapter = CredentialAdapter(store, secret_prompt=lambda a: "typed")
        assert adapter.find_or_create_client_secret(attrs).secret == "typed"


class TestBearerLifecycle:
    def test_store_bearer_sets_expiry(
        self, credentials: CredentialAdapter, attrs: CredentialAttributes
    ) -> None:
        pending = credentials.store_bearer(attrs, "XYZ", "4102444800")
        assert pending.entry.attributes.expiry == "4102444800"
        assert pending.entry.attributes.user == "myapp"
        assert attrs.expiry is None

    def test_forget_bearer(
        self, credentials: CredentialAdapter, store: CredentialStore, attrs: CredentialAttributes
    ) -> None:
        store.stage(attrs, "client-secret").commit()
        credentials.store_bearer(attrs, "XYZ", str(int(time.time()) + 60)).commit()
        assert credentials.forget_bearer(attrs) == 1
        assert credentials.find_secret(attrs) is None
        assert [e.secret for e in store.entries()] == ["client-secret"]


class _Stdin:
    def __init__(self, tty: bool) -> None:
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


class TestPromptForClientSecret:
    def test_requires_tty(self, monkeypatch: pytest.MonkeyPatch, attrs: CredentialAttributes) -> None:
        monkeypatch.setattr("sys.stdin", _Stdin(tty=False))
        with pytest.raises(AuthError, match="not a TTY"):
            prompt_for_client_secret(attrs)

    def test_reads_secret(self, monkeypatch: pytest.MonkeyPatch, attrs: CredentialAttributes) -> None:
        monkeypatch.setattr("sys.stdin", _Stdin(tty=True))
        monkeypatch.setattr("urloauth.auth.credentials.getpass.getpass", lambda prompt: "typed")
        assert prompt_for_client_secret(attrs) == "typed"

    def test_empty_secret(self, monkeypatch: pytest.MonkeyPatch, attrs: CredentialAttributes) -> None:
        monkeypatch.setattr("sys.stdin", _Stdin(tty=True))
        monkeypatch.setattr("urloauth.auth.credentials.getpass.getpass", lambda prompt: "")
        with pytest.raises(AuthError, match="No client secret"):
            prompt_for_client_secret(attrs)
