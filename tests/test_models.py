"""Tests for the Pydantic models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from urloauth.exceptions import InvalidConfigError
from urloauth.models import (
    ClientSecretMethod,
    CredentialAttributes,
    CredentialEntry,
    EndpointConfig,
    GlobalConfig,
    Grant,
)

from conftest import make_endpoint


class TestEndpointConfig:
    def test_defaults(self) -> None:
        config = make_endpoint()
        assert config.client_secret_method is ClientSecretMethod.NONE
        assert config.authorization_extra_arguments == []

    def test_key_strips_query(self) -> None:
        config = make_endpoint(url="https://api.example.com/data?page=1")
        assert config.key == "https://api.example.com/data"

    def test_prompt_method(self) -> None:
        config = make_endpoint(client_secret_method="prompt")
        assert config.client_secret_method is ClientSecretMethod.PROMPT

    def test_prompt_for_secret_alias(self) -> None:
        config = EndpointConfig.parse(
            make_endpoint().model_dump() | {"client_secret_method": "promptForSecret"}
        )
        assert config.client_secret_method is ClientSecretMethod.PROMPT
        assert config.model_dump(mode="json")["client_secret_method"] == "prompt"

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_endpoint(client_secret_method="basic")

    @pytest.mark.parametrize("field", ["url", "authorization_endpoint", "token_endpoint"])
    def test_relative_urls_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            make_endpoint(**{field: "/not/absolute"})

    def test_parse_wraps_validation_error(self) -> None:
        with pytest.raises(InvalidConfigError, match="Invalid endpoint configuration"):
            EndpointConfig.parse({"url": "https://api.example.com/data"})

    def test_json_roundtrip_keeps_extra_arguments(self) -> None:
        config = make_endpoint(authorization_extra_arguments=[("access_type", "offline")])
        restored = EndpointConfig.parse(json.loads(config.model_dump_json()))
        assert restored.authorization_extra_arguments == [("access_type", "offline")]


class TestGrant:
    def test_expiry_is_whole_seconds(self) -> None:
        grant = Grant(access_token="t", token_type="bearer", scope="read", expires_at=1700.9)
        assert grant.expiry == "1700"


class TestCredentialAttributes:
    def test_for_url(self) -> None:
        attrs = CredentialAttributes.for_url(
            "https://api.example.com/data?x=1", user="myapp", scope="read"
        )
        assert attrs.user == "myapp"
        assert attrs.host == "api.example.com"
        assert attrs.port == 443
        assert attrs.path == "/data"
        assert attrs.scope == "read"
        assert attrs.expiry is None

    def test_query_keeps_missing_port(self) -> None:
        attrs = CredentialAttributes.for_url("http://h.example.com/p", user="u", scope="s")
        assert attrs.query() == {
            "user": "u",
            "host": "h.example.com",
            "port": None,
            "path": "/p",
            "scope": "s",
        }

    def test_query_leaves_out_expiry(self) -> None:
        attrs = CredentialAttributes(user="u", host="h", port=443, scope="s", expiry="123")
        assert "expiry" not in attrs.query()

    def test_with_expiry_copies(self) -> None:
        attrs = CredentialAttributes(user="u", host="h", scope="s")
        dated = attrs.with_expiry("123")
        assert dated.expiry == "123"
        assert attrs.expiry is None


class TestCredentialEntry:
    def _entry(self, expiry: str | None = None) -> CredentialEntry:
        attrs = CredentialAttributes(user="u", host="h", port=443, scope="read", expiry=expiry)
        return CredentialEntry(attributes=attrs, secret="s")

    def test_matches_subset(self) -> None:
        entry = self._entry()
        assert entry.matches({"user": "u", "host": "h"})
        assert not entry.matches({"user": "other"})

    def test_matches_absent_attribute(self) -> None:
        assert not self._entry().matches({"expiry": "1"})

    def test_no_expiry_never_expires(self) -> None:
        assert self._entry().is_expired() is False

    def test_past_and_future_expiry(self) -> None:
        assert self._entry("100").is_expired(now=200.0) is True
        assert self._entry("300").is_expired(now=200.0) is False

    def test_unparseable_expiry_is_expired(self) -> None:
        assert self._entry("soon").is_expired() is True


class TestGlobalConfig:
    def test_defaults(self) -> None:
        config = GlobalConfig()
        assert config.request.timeout == 30.0
        assert config.request.verify_ssl is True
        assert config.flow.deduplicate is True
        assert config.flow.open_browser is True
        assert config.oauth_priority == 9
