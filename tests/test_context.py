"""Tests for context wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from urloauth.config import add_endpoint, save_global_config
from urloauth.context import create_context, load_context
from urloauth.exceptions import InvalidConfigError
from urloauth.models import EndpointConfig, GlobalConfig

from conftest import API_URL, TokenEndpoint, make_endpoint


class TestCreateContext:
    def test_registers_endpoints_and_oauth_scheme(self, tmp_path: Path) -> None:
        context = create_context(endpoints=[make_endpoint()], store_path=tmp_path / "c.json")
        assert API_URL in context.registry
        assert context.schemes.get_scheme("oauth").priority == 9
        assert context.store.path == tmp_path / "c.json"

    def test_priority_from_config(self, tmp_path: Path) -> None:
        config = GlobalConfig(oauth_priority=4)
        context = create_context(config, store_path=tmp_path / "c.json")
        assert context.schemes.get_scheme("oauth").priority == 4

    def test_interpose_and_uninterpose(self, tmp_path: Path, endpoint: EndpointConfig) -> None:
        context = create_context(store_path=tmp_path / "c.json")
        assert context.authorize(API_URL) is None
        context.interpose(endpoint)
        assert API_URL in context.registry
        context.uninterpose(endpoint)
        assert API_URL not in context.registry

    def test_authorize_runs_flow(self, tmp_path: Path, token_endpoint: TokenEndpoint) -> None:
        context = create_context(
            endpoints=[make_endpoint()],
            prompt=lambda url: "https://app.example.com/cb?code=AUTH123",
            store_path=tmp_path / "c.json",
            http_client=token_endpoint.client(),
        )
        assert context.authorize(API_URL) == "Bearer XYZ"

    def test_invalid_endpoint_rejected(self, tmp_path: Path) -> None:
        fields = make_endpoint().model_dump()
        fields["client_secret_method"] = "bogus"
        with pytest.raises(InvalidConfigError):
            create_context(
                endpoints=[EndpointConfig.model_construct(**fields)],
                store_path=tmp_path / "c.json",
            )


class TestLoadContext:
    def test_loads_stored_endpoints_and_timeout(self, isolated_config: Path) -> None:
        add_endpoint(make_endpoint())
        config = GlobalConfig()
        config.flow.deduplicate = False
        save_global_config(config)

        context = load_context(cli_timeout=4.0)
        assert API_URL in context.registry
        assert context.config.request.timeout == 4.0
        assert context.config.flow.deduplicate is False
        assert context.store.path == isolated_config / "data" / "urloauth" / "credentials.json"
