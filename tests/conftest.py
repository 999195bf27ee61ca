"""Shared test fixtures for urloauth.

Provides reusable fixtures for endpoint configurations, isolated config
directories, temporary credential stores, mock token endpoints, and the
CLI runner.  These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from urloauth.auth.credential_store import CredentialStore
from urloauth.auth.credentials import CredentialAdapter
from urloauth.auth.registry import EndpointRegistry
from urloauth.models import EndpointConfig
from urloauth.output import reset_output


API_URL = "https://api.example.com/data"
AUTHORIZATION_ENDPOINT = "https://auth.example.com/authorize"
TOKEN_ENDPOINT = "https://auth.example.com/token"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Endpoint fixtures
# ---------------------------------------------------------------------------


def make_endpoint(**kwargs: Any) -> EndpointConfig:
    """Build the example endpoint configuration, overridden by kwargs."""
    defaults: dict[str, Any] = {
        "url": API_URL,
        "authorization_endpoint": AUTHORIZATION_ENDPOINT,
        "token_endpoint": TOKEN_ENDPOINT,
        "client_identifier": "myapp",
        "scope": "read",
        "client_secret_method": "none",
    }
    defaults.update(kwargs)
    return EndpointConfig(**defaults)


@pytest.fixture
def endpoint() -> EndpointConfig:
    """The example endpoint: client ``myapp``, scope ``read``, no client secret."""
    return make_endpoint()


@pytest.fixture
def registry(endpoint: EndpointConfig) -> EndpointRegistry:
    """A registry with :func:`endpoint` interposed."""
    registry = EndpointRegistry()
    registry.interpose(endpoint)
    return registry


# ---------------------------------------------------------------------------
# Credential store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    """A CredentialStore backed by a file in tmp_path."""
    return CredentialStore(tmp_path / "credentials.json")


@pytest.fixture
def credentials(store: CredentialStore) -> CredentialAdapter:
    """An adapter whose secret prompt fails the test if it is ever called."""

    def _no_prompt(attributes: Any) -> str:
        raise AssertionError(f"Unexpected client secret prompt for {attributes}")

    return CredentialAdapter(store, secret_prompt=_no_prompt)


# ---------------------------------------------------------------------------
# Token endpoint fixtures
# ---------------------------------------------------------------------------


def token_response(
    access_token: str = "XYZ",
    scope: str | None = "read",
    expires_in: Any = 3600,
    token_type: Any = "bearer",
) -> dict[str, Any]:
    """Build a token endpoint JSON response."""
    data: dict[str, Any] = {
        "token_type": token_type,
        "access_token": access_token,
        "expires_in": expires_in,
    }
    if scope is not None:
        data["scope"] = scope
    return data


class TokenEndpoint:
    """Records token requests and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = token_response()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.payload, str):
            return httpx.Response(self.status_code, text=self.payload)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_form(self) -> dict[str, str]:
        from urllib.parse import parse_qsl

        return dict(parse_qsl(self.requests[-1].content.decode()))

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    """A mock token endpoint returning the example grant."""
    return TokenEndpoint()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of tmp_path,
    clears URLOAUTH_* variables and changes the working directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("urloauth.config._is_xdg_platform", lambda: True)
    monkeypatch.delenv("URLOAUTH_TIMEOUT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_endpoints(isolated_config: Path) -> Callable[[list[dict[str, Any]]], Path]:
    """Write raw endpoint dicts to the isolated endpoints.json."""

    def _write(items: list[dict[str, Any]]) -> Path:
        path = isolated_config / "config" / "urloauth" / "endpoints.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(items))
        return path

    return _write


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
