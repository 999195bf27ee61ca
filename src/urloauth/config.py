"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for urloauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.urloauth/`` on macOS and Windows.  See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- a single :class:`~urloauth.models.GlobalConfig`
  JSON file with request and flow settings.
* **Endpoints** -- ``endpoints.json`` holds the list of
  :class:`~urloauth.models.EndpointConfig` entries that are interposed into
  the registry at start-up.  Managed via :func:`load_endpoints`,
  :func:`add_endpoint` and :func:`remove_endpoint`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the config file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from urloauth.exceptions import ConfigError, InvalidConfigError
from urloauth.models import EndpointConfig, GlobalConfig
from urloauth.urls import normalize_key

_APP_NAME = "urloauth"
_CONFIG_FILENAME = "config.json"
_ENDPOINTS_FILENAME = "endpoints.json"

TIMEOUT_ENV_VAR = "URLOAUTH_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/urloauth/`` (default ``~/.config/urloauth/``).
    On macOS/Windows: ``~/.urloauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/urloauth/`` (default ``~/.local/share/urloauth/``).
    On macOS/Windows: ``~/.urloauth/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  When *mode* is
    given the permissions are applied before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~urloauth.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Endpoints ---


def _endpoints_path() -> Path:
    return get_config_dir() / _ENDPOINTS_FILENAME


def load_endpoints() -> list[EndpointConfig]:
    """Load every stored endpoint configuration.

    Returns:
        The endpoints in file order, or an empty list when none are stored.

    Raises:
        ConfigError: If the file is not a JSON list.
        InvalidConfigError: If an entry fails validation.
    """
    path = _endpoints_path()
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid endpoints file at {path}: {exc}") from exc
    if not isinstance(data, list):
        raise ConfigError(f"Invalid endpoints file at {path}: expected a JSON list")
    return [EndpointConfig.parse(item) for item in data]


def save_endpoints(endpoints: list[EndpointConfig]) -> None:
    """Persist *endpoints* atomically, replacing the stored list."""
    data = [endpoint.model_dump(mode="json") for endpoint in endpoints]
    atomic_write(_endpoints_path(), json.dumps(data, indent=2) + "\n")


def add_endpoint(endpoint: EndpointConfig) -> bool:
    """Store *endpoint*, replacing any entry with the same normalised URL.

    Returns:
        ``True`` if an existing entry was replaced.
    """
    endpoints = load_endpoints()
    kept = [e for e in endpoints if e.key != endpoint.key]
    save_endpoints(kept + [endpoint])
    return len(kept) != len(endpoints)


def remove_endpoint(url: str) -> EndpointConfig:
    """Remove the stored endpoint whose normalised URL matches *url*.

    Raises:
        ConfigError: If no stored endpoint matches.
    """
    try:
        key = normalize_key(url)
    except ValueError as exc:
        raise InvalidConfigError(str(exc)) from exc
    endpoints = load_endpoints()
    for endpoint in endpoints:
        if endpoint.key == key:
            save_endpoints([e for e in endpoints if e is not endpoint])
            return endpoint
    raise ConfigError(f"No endpoint stored for {url}")


# --- Precedence resolution ---


def resolve_config(cli_timeout: Optional[float] = None) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_timeout``)
        2. Environment variables (``URLOAUTH_TIMEOUT``)
        3. User config (``~/.config/urloauth/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file or ``URLOAUTH_TIMEOUT`` is invalid.
    """
    config = load_global_config()

    env_timeout = os.environ.get(TIMEOUT_ENV_VAR)
    if env_timeout:
        try:
            config.request.timeout = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{TIMEOUT_ENV_VAR} must be a number of seconds, got {env_timeout!r}"
            ) from exc

    if cli_timeout is not None:
        config.request.timeout = cli_timeout

    return config
