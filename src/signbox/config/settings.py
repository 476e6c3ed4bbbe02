"""
Settings resolution for signbox.

Priority for every field: env vars > config file (+ keychain for secrets)
> built-in defaults. Invalid values are logged and replaced by the default.
"""

from __future__ import annotations

__all__ = ["Settings", "load_settings", "save_server_config"]

import logging
import os
from dataclasses import dataclass

from ..constants import (
    DEFAULT_ACQUIRE_TIMEOUT,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_UNCLASSIFIED_STATUS,
    ENV_ACQUIRE_TIMEOUT,
    ENV_API_KEY,
    ENV_MAX_CONNECTIONS,
    ENV_PASS,
    ENV_TIMEOUT,
    ENV_UNCLASSIFIED_STATUS,
    ENV_URL,
    ENV_USER,
    MAX_CONNECTIONS_LIMIT,
    MAX_TIMEOUT,
    MIN_TIMEOUT,
    STATUS_POLICIES,
)
from ..errors import ConfigError
from ._storage import load_config, load_raw_config, save_config
from .credentials import get_api_key, get_credentials

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Resolved client configuration."""

    endpoint: str = ""
    api_key: str = ""
    username: str = ""
    password: str = ""
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    acquire_timeout: int = DEFAULT_ACQUIRE_TIMEOUT
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    unclassified_status: str = DEFAULT_UNCLASSIFIED_STATUS

    @property
    def basic_auth(self) -> tuple[str, str] | None:
        """(username, password) when a username is configured, else None."""
        if not self.username:
            return None
        return self.username, self.password

    def require_endpoint(self) -> str:
        """Return the endpoint URL.

        Raises:
            ConfigError: If no endpoint is configured.
        """
        if not self.endpoint:
            raise ConfigError(
                f"No signing endpoint configured. Set {ENV_URL} "
                "or run `signbox setup --url https://...`."
            )
        return self.endpoint

    def __repr__(self) -> str:
        return (
            f"Settings(endpoint={self.endpoint!r}, api_key={'***' if self.api_key else ''!r}, "
            f"username={self.username!r}, max_connections={self.max_connections}, "
            f"acquire_timeout={self.acquire_timeout}, request_timeout={self.request_timeout}, "
            f"unclassified_status={self.unclassified_status!r})"
        )


def _env_str(name: str) -> str:
    return os.environ.get(name, "").strip()


def _env_int(name: str, low: int, high: int) -> int | None:
    raw = _env_str(name)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("Invalid %s value %r, ignoring", name, raw)
        return None
    if value < low or value > high:
        _logger.warning("%s=%d out of range [%d, %d], ignoring", name, value, low, high)
        return None
    return value


def _env_policy() -> str | None:
    raw = _env_str(ENV_UNCLASSIFIED_STATUS).lower()
    if not raw:
        return None
    if raw not in STATUS_POLICIES:
        _logger.warning("Invalid %s value %r, ignoring", ENV_UNCLASSIFIED_STATUS, raw)
        return None
    return raw


def load_settings() -> Settings:
    """Resolve settings from env vars, config file, keychain and defaults."""
    config = load_config()

    endpoint = _env_str(ENV_URL) or config.get("url", "")
    api_key = _env_str(ENV_API_KEY) or get_api_key() or ""

    username = _env_str(ENV_USER)
    password = _env_str(ENV_PASS)
    if not username or not password:
        saved_user, saved_pass = get_credentials()
        username = username or saved_user or ""
        password = password or saved_pass or ""

    max_connections = _env_int(ENV_MAX_CONNECTIONS, 1, MAX_CONNECTIONS_LIMIT)
    if max_connections is None:
        max_connections = config.get("max_connections", DEFAULT_MAX_CONNECTIONS)

    acquire_timeout = _env_int(ENV_ACQUIRE_TIMEOUT, MIN_TIMEOUT, MAX_TIMEOUT)
    if acquire_timeout is None:
        acquire_timeout = config.get("acquire_timeout", DEFAULT_ACQUIRE_TIMEOUT)

    request_timeout = _env_int(ENV_TIMEOUT, MIN_TIMEOUT, MAX_TIMEOUT)
    if request_timeout is None:
        request_timeout = config.get("timeout", DEFAULT_REQUEST_TIMEOUT)

    policy = _env_policy() or config.get("unclassified_status", DEFAULT_UNCLASSIFIED_STATUS)

    settings = Settings(
        endpoint=endpoint,
        api_key=api_key,
        username=username,
        password=password,
        max_connections=max_connections,
        acquire_timeout=acquire_timeout,
        request_timeout=request_timeout,
        unclassified_status=policy,
    )
    _logger.debug("Resolved %r", settings)
    return settings


def save_server_config(
    url: str,
    *,
    max_connections: int | None = None,
    acquire_timeout: int | None = None,
    timeout: int | None = None,
    unclassified_status: str | None = None,
) -> None:
    """Save the endpoint and pool options, keeping unrelated keys.

    Raises:
        ConfigError: If a value is out of range.
    """
    if not url.lower().startswith(("https://", "http://")):
        raise ConfigError(f"Endpoint must be an http(s) URL, got {url!r}")
    if max_connections is not None and not 1 <= max_connections <= MAX_CONNECTIONS_LIMIT:
        raise ConfigError(f"max_connections must be in [1, {MAX_CONNECTIONS_LIMIT}]")
    for name, value in (("acquire_timeout", acquire_timeout), ("timeout", timeout)):
        if value is not None and not MIN_TIMEOUT <= value <= MAX_TIMEOUT:
            raise ConfigError(f"{name} must be in [{MIN_TIMEOUT}, {MAX_TIMEOUT}]")
    if unclassified_status is not None and unclassified_status not in STATUS_POLICIES:
        raise ConfigError(f"unclassified_status must be one of {STATUS_POLICIES}")

    config = load_raw_config()
    config["url"] = url
    for key, value in (
        ("max_connections", max_connections),
        ("acquire_timeout", acquire_timeout),
        ("timeout", timeout),
        ("unclassified_status", unclassified_status),
    ):
        if value is not None:
            config[key] = value
    save_config(config)
