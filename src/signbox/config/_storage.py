"""
Low-level config file I/O for signbox.

Handles reading, writing, and validating the on-disk config.json.
Shared by settings.py and credentials.py.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "load_config",
    "load_raw_config",
    "save_config",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypedDict, cast

from ..constants import MAX_CONNECTIONS_LIMIT, MAX_TIMEOUT, MIN_TIMEOUT, STATUS_POLICIES

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".signbox"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ConfigDict(TypedDict, total=False):
    """Type definition for the config file structure."""

    url: str
    api_key: str
    username: str
    password: str
    max_connections: int
    acquire_timeout: int
    timeout: int
    unclassified_status: str


def load_raw_config() -> dict[str, object]:
    """Load raw config dict from disk, preserving all keys."""
    try:
        data: Any = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _pick_int(data: dict[str, object], key: str, low: int, high: int) -> int | None:
    val = data.get(key)
    if not isinstance(val, int) or isinstance(val, bool):
        return None
    if low <= val <= high:
        return val
    _logger.warning("Config %s=%d out of range [%d, %d], ignoring", key, val, low, high)
    return None


def _validate_config_dict(data: dict[str, object]) -> ConfigDict:
    """Validate and return config dict, picking only known keys with correct types."""
    result: ConfigDict = {}
    for key in ("url", "api_key", "username", "password"):
        val = data.get(key)
        if isinstance(val, str):
            result[key] = val  # type: ignore[literal-required]  # dynamic key from known set

    max_connections = _pick_int(data, "max_connections", 1, MAX_CONNECTIONS_LIMIT)
    if max_connections is not None:
        result["max_connections"] = max_connections
    for key in ("acquire_timeout", "timeout"):
        val = _pick_int(data, key, MIN_TIMEOUT, MAX_TIMEOUT)
        if val is not None:
            result[key] = val  # type: ignore[literal-required]

    policy = data.get("unclassified_status")
    if isinstance(policy, str):
        if policy in STATUS_POLICIES:
            result["unclassified_status"] = policy
        else:
            _logger.warning("Config unclassified_status=%r not in %s, ignoring", policy, STATUS_POLICIES)
    return result


def load_config() -> ConfigDict:
    """Load config from disk, returning only known typed keys."""
    return _validate_config_dict(load_raw_config())


def save_config(config: dict[str, object]) -> None:
    """Save config to disk with restricted permissions (0600).

    Uses atomic write (temp file + rename) to prevent corruption
    if the process is interrupted mid-write.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    if os.name != "nt":
        try:
            CONFIG_DIR.chmod(0o700)
        except OSError:
            _logger.warning("Failed to set restrictive permissions on %s", CONFIG_DIR)
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    fd, tmp_path = tempfile.mkstemp(dir=CONFIG_DIR, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        fd = -1  # closed by the context manager
        if os.name != "nt":
            try:
                tmp.chmod(0o600)
            except OSError:
                _logger.exception(
                    "Failed to set restrictive permissions on %s. "
                    "Config file may be readable by other users.",
                    tmp,
                )
        tmp.replace(CONFIG_FILE)  # atomic on POSIX
    except BaseException:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
