"""
Configuration and credential management.

Import from this package rather than from the individual submodules.
"""

from __future__ import annotations

from ._storage import CONFIG_FILE
from .credentials import (
    clear_credentials,
    get_api_key,
    get_credential_storage_info,
    get_credentials,
    save_api_key,
    save_credentials,
)
from .settings import Settings, load_settings, save_server_config

__all__ = [
    "CONFIG_FILE",
    "Settings",
    "clear_credentials",
    "get_api_key",
    "get_credential_storage_info",
    "get_credentials",
    "load_settings",
    "save_api_key",
    "save_credentials",
    "save_server_config",
]
