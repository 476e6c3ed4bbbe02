"""
Credential management for signbox.

Secrets (the API key and the optional basic-auth password) are stored in
the system keychain via ``keyring`` when a usable backend exists, falling
back to the config file otherwise.
"""

from __future__ import annotations

__all__ = [
    "clear_credentials",
    "get_api_key",
    "get_credential_storage_info",
    "get_credentials",
    "save_api_key",
    "save_credentials",
]

import logging

import keyring
from keyring.errors import KeyringError

from ._storage import CONFIG_FILE, load_config, load_raw_config, save_config

# Keyring service name for credential storage
_KEYRING_SERVICE = "signbox"

# Keyring entry names; API key and per-user passwords live in separate namespaces
_API_KEY_ENTRY = "api-key"
_USER_ENTRY_PREFIX = "user:"

# Set to False to force config-file storage (tests, headless hosts)
_keyring_enabled = True

_logger = logging.getLogger(__name__)


def _user_entry(username: str) -> str:
    return f"{_USER_ENTRY_PREFIX}{username}"


def _keyring_get(entry: str) -> str | None:
    if not _keyring_enabled:
        return None
    try:
        return keyring.get_password(_KEYRING_SERVICE, entry)
    except KeyringError as e:
        _logger.debug("Keyring read failed, trying config file: %s", e)
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring backend error, trying config file: %s", e)
    return None


def _keyring_set(entry: str, secret: str) -> bool:
    if not _keyring_enabled:
        return False
    try:
        keyring.set_password(_KEYRING_SERVICE, entry, secret)
    except KeyringError as e:
        _logger.warning("Keyring save failed, using config file: %s", e)
    except (OSError, RuntimeError) as e:
        _logger.warning("Keyring backend error, using config file: %s", e)
    else:
        return True
    return False


def _keyring_delete(entry: str) -> None:
    """Delete a single keyring entry (best-effort)."""
    if not _keyring_enabled or not entry:
        return
    try:
        keyring.delete_password(_KEYRING_SERVICE, entry)
        _logger.debug("Deleted keyring entry")
    except KeyringError:
        pass  # entry doesn't exist
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring delete failed: %s", e)


def get_credential_storage_info() -> str:
    """Return human-readable description of where secrets are stored."""
    if _keyring_enabled:
        backend = keyring.get_keyring()
        module = type(backend).__module__ or ""
        if "fail" not in module:
            if "macOS" in module:
                return "macOS Keychain"
            if "Windows" in module:
                return "Windows Credential Manager"
            if "SecretService" in module:
                return "Linux Secret Service"
            if "KWallet" in module:
                return "KDE Wallet"
            return f"System keychain ({type(backend).__name__})"
    return f"{CONFIG_FILE} (plaintext)"


def _save_secret(config: dict[str, object], key: str, entry: str, secret: str) -> bool:
    if _keyring_set(entry, secret):
        config.pop(key, None)
        return True
    _logger.warning("Secret will be saved in plaintext (%s)", CONFIG_FILE)
    config[key] = secret
    return False


# ── API key ──────────────────────────────────────────────────────────


def get_api_key() -> str | None:
    """Get the saved API key from the keychain or the config file."""
    secret = _keyring_get(_API_KEY_ENTRY)
    if secret:
        return secret
    return load_config().get("api_key") or None


def save_api_key(api_key: str) -> bool:
    """Save the API key.

    Returns:
        True if stored in the system keychain, False if it fell back
        to the config file.
    """
    config = load_raw_config()
    secure = _save_secret(config, "api_key", _API_KEY_ENTRY, api_key)
    save_config(config)
    return secure


# ── Basic auth ───────────────────────────────────────────────────────


def get_credentials() -> tuple[str | None, str | None]:
    """Get saved basic-auth credentials.

    Returns:
        (None, None) if no username is saved, (username, None) if the
        password is inaccessible, otherwise (username, password).
    """
    config = load_config()
    username = config.get("username")
    if not username:
        return None, None

    password = _keyring_get(_user_entry(username))
    if password:
        return username, password

    password = config.get("password")
    if password:
        _logger.debug("get_credentials: found password in config file (plaintext)")
        return username, password
    return username, None


def save_credentials(username: str, password: str) -> bool:
    """Save basic-auth credentials.

    If the username changed since last save, the old keychain entry is
    removed.

    Returns:
        True if the password went to the system keychain.
    """
    config = load_raw_config()
    old_username = config.get("username")
    if isinstance(old_username, str) and old_username != username:
        _keyring_delete(_user_entry(old_username))

    config["username"] = username
    secure = _save_secret(config, "password", _user_entry(username), password)
    save_config(config)
    return secure


def clear_credentials() -> None:
    """Remove the API key and basic-auth credentials from all storage."""
    config = load_raw_config()
    username = config.get("username")
    if isinstance(username, str):
        _keyring_delete(_user_entry(username))
    _keyring_delete(_API_KEY_ENTRY)

    for key in ("username", "password", "api_key"):
        config.pop(key, None)
    save_config(config)
    _logger.info("Credentials cleared. Keys remaining: %s", list(config.keys()))
