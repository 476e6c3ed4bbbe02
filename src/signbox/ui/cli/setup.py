"""
Setup command for signbox CLI.

Saves the endpoint, pool options and credentials. Secrets not passed on
the command line are prompted for without echo.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ...config import (
    get_credential_storage_info,
    save_api_key,
    save_credentials,
    save_server_config,
)
from ...constants import ENV_API_KEY, ENV_PASS
from ...errors import ConfigError
from ..helpers import prompt_secret

if TYPE_CHECKING:
    import argparse


def cmd_setup(args: argparse.Namespace) -> None:
    """Persist server configuration and credentials."""
    try:
        save_server_config(
            args.url,
            max_connections=args.max_connections,
            acquire_timeout=args.acquire_timeout,
            timeout=args.timeout,
            unclassified_status=args.unclassified_status,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Endpoint saved: {args.url}")

    api_key = args.api_key or prompt_secret("API key (empty to skip): ")
    if api_key:
        save_api_key(api_key)
        print(f"API key saved to: {get_credential_storage_info()}")

    if args.user:
        password = prompt_secret(f"Password for {args.user}: ")
        if not password:
            print("Error: password is required with --user.", file=sys.stderr)
            sys.exit(1)
        save_credentials(args.user, password)
        print(f"Credentials saved to: {get_credential_storage_info()}")

    print(f"  (env vars {ENV_API_KEY}/{ENV_PASS} always take priority)")
