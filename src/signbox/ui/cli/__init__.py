"""
Command-line interface for signbox.

Argument parsing, dispatch, and the non-signing subcommands.
Signing lives in ``sign``; configuration in ``setup``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ...config import CONFIG_FILE, clear_credentials, load_settings
from ...constants import STATUS_POLICIES, __version__
from ..helpers import mask_secret
from .setup import cmd_setup
from .sign import cmd_sign


def _cmd_show() -> None:
    """Print resolved settings with secrets masked."""
    settings = load_settings()
    print(f"Config file:          {CONFIG_FILE}")
    print(f"Endpoint:             {settings.endpoint or '(not set)'}")
    print(f"API key:              {mask_secret(settings.api_key)}")
    print(f"Basic auth user:      {settings.username or '(none)'}")
    print(f"Max connections:      {settings.max_connections}")
    print(f"Acquire timeout:      {settings.acquire_timeout}s")
    print(f"Request timeout:      {settings.request_timeout}s")
    print(f"Unclassified status:  {settings.unclassified_status}")


def _cmd_logout() -> None:
    """Clear the API key and credentials, keeping server configuration."""
    clear_credentials()
    print("Credentials cleared. Server configuration preserved.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signbox",
        description="Sign documents with a remote SignBox service.",
        epilog=(
            "Environment variables:\n"
            "  SIGNBOX_URL                  Signing endpoint\n"
            "  SIGNBOX_API_KEY              API key\n"
            "  SIGNBOX_USER / SIGNBOX_PASS  Basic auth credentials (optional)\n"
            "  SIGNBOX_MAX_CONNECTIONS      Connection pool size (default: 40)\n"
            "  SIGNBOX_ACQUIRE_TIMEOUT      Seconds to wait for a connection (default: 600)\n"
            "  SIGNBOX_TIMEOUT              Request timeout in seconds (default: 120)\n"
            "  SIGNBOX_UNCLASSIFIED_STATUS  retryable|permanent (default: retryable)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"signbox {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # sign
    p_sign = sub.add_parser("sign", help="Sign document(s)")
    p_sign.add_argument("files", nargs="+", help="File(s) to sign")
    p_sign.add_argument("-o", "--output", help="Output file path (single file only)")
    p_sign.add_argument(
        "-f",
        "--format",
        choices=["pades", "xades", "cades"],
        default=None,
        help="Signature format (default: pades for .pdf, xades for .xml, cades otherwise)",
    )
    p_sign.add_argument(
        "-t",
        "--timestamp",
        action="store_true",
        default=False,
        help="Request a timestamped signature (level T instead of BES)",
    )

    # setup
    p_setup = sub.add_parser("setup", help="Save endpoint and credentials")
    p_setup.add_argument("--url", required=True, help="Signing endpoint URL")
    p_setup.add_argument("--api-key", default=None, help="API key (prompted if omitted)")
    p_setup.add_argument("--user", default=None, help="Basic auth username (password is prompted)")
    p_setup.add_argument("--max-connections", type=int, default=None)
    p_setup.add_argument("--acquire-timeout", type=int, default=None)
    p_setup.add_argument("--timeout", type=int, default=None)
    p_setup.add_argument("--unclassified-status", choices=STATUS_POLICIES, default=None)

    # show
    sub.add_parser("show", help="Show resolved configuration")

    # logout
    sub.add_parser("logout", help="Clear stored API key and credentials")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "sign":
        cmd_sign(args)
    elif args.command == "setup":
        cmd_setup(args)
    elif args.command == "show":
        _cmd_show()
    elif args.command == "logout":
        _cmd_logout()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
