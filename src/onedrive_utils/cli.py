"""CLI for onedrive-utils.

Usage:
    onedrive-utils login                   # Interactive OAuth login
    onedrive-utils status                  # Show stored token status
    onedrive-utils logout                  # Remove the stored token
    onedrive-utils drive                   # Show the default drive
    onedrive-utils drives                  # List available drives
    onedrive-utils recent                  # List recently used files
    onedrive-utils get <url>               # GET any Graph URL (e.g. /me)

Global options:
    --token-file PATH                      # Token file (default: .token.json)
    -v, --verbose                          # Debug logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import webbrowser
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def show_response(value: Any) -> None:
    """Print a value as indented JSON between markers."""
    print("=== BEGIN ===")
    print(json.dumps(value, indent=1, default=_json_default))
    print("=== END ===")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _browser_prompt(no_browser: bool):
    def prompt(url: str) -> str:
        print("\nVisit the following URL in a browser to authenticate this application.")
        print("After authentication, copy the response URL from the browser.\n")
        print(f"Authorization URL:\n{url}\n")
        if not no_browser:
            webbrowser.open(url)
        return input("Enter the response URL: ").strip()

    return prompt


def cmd_login(token_path: Path, no_browser: bool = False) -> int:
    """Interactive OAuth login."""
    from onedrive_utils.auth import OneDriveAuthError, TokenStore, authorize

    print("=" * 60)
    print("ONEDRIVE-UTILS LOGIN")
    print("=" * 60)

    store = TokenStore(token_path)
    if store.exists():
        print(f"\nToken already stored at {token_path}")
        return cmd_status(token_path)

    try:
        authorize(store, prompt=_browser_prompt(no_browser))
    except OneDriveAuthError as e:
        print(f"\nError: {e}")
        return 1

    print("\nToken saved successfully!")
    return cmd_status(token_path)


def cmd_status(token_path: Path) -> int:
    """Show stored token status."""
    from onedrive_utils.auth import TokenStore, TokenStoreError

    try:
        token = TokenStore(token_path).load()
    except TokenStoreError as e:
        print(f"Error: {e}")
        return 1

    expiry = token.expiry
    if expiry is not None and expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)

    if expiry is None:
        expires = "unknown"
    elif expiry < datetime.now(timezone.utc):
        expires = f"expired at {expiry.isoformat()}"
    else:
        expires = expiry.isoformat()

    print(f"Token file    : {token_path}")
    print(f"Type          : {token.token_type}")
    print(f"Expires       : {expires}")
    print(f"Refresh token : {'yes' if token.refresh_token else 'no'}")
    return 0


def cmd_logout(token_path: Path) -> int:
    """Remove the stored token."""
    from onedrive_utils.auth import TokenStore

    if TokenStore(token_path).delete():
        print(f"Removed {token_path}")
    else:
        print("No token to remove")
    return 0


def _run_request(token_path: Path, command: str, url: str | None = None) -> int:
    from onedrive_utils.auth import OneDriveAuthError
    from onedrive_utils.drive import OneDriveClient, OneDriveError

    try:
        with OneDriveClient.from_token_file(token_path) as client:
            if command == "drive":
                show_response(asdict(client.get_my_drive()))
            elif command == "drives":
                show_response([asdict(d) for d in client.list_my_drives()])
            elif command == "recent":
                show_response([asdict(i) for i in client.list_recent_files()])
            else:
                body = client.get(url)
                try:
                    show_response(json.loads(body))
                except ValueError:
                    print(body.decode("utf-8", errors="replace"))
    except (OneDriveAuthError, OneDriveError) as e:
        print(f"Error: {e}")
        return 1

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from onedrive_utils.config import get_token_path

    parser = argparse.ArgumentParser(
        prog="onedrive-utils",
        description="Access OneDrive through Microsoft Graph",
    )
    parser.add_argument(
        "--token-file",
        type=str,
        default=None,
        help="Token file path (default: $ONEDRIVE_TOKEN_FILE or .token.json)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # login
    login_parser = subparsers.add_parser("login", help="Interactive OAuth login")
    login_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically",
    )

    subparsers.add_parser("status", help="Show token status")
    subparsers.add_parser("logout", help="Remove stored token")
    subparsers.add_parser("drive", help="Show the default drive")
    subparsers.add_parser("drives", help="List available drives")
    subparsers.add_parser("recent", help="List recently used files")

    # get
    get_parser = subparsers.add_parser("get", help="GET a Graph URL")
    get_parser.add_argument("url", help="Absolute URL or path such as /me/drive/root")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    token_path = Path(args.token_file) if args.token_file else get_token_path()

    if args.command == "login":
        return cmd_login(token_path, args.no_browser)
    if args.command == "status":
        return cmd_status(token_path)
    if args.command == "logout":
        return cmd_logout(token_path)
    if args.command in ("drive", "drives", "recent"):
        return _run_request(token_path, args.command)
    if args.command == "get":
        return _run_request(token_path, "get", args.url)

    return 0


if __name__ == "__main__":
    sys.exit(main())
