#!/usr/bin/env python3
"""Manage market data provider API keys in the system keychain.

Keys stored here take priority over environment variables and ``.env``
(see ``config.KeychainSettingsSource``). A provider whose key is missing
everywhere is simply left out of the quote and history chains.

Usage:
    python -m scripts.manage_api_keys list
    python -m scripts.manage_api_keys set FMP_API_KEY          # prompts for the value
    python -m scripts.manage_api_keys delete FINNHUB_API_KEY
    python -m scripts.manage_api_keys import-env [--env-file PATH]
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import dotenv_values

from services.credential_manager import (
    CREDENTIAL_KEYS,
    delete_credential,
    get_credential,
    list_credentials,
    set_credential,
)


def mask(value: str) -> str:
    """Show only the last four characters of a key."""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def show_keys() -> int:
    stored = list_credentials()
    for key in sorted(CREDENTIAL_KEYS):
        value = stored.get(key)
        print(f"  {key:<24} {mask(value) if value else '(not set)'}")
    return 0


def store_key(key: str, value: str | None = None) -> int:
    if value is None:
        value = getpass.getpass(f"{key}: ")
    if set_credential(key, value):
        print(f"Stored {key}")
        return 0
    print(f"Could not store {key}")
    return 1


def remove_key(key: str) -> int:
    if delete_credential(key):
        print(f"Deleted {key}")
        return 0
    print(f"{key} was not deleted (unknown key or not in keychain)")
    return 1


def import_env(env_path: Path) -> int:
    """Copy every non-empty API key from a ``.env`` file into the keychain.

    Keys already stored with the same value are left alone.
    """
    if not env_path.exists():
        print(f"No .env file found at {env_path}")
        return 1

    values = dotenv_values(env_path)
    stored: list[str] = []
    unchanged: list[str] = []
    failed: list[str] = []

    for key in sorted(CREDENTIAL_KEYS):
        value = (values.get(key) or "").strip()
        if not value:
            continue
        if get_credential(key) == value:
            unchanged.append(key)
        elif set_credential(key, value):
            stored.append(key)
        else:
            failed.append(key)

    print(f"Stored:    {', '.join(stored) or '-'}")
    print(f"Unchanged: {', '.join(unchanged) or '-'}")
    if failed:
        print(f"Failed:    {', '.join(failed)}")
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(description="Manage market data API keys in the keychain")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show which keys are stored (masked)")

    set_parser = sub.add_parser("set", help="Store a key (prompts when no value is given)")
    set_parser.add_argument("key", choices=sorted(CREDENTIAL_KEYS))
    set_parser.add_argument("value", nargs="?")

    delete_parser = sub.add_parser("delete", help="Remove a key")
    delete_parser.add_argument("key", choices=sorted(CREDENTIAL_KEYS))

    import_parser = sub.add_parser("import-env", help="Copy keys from a .env file")
    import_parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(__file__).parent.parent / ".env",
        help="Path to .env file (default: backend/.env)",
    )

    args = parser.parse_args()

    if args.command == "list":
        sys.exit(show_keys())
    if args.command == "set":
        sys.exit(store_key(args.key, args.value))
    if args.command == "delete":
        sys.exit(remove_key(args.key))
    sys.exit(import_env(args.env_file))


if __name__ == "__main__":
    main()
