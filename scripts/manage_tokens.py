"""Administrative access to stored OAuth credentials.

Credentials are never removed automatically. This tool is the explicit way to
inspect or disconnect a user, and to re-encrypt tokens after rotating
``TOKEN_ENCRYPTION_SECRET``.

Example usages::

    # Show what is stored for a user (secrets are redacted).
    python -m scripts.manage_tokens show --user alice

    # Disconnect a user's Gmail account.
    python -m scripts.manage_tokens delete --user alice --provider gmail

    # After moving the old secret to TOKEN_ENCRYPTION_PREVIOUS_SECRETS.
    python -m scripts.manage_tokens rotate-key
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Callable

from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.config import get_settings
from mailgate.core.errors import StorageError, ValidationError
from mailgate.dependencies import get_token_cipher_service

EXIT_OK = 0
EXIT_NOT_FOUND = 4
EXIT_RUNTIME_ERROR = 5


def _open_store(db_path: str | None) -> SQLiteTokenStore:
    return SQLiteTokenStore(
        db_path or get_settings().storage.db_path,
        cipher=get_token_cipher_service(),
    )


def _show(store: SQLiteTokenStore, user: str, provider: str | None) -> int:
    if provider:
        record = store.get(user, provider)
        records = [record] if record else []
    else:
        records = store.list_for_user(user)
    if not records:
        print(f"No credentials stored for {user}.", file=sys.stderr)
        return EXIT_NOT_FOUND
    print(json.dumps([record.redacted() for record in records], indent=2))
    return EXIT_OK


def _delete(store: SQLiteTokenStore, user: str, provider: str) -> int:
    if not store.exists(user, provider):
        print(f"No {provider} credential stored for {user}.", file=sys.stderr)
        return EXIT_NOT_FOUND
    store.delete(user, provider)
    print(f"Deleted {provider} credential for {user}.")
    return EXIT_OK


def _rotate(store: SQLiteTokenStore) -> int:
    count = store.reencrypt_all()
    print(f"Re-encrypted {count} credential(s) under the current secret.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect or remove stored OAuth credentials.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_db_argument(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--db-path",
            default=None,
            help="Credential database (default: OAUTH_DB_PATH or ./tokens.db).",
        )

    show_parser = subparsers.add_parser("show", help="Print stored credentials without secrets.")
    add_db_argument(show_parser)
    show_parser.add_argument("--user", required=True, help="User identifier.")
    show_parser.add_argument("--provider", default=None, help="Limit to one provider.")

    delete_parser = subparsers.add_parser("delete", help="Remove a stored credential.")
    add_db_argument(delete_parser)
    delete_parser.add_argument("--user", required=True, help="User identifier.")
    delete_parser.add_argument("--provider", default="gmail", help="Provider (default: gmail).")

    rotate_parser = subparsers.add_parser(
        "rotate-key",
        help="Re-encrypt all tokens with TOKEN_ENCRYPTION_SECRET.",
    )
    add_db_argument(rotate_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        store = _open_store(args.db_path)
        handlers: dict[str, Callable[[], int]] = {
            "show": lambda: _show(store, args.user, args.provider),
            "delete": lambda: _delete(store, args.user, args.provider),
            "rotate-key": lambda: _rotate(store),
        }
        return handlers[args.command]()
    except (StorageError, ValidationError) as exc:
        print(f"Credential storage error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
