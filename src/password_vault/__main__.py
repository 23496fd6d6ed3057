# Password Vault - Command-line Entry Point
#
#   python -m password_vault add --user alice --site GitHub --username alice --category work
#   password-vault list --user alice --category work --sort-by createdAt --order desc
#
# Settings come from PASSWORD_VAULT_* environment variables (or a .env file);
# global options override them. Exit codes: 0 ok, 1 error, 2 entry not found.

import argparse
import getpass
import json
import sys
from dataclasses import asdict
from typing import List, Optional

from . import __version__
from .config import ConfigurationError, VaultSettings, load_settings
from .core import AuditLogger, set_audit_logger
from .vault import (
    AesGcmPasswordEncryptionService,
    CreatePasswordEntryRequest,
    DomainException,
    InMemoryPasswordEntryRepository,
    ListPasswordEntriesRequest,
    PasswordEntriesLister,
    PasswordEntryCreator,
    PasswordEntryDeleter,
    PasswordEntryId,
    PasswordEntryNotFoundError,
    PasswordEntryRepository,
    PasswordEntryRevealer,
    PasswordEntryUpdater,
    SqlitePasswordEntryRepository,
    UpdatePasswordEntryRequest,
)
from .vault.ports import SORT_FIELDS, SORT_ORDERS
from .vault.use_cases import PasswordEntryResponse

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="password-vault",
        description="Password Vault - per-user encrypted password entries",
    )
    parser.add_argument("--version", action="version", version=f"password-vault {__version__}")
    parser.add_argument("--env-file", help="Load settings from this .env file")
    parser.add_argument("--db-path", help="SQLite database file (overrides PASSWORD_VAULT_DB_PATH)")
    parser.add_argument("--audit-dir", help="Audit log directory (overrides PASSWORD_VAULT_AUDIT_DIR)")
    parser.add_argument(
        "--storage",
        choices=("sqlite", "memory"),
        help="Storage backend (overrides PASSWORD_VAULT_STORAGE)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Store a new password entry")
    add.add_argument("--user", required=True, help="Owner user id")
    add.add_argument("--site", required=True, help="Site or application name")
    add.add_argument("--username", required=True, help="Login for the site")
    add.add_argument("--category", required=True, help="PERSONAL, WORK, FINANCE, SOCIAL, EMAIL, SHOPPING or OTHER")
    add.add_argument("--password", help="Password (prompted when omitted)")
    add.add_argument("--url", help="Site URL")
    add.add_argument("--notes", help="Free-form notes")
    add.add_argument("--tag", action="append", dest="tags", help="Tag (repeatable)")

    lst = subparsers.add_parser("list", help="List password entries")
    lst.add_argument("--user", required=True, help="Owner user id")
    lst.add_argument("--page", type=int, default=1)
    lst.add_argument("--limit", type=int, default=20)
    lst.add_argument("--sort-by", choices=SORT_FIELDS, default="siteName")
    lst.add_argument("--order", choices=SORT_ORDERS, default="asc")
    lst.add_argument("--category", help="Only entries in this category")

    show = subparsers.add_parser("show", help="Show one entry (without its password)")
    show.add_argument("entry_id")
    show.add_argument("--user", required=True, help="Owner user id")

    reveal = subparsers.add_parser("reveal", help="Print the decrypted password")
    reveal.add_argument("entry_id")
    reveal.add_argument("--user", required=True, help="Owner user id")

    update = subparsers.add_parser("update", help="Change fields of an entry")
    update.add_argument("entry_id")
    update.add_argument("--user", required=True, help="Owner user id")
    update.add_argument("--site")
    update.add_argument("--username")
    update.add_argument("--category")
    update.add_argument("--password")
    update.add_argument("--url", help="New URL (empty string clears it)")
    update.add_argument("--notes", help="New notes (empty string clears them)")
    update.add_argument("--tag", action="append", dest="tags", help="Replace tags (repeatable)")
    update.add_argument("--clear-tags", action="store_true", help="Remove all tags")

    delete = subparsers.add_parser("delete", help="Delete an entry")
    delete.add_argument("entry_id")
    delete.add_argument("--user", required=True, help="Owner user id")

    return parser


def build_repository(settings: VaultSettings) -> PasswordEntryRepository:
    if settings.storage == "memory":
        return InMemoryPasswordEntryRepository()
    return SqlitePasswordEntryRepository(settings.db_path)


def build_encryption_service(settings: VaultSettings) -> AesGcmPasswordEncryptionService:
    return AesGcmPasswordEncryptionService(
        settings.require_master_secret(), iterations=settings.pbkdf2_iterations
    )


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def run_command(args: argparse.Namespace, settings: VaultSettings) -> int:
    repository = build_repository(settings)

    if args.command == "add":
        password = args.password or getpass.getpass("Password: ")
        creator = PasswordEntryCreator(repository, build_encryption_service(settings))
        response = creator.run(CreatePasswordEntryRequest(
            user_id=args.user,
            site_name=args.site,
            username=args.username,
            password=password,
            category=args.category,
            site_url=args.url,
            notes=args.notes,
            tags=args.tags,
        ))
        _print_json(asdict(response))

    elif args.command == "list":
        response = PasswordEntriesLister(repository).run(ListPasswordEntriesRequest(
            user_id=args.user,
            page=args.page,
            limit=args.limit,
            sort_by=args.sort_by,
            sort_order=args.order,
            category=args.category,
        ))
        _print_json(asdict(response))

    elif args.command == "show":
        entry = repository.get(PasswordEntryId(args.entry_id), args.user)
        _print_json(asdict(PasswordEntryResponse.from_entry(entry)))

    elif args.command == "reveal":
        revealer = PasswordEntryRevealer(repository, build_encryption_service(settings))
        print(revealer.run(args.entry_id, args.user))

    elif args.command == "update":
        # Only a new password needs the encryption service
        encryption = build_encryption_service(settings) if args.password is not None else None
        updater = PasswordEntryUpdater(repository, encryption)
        response = updater.run(UpdatePasswordEntryRequest(
            entry_id=args.entry_id,
            user_id=args.user,
            site_name=args.site,
            site_url=args.url,
            username=args.username,
            password=args.password,
            category=args.category,
            notes=args.notes,
            tags=[] if args.clear_tags else args.tags,
        ))
        _print_json(asdict(response))

    elif args.command == "delete":
        PasswordEntryDeleter(repository).run(args.entry_id, args.user)
        print(f"Deleted {args.entry_id}")

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the password-vault command.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            args.env_file,
            db_path=args.db_path,
            audit_dir=args.audit_dir,
            storage=args.storage,
        )
        set_audit_logger(AuditLogger(settings.audit_dir))
        return run_command(args, settings)
    except PasswordEntryNotFoundError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except (DomainException, ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
