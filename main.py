#!/usr/bin/env python3
"""
E-commerce accounts -- admin command-line tool.

Every user-management route in the API requires an Admin token, and
self-registration only creates "User" accounts, so the first admin has to be
created out of band. This tool talks to the same store the API uses
(DATABASE_URL).

Usage:
  python main.py create-user admin@example.com --admin --first-name Ada
  python main.py create-user shopper@example.com
  python main.py list-users
  python main.py list-users --json
  python main.py token admin@example.com

Passwords are read with getpass (or from ACCOUNT_PASSWORD for scripted use)
and never accepted as a command-line argument.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from getpass import getpass

from accounts.errors import AccountError
from accounts.models import Role, User
from accounts.service import AccountService
from accounts.store import SQLAccountStore
from core.config import get_settings


def _read_password(confirm: bool) -> str:
    """Return the password from ACCOUNT_PASSWORD or an interactive prompt."""
    from_env = os.environ.get("ACCOUNT_PASSWORD")
    if from_env:
        return from_env
    first = getpass("Password: ")
    if confirm and getpass("Repeat password: ") != first:
        raise SystemExit("  [!] Passwords do not match.")
    return first


def _create_user(service: AccountService, args: argparse.Namespace) -> int:
    user = User(
        email=args.email,
        first_name=args.first_name,
        last_name=args.last_name,
        role=Role.ADMIN if args.admin else Role.USER,
    )
    try:
        created = service.create(user, _read_password(confirm=True))
    except AccountError as exc:
        print(f"  [!] {exc.message}")
        return 1
    print(f"  Created {created.role} {created.email} (id {created.id})")
    return 0


def _list_users(service: AccountService, args: argparse.Namespace) -> int:
    users = service.get_all()
    if args.json:
        rows = [
            {
                "id": u.id,
                "email": u.email,
                "first_name": u.first_name,
                "last_name": u.last_name,
                "role": u.role,
                "orders": len(u.orders),
                "created_at": u.created_at,
            }
            for u in users
        ]
        print(json.dumps(rows, indent=2))
        return 0
    if not users:
        print("  No users.")
        return 0
    for u in users:
        name = " ".join(p for p in (u.first_name, u.last_name) if p) or "-"
        print(f"  {u.id}  {u.role:<6}  {u.email:<40}  {name}")
    return 0


def _issue_token(service: AccountService, args: argparse.Namespace) -> int:
    user = service.authenticate(args.email, _read_password(confirm=False))
    if user is None:
        print("  [!] Email or password is incorrect.")
        return 1
    print(service.generate_token(user))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="ecommerce-accounts",
        description="Manage e-commerce user accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user admin@example.com --admin
  ACCOUNT_PASSWORD=s3cret python main.py create-user bot@example.com
  python main.py list-users --json
  python main.py token admin@example.com
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log store activity to stderr")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("email", help="Login email; must not already be registered")
    create.add_argument("--first-name", default=None, metavar="NAME")
    create.add_argument("--last-name", default=None, metavar="NAME")
    create.add_argument("--admin", action="store_true", help="Give the account the Admin role")
    create.set_defaults(handler=_create_user)

    listing = sub.add_parser("list-users", help="List all accounts")
    listing.add_argument("--json", action="store_true", help="Output structured JSON")
    listing.set_defaults(handler=_list_users)

    token = sub.add_parser("token", help="Authenticate and print a bearer token")
    token.add_argument("email")
    token.set_defaults(handler=_issue_token)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    store = SQLAccountStore(get_settings().database_url)
    try:
        return args.handler(AccountService(store), args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
