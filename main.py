#!/usr/bin/env python3
"""
Rubrica -- provisioning commands.

Principals are normally created through POST /api/users, which itself needs
a logged-in user. These commands create the schema and the first account.

Usage:
  python main.py init-db
  python main.py create-user admin --role admin
  python main.py create-user mario --role user --password-stdin < pw.txt

Environment variables:
  DATABASE_URL   SQLAlchemy URL of the database (see core/config.py)
  SECRET_KEY     Not used here, but Settings validation still requires it
                 unless DEBUG=true.
"""

import argparse
import getpass
import sys

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from contacts.store import ContactStore
from core.config import get_settings


def _read_password(from_stdin: bool) -> str:
    """Prompt twice on a TTY, or read one line from stdin for scripted use."""
    if from_stdin:
        return sys.stdin.readline().rstrip("\n")
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return ""
    return first


def cmd_init_db(args: argparse.Namespace) -> int:
    settings = get_settings()
    # Constructing the stores creates missing tables and seeds the roles.
    UserStore(settings.database_url).close()
    ContactStore(settings.database_url).close()
    print("Database schema is up to date.")
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        role = next((r for r in store.list_roles() if r.name == args.role), None)
        if role is None:
            print(f"  [!] Unknown role '{args.role}'.")
            return 1
        password = _read_password(args.password_stdin)
        if not password:
            print("  [!] A non-empty password is required.")
            return 1
        try:
            user_id = store.create_user(
                User(username=args.username, role_id=role.id, hashed_password=hash_password(password))
            )
        except IntegrityError:
            print(f"  [!] A user named '{args.username}' already exists.")
            return 1
        print(f"Created user '{args.username}' (id={user_id}, role={role.name}).")
        return 0
    finally:
        store.close()


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="rubrica",
        description="Rubrica provisioning commands.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_db = sub.add_parser("init-db", help="Create tables and seed the default roles")
    init_db.set_defaults(func=cmd_init_db)

    create_user = sub.add_parser("create-user", help="Create a login account")
    create_user.add_argument("username", help="Unique login name")
    create_user.add_argument(
        "--role",
        default="user",
        help="Role name (default: user). Seeded roles are 'admin' and 'user'.",
    )
    create_user.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from stdin instead of prompting",
    )
    create_user.set_defaults(func=cmd_create_user)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
