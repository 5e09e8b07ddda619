"""Manage the admin account from the command line.

Usage:
    python -m scripts.manage_admin create --username admin --name "Site Admin"
    python -m scripts.manage_admin reset --username admin
    python -m scripts.manage_admin delete --username admin
    python -m scripts.manage_admin list

Passwords are prompted for when ``--password`` is not given.
"""

import argparse
import asyncio
import getpass
import logging
import sys

from folio.database import dispose_engine, get_sessionmaker, init_db
from folio.errors import BlogError
from folio.services.auth import (
    create_admin,
    delete_admin,
    list_admins,
    reset_admin_password,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def _password(args: argparse.Namespace) -> str:
    if args.password:
        return args.password
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match.")
        sys.exit(1)
    return password


async def run(args: argparse.Namespace) -> int:
    await init_db()
    try:
        async with get_sessionmaker()() as db:
            if args.command == "create":
                admin = await create_admin(db, args.username, _password(args), args.name)
                print(f"Created admin {admin.username} (id {admin.id})")
            elif args.command == "reset":
                admin = await reset_admin_password(db, args.username, _password(args))
                print(f"Password reset for {admin.username}")
            elif args.command == "delete":
                admin_id = await delete_admin(db, args.username)
                print(f"Deleted admin {args.username} (id {admin_id})")
            else:
                admins = await list_admins(db)
                if not admins:
                    print("No admin users found.")
                for i, admin in enumerate(admins, 1):
                    print(f"{i}. {admin.username} ({admin.name})")
                    print(f"   ID:      {admin.id}")
                    print(f"   Created: {admin.created_at:%Y-%m-%d}")
    except BlogError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        await dispose_engine()
    return 0


def main():
    parser = argparse.ArgumentParser(description="Admin user management")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create an admin user")
    create.add_argument("--username", default="admin")
    create.add_argument("--name", default="Admin")
    create.add_argument("--password", help="Prompted for if omitted")

    reset = sub.add_parser("reset", help="Reset an admin's password")
    reset.add_argument("--username", default="admin")
    reset.add_argument("--password", help="Prompted for if omitted")

    delete = sub.add_parser("delete", help="Delete an admin user")
    delete.add_argument("--username", default="admin")

    sub.add_parser("list", help="List admin users")

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
