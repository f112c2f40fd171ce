"""
CLI helper to create a postboard account with a given role.
"""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from postboard.config import get_settings
from postboard.db import SqlDbClient
from postboard.errors import DuplicateUserError
from postboard.security import hash_password
from shared.types import Role


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a postboard user")
    parser.add_argument("username", help="Login name")
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.AUTHOR.value,
        help="Role to grant (default: AUTHOR)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password; prompted for when omitted",
    )
    args = parser.parse_args()

    settings = get_settings()
    if not settings.database_url:
        print("DATABASE_URL is not set; refusing to create a user in memory.")
        return 2

    password = args.password or getpass.getpass("Password: ")
    db = SqlDbClient(settings.database_url)
    try:
        user = db.create_user(args.username, hash_password(password), Role(args.role))
    except DuplicateUserError:
        print(f"User {args.username!r} already exists.")
        return 1
    print(f"Created {user.role.value} {user.username} ({user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
