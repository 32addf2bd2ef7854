#!/usr/bin/env python3
"""
Create (or look up) a user and print an access JWT for it.

Usage:
  python tools/create_user_token.py --email admin@example.com --name "Ada Admin" --role ADMIN [--hours 24]

Tokens are signed with JWT_SECRET (set in .env or env var). Use for local/dev/testing only.
Do NOT commit generated tokens or share them publicly.
"""
import argparse
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from internhub.auth.service import issue_access_token  # noqa: E402
from internhub.db.session import SessionLocal, transaction  # noqa: E402
from internhub.features.users.models import UserRole  # noqa: E402
from internhub.features.users.repository import user_repository  # noqa: E402


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--email", required=True, help="User email (created if missing)")
    p.add_argument("--name", default=None, help="Display name for a new user")
    p.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.INTERN.value)
    p.add_argument("--hours", type=int, default=24, help="Hours until token expiry")
    args = p.parse_args()

    with SessionLocal() as db, transaction(db):
        user = user_repository.get_by_email(db, args.email)
        if user is None:
            user = user_repository.create_user(db, args.email, args.name or args.email.split("@")[0], UserRole(args.role))
            print(f"Created {user.role.value} user {user.email} ({user.id})")
        else:
            print(f"Found {user.role.value} user {user.email} ({user.id})")
        user_id = user.id

    token = issue_access_token(user_id, ttl_seconds=args.hours * 3600)
    print("\n=== Access JWT (use as Authorization: Bearer <token>) ===\n")
    print(token)


if __name__ == "__main__":
    main()
