#!/usr/bin/env python3
"""
Initialize the database with tables and the first superadmin.

Safe to run multiple times (idempotent).

Admin credentials can be provided via:
1. Command line arguments: --email, --password, --name
2. Environment variables: ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME
3. Interactive prompts (if running interactively)
"""
import argparse
import getpass
import os
import sys

# Add backend directory to path
script_dir = os.path.dirname(os.path.abspath(__file__))
backend_dir = os.path.dirname(script_dir)
sys.path.insert(0, backend_dir)

from vms.core.database import SessionLocal, init_db
from vms.core.errors import Conflict
from vms.services.auth_service import AuthService


def get_admin_credentials(args):
    """Get admin credentials from args, environment variables, or prompt"""
    email = args.email or os.environ.get("ADMIN_EMAIL")
    password = args.password or os.environ.get("ADMIN_PASSWORD")
    name = args.name or os.environ.get("ADMIN_NAME") or "Super Admin"

    if sys.stdin.isatty():
        if not email:
            email = input("Enter admin email: ").strip()
        if not password:
            password = getpass.getpass("Enter admin password: ")
            if password != getpass.getpass("Confirm admin password: "):
                print("[ERROR] Passwords do not match!")
                return None, None, None

    if not email or not password:
        print("[ERROR] Admin credentials required. Provide via:")
        print("  - Command line: --email <email> --password <pass>")
        print("  - Environment: ADMIN_EMAIL, ADMIN_PASSWORD")
        return None, None, None

    if len(password) < 8:
        print("[ERROR] Password must be at least 8 characters long")
        return None, None, None

    return email, password, name


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the visitor management database")
    parser.add_argument("--email", help="Superadmin email")
    parser.add_argument("--password", help="Superadmin password")
    parser.add_argument("--name", help="Superadmin full name")
    parser.add_argument("--tables-only", action="store_true", help="Create tables without a superadmin")
    args = parser.parse_args()

    print("Initializing database...")
    init_db()
    print("[OK] Tables created")

    if args.tables_only:
        return 0

    email, password, name = get_admin_credentials(args)
    if not email:
        return 1

    db = SessionLocal()
    try:
        user = AuthService(db).create_superadmin(email, password, name)
        print(f"[OK] Superadmin created: {user.email}")
    except Conflict as e:
        print(f"[SKIP] {e.message}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
