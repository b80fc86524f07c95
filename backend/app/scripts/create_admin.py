from __future__ import annotations

import argparse
import os

from app.core.security import get_password_hash
from app.core.settings import settings
from app.db.session import SessionLocal
from app.models.admin import Admin


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or reset the platform administrator account.")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@university.edu"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", "admin123"))
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Overwrite the password when the admin already exists",
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow running in production (not recommended).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if settings.is_production and not args.allow_production:
        raise RuntimeError("Refusing to run in production without --allow-production")
    if len(args.password) < settings.min_password_length:
        raise SystemExit(f"Password must be at least {settings.min_password_length} characters long")

    email = args.email.lower()
    with SessionLocal() as db:
        admin = db.query(Admin).filter(Admin.email == email).first()
        if admin and not args.reset_password:
            print(f"admin already exists: {admin.email}")
            return
        if admin:
            admin.hashed_password = get_password_hash(args.password)
            action = "updated"
        else:
            admin = Admin(email=email, hashed_password=get_password_hash(args.password))
            action = "created"
        db.add(admin)
        db.commit()
        print(f"{action} admin: {admin.email}")
        print("Change the default password after first login.")


if __name__ == "__main__":
    main()
