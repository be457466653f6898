#!/usr/bin/env python3
"""Create the first admin account, or reset its password if it exists.

Self-registration is disabled, so every deployment needs one admin created
out of band.

Usage:
    FIRST_ADMIN_EMAIL=admin@example.com FIRST_ADMIN_PASSWORD=secret \
        python scripts/create_admin.py
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import get_settings
from src.database import Database
from src.models import User
from src.models.enums import UserRole
from src.services.auth import get_password_hash, normalize_email


def create_admin(email: str, password: str, name: str = "Admin User") -> None:
    database = Database(get_settings().database_url)
    session = database.session_factory()
    email = normalize_email(email)

    try:
        admin = session.query(User).filter(User.email == email).first()
        if admin:
            if admin.role != UserRole.ADMIN.value:
                raise SystemExit(f"{email} already exists with role {admin.role}")
            admin.password_hash = get_password_hash(password)
            admin.is_active = True
            print(f"Admin {email} already exists; password updated")
        else:
            session.add(
                User(
                    email=email,
                    password_hash=get_password_hash(password),
                    name=name,
                    role=UserRole.ADMIN.value,
                    is_active=True,
                )
            )
            print(f"Admin {email} created")
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        database.dispose()


if __name__ == "__main__":
    admin_email = os.getenv("FIRST_ADMIN_EMAIL")
    admin_password = os.getenv("FIRST_ADMIN_PASSWORD")
    if not admin_email or not admin_password:
        raise SystemExit("FIRST_ADMIN_EMAIL and FIRST_ADMIN_PASSWORD must be set")
    create_admin(admin_email, admin_password, os.getenv("FIRST_ADMIN_NAME", "Admin User"))
