"""
Create (or reset) an administrator account.

Usage:
    python -m scripts.create_admin
    python -m scripts.create_admin --email boss@company.com --password s3cret! --reset
"""

import argparse

from loguru import logger

from apps.api.settings import Settings
from auth.auth_manager import AuthManager
from records.database import DatabaseManager
from records.repository import UserRepository


def create_admin(database: DatabaseManager, email: str, password: str, first_name: str = "Admin",
                 last_name: str = "User", reset: bool = False) -> str:
    """Create the admin user; with reset=True an existing account gets the password and admin role back."""
    with database.session_scope() as db:
        user = UserRepository.get_by_email(db, email)
        if user is not None:
            if not reset:
                logger.info(f"User {email} already exists (role={user.role}), nothing to do")
                return user.id
            UserRepository.update(db, user, {
                "password_hash": AuthManager.hash_password(password),
                "role": "admin",
                "is_active": True,
            })
            logger.info(f"Reset admin account {email}")
            return user.id

        user = UserRepository.create(
            db,
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            password_hash=AuthManager.hash_password(password),
            role="admin",
            department="Administration",
            position="System Administrator",
        )
        logger.info(f"Created admin account {email}")
        return user.id


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an administrator account")
    parser.add_argument("--email", default="admin@company.com")
    parser.add_argument("--password", default="admin123")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--reset", action="store_true", help="reset password and role if the user exists")
    args = parser.parse_args(argv)

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    settings = Settings()
    database = DatabaseManager(settings.database)
    database.initialize()
    try:
        create_admin(database, args.email, args.password, args.first_name, args.last_name, args.reset)
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
