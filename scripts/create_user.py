#!/usr/bin/env python3
"""Script to create chat users in the database."""

import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from app.core.database import SessionLocal
from app.core.security import get_password_hash
from app.models.user import User


def create_user(username: str, email: str, password: str) -> User:
    """Create a new user in the database."""
    db = SessionLocal()
    try:
        # Check if user already exists
        existing = db.query(User).filter(
            (User.username == username) | (User.email == email)
        ).first()
        if existing:
            print(f"❌ User with username '{username}' or email '{email}' already exists!")
            sys.exit(1)

        try:
            password_hash = get_password_hash(password)
        except ValueError as e:
            print(f"❌ Password validation failed: {e}")
            sys.exit(1)

        user = User(username=username, email=email, password_hash=password_hash)
        db.add(user)
        db.commit()
        db.refresh(user)

        print("✅ User created successfully!")
        print(f"   Username: {user.username}")
        print(f"   Email: {user.email}")
        print("\n💡 The username is the sender name shown in chat.")

        return user
    except SQLAlchemyError as e:
        db.rollback()
        print(f"❌ Error creating user: {e}")
        sys.exit(1)
    finally:
        db.close()


def main():
    """Main entry point for the script."""
    if len(sys.argv) < 4:
        print("Usage: python create_user.py <username> <email> <password>")
        print("\nExample:")
        print("  python create_user.py alice alice@example.com correct-horse")
        sys.exit(1)

    create_user(username=sys.argv[1], email=sys.argv[2], password=sys.argv[3])


if __name__ == "__main__":
    main()
