#!/usr/bin/env python3
"""Create a portal account (client, support or admin) from the command line."""

import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import SessionLocal
from app.core.security import get_password_hash
from app.models.enums import UserRole
from app.models.user import User


def create_user(
    email: str,
    password: str,
    first_name: str,
    role: UserRole = UserRole.CLIENT,
    last_name: str | None = None,
) -> User:
    db = SessionLocal()
    try:
        email = email.lower()
        if db.query(User).filter(User.email == email).first():
            print(f"User with email '{email}' already exists")
            sys.exit(1)

        try:
            password_hash = get_password_hash(password)
        except ValueError as e:
            print(f"Password validation failed: {e}")
            sys.exit(1)

        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            created_by="script",
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        print("User created successfully")
        print(f"   ID: {user.id}")
        print(f"   Email: {user.email}")
        print(f"   Role: {user.role.value}")
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main():
    if len(sys.argv) < 4:
        print("Usage: python create_user.py <email> <password> <first_name> [role] [last_name]")
        print("\nExample:")
        print("  python create_user.py admin@example.com Admin1234!@xy Ada admin")
        print("  python create_user.py help@example.com Support1234!@ Sam support")
        print(f"\nRoles: {', '.join(r.value for r in UserRole)}")
        print("Password must be at least 12 chars with upper, lower, digit, and special char.")
        sys.exit(1)

    email, password, first_name = sys.argv[1:4]
    role_value = sys.argv[4] if len(sys.argv) > 4 else UserRole.CLIENT.value
    last_name = sys.argv[5] if len(sys.argv) > 5 else None

    try:
        role = UserRole(role_value)
    except ValueError:
        print(f"Invalid role '{role_value}'. Must be one of: {', '.join(r.value for r in UserRole)}")
        sys.exit(1)

    create_user(email=email, password=password, first_name=first_name, role=role, last_name=last_name)


if __name__ == "__main__":
    main()
