"""
Script to grant (or revoke) manager rights by email.

Managers review proof submissions and edit participant boards. Accounts
listed in MANAGER_EMAILS are managers from signup; use this for everyone
else.

    python scripts/promote_manager.py someone@example.com
    python scripts/promote_manager.py someone@example.com --revoke
"""
import argparse
import os
import sys

# Add the parent directory to the path so we can import bingo modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bingo.auth.models import User  # noqa: E402
from bingo.db.base import SessionLocal  # noqa: E402
from bingo.progress.service import get_or_create_progress  # noqa: E402


def set_manager(email: str, value: bool = True) -> bool:
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()

        if not user:
            print(f"ERROR: No user with email {email}")
            print("Ask them to sign up first, then run this script.")
            return False

        user.is_manager = value
        db.commit()

        if not value:
            # back to participant: make sure there is a board to play on
            get_or_create_progress(db, user.id)

        state = "is now a manager" if value else "is no longer a manager"
        print(f"SUCCESS: {user.email} (ID: {user.id}) {state}.")
        return True

    except Exception as e:
        db.rollback()
        print(f"ERROR: Failed to update user: {str(e)}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Grant or revoke manager rights")
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true")
    args = parser.parse_args()

    if not set_manager(args.email, value=not args.revoke):
        sys.exit(1)
