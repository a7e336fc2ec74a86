"""Bootstrap the first admin account.

Usage (from ``backend/``)::

    python -m clubhub.seed_admin --name "College Admin" --email admin@college.edu

Run the migrations (``alembic upgrade head``) first.
"""
import argparse
import logging

from clubhub.config import settings
from clubhub.database import SessionLocal
from clubhub.models.user import User, UserRole
from clubhub.services import user_service

logger = logging.getLogger("clubhub.seed_admin")


def seed_admin(db, name: str, email: str) -> User:
    """Create the admin unless an account with ``email`` already exists."""
    existing = db.query(User).filter(User.email == email.strip().lower()).first()
    if existing:
        logger.info("Account %s already exists (%s); skipping", existing.email, existing.role.value)
        return existing
    return user_service.create_user(db, name=name, email=email, role=UserRole.admin)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create the initial ClubHub admin account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    db = SessionLocal()
    try:
        admin = seed_admin(db, args.name, args.email)
    finally:
        db.close()
    logger.info("Admin ready: %s (%s)", admin.email, admin.user_id)


if __name__ == "__main__":
    main()
