"""
Seed the two well-known local accounts. Safe to run repeatedly:
  python -m app.scripts.seed_test_users

  admin@croquet.nl  / admin123   (admin)
  member@croquet.nl / member123  (member)

Never run against a production database.
"""
import sys

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory, session_scope
from app.services.auth import AuthFailure, build_auth_service

TEST_USERS = (
    ("admin@croquet.nl", "admin123", "admin"),
    ("member@croquet.nl", "member123", "member"),
)


def seed(db: Session, settings: Settings) -> list[str]:
    """Create any missing test users; returns the emails that were created."""
    auth = build_auth_service(db, settings)
    created = []
    for email, password, role in TEST_USERS:
        result = auth.create_user(email, password, role=role)
        if not isinstance(result, AuthFailure):
            created.append(result.email)
    return created


def main() -> int:
    settings = get_settings()
    if settings.APP_ENV == "prod":
        print("Refusing to seed test users with APP_ENV=prod.", file=sys.stderr)
        return 1
    engine = build_engine(settings)
    try:
        with session_scope(build_session_factory(engine)) as db:
            created = seed(db, settings)
    finally:
        engine.dispose()
    for email in created:
        print(f"Created {email}")
    skipped = len(TEST_USERS) - len(created)
    if skipped:
        print(f"{skipped} test user(s) already existed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
