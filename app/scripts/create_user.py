"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [role] [--name NAME]
Example:
  python -m app.scripts.create_user admin@example.org your-secure-password admin --name "Board"
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory, session_scope
from app.core.security import PASSWORD_MAX_LEN
from app.schemas.auth import DEFAULT_ROLE, ROLE_VALUES
from app.services.auth import AuthFailure, build_auth_service


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a portal user (no registration UI).")
    parser.add_argument("email", help="Email address (stored lowercased)")
    parser.add_argument("password", help=f"Password (1-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=DEFAULT_ROLE, choices=sorted(ROLE_VALUES))
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args(argv)

    email = args.email.strip()
    if "@" not in email or len(email) > 255:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not args.password or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be 1-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    engine = build_engine(settings)
    try:
        with session_scope(build_session_factory(engine)) as db:
            result = build_auth_service(db, settings).create_user(
                email, args.password, role=args.role, name=args.name
            )
    finally:
        engine.dispose()
    if isinstance(result, AuthFailure):
        print(f"User '{email.lower()}' already exists.", file=sys.stderr)
        return 1
    print(f"Created user '{result.email}' with role '{result.role}' (id {result.id}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
