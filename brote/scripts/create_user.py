"""
Create a user (e.g. first admin). Run from project root:
  python -m brote.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m brote.scripts.create_user admin admin@brote.org your-secure-password admin
"""
import argparse
import logging
import sys

from brote.core.database import SessionLocal
from brote.core.errors import ServiceError
from brote.services.audit import AuditLog
from brote.services.users import USER_ROLES, register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Brote user from the command line.")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("email", help="E-mail address used for password recovery")
    parser.add_argument("password", help="Password (1-128 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(USER_ROLES))
    parser.add_argument("--real-name", default="", help="Display name")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    db = SessionLocal()
    try:
        user = register_user(
            db,
            AuditLog(SessionLocal),
            username=args.username,
            email=args.email,
            password=args.password,
            real_name=args.real_name,
            role=args.role,
        )
    except ServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
