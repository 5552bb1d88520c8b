#!/usr/bin/env python3
"""
Pre-push / production readiness checks.
Run from backend dir with project venv active: python scripts/pre_push_checks.py
Needs SECRET_KEY, JWT_ISSUER and JWT_AUDIENCE in env or backend/.env.
"""
import sys
from pathlib import Path

BACKEND = Path(__file__).resolve().parent.parent
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def check_imports():
    from lms_api.main import app  # noqa: F401
    from lms_api.services import tokens
    assert tokens.SIGNING_ALGORITHM == "HS256"
    assert tokens.REFRESH_TOKEN_BYTES == 32
    return "imports"


def check_jwt_settings():
    from lms_api.config import require_jwt_settings
    require_jwt_settings()
    return "jwt_settings"


def check_init_db():
    from lms_api.database import init_sqlite_db
    init_sqlite_db()
    return "init_sqlite_db"


def check_roles():
    from lms_api.database import SessionLocal
    from lms_api.models import RoleName
    from lms_api.models.role import Role
    db = SessionLocal()
    try:
        names = {name for (name,) in db.query(Role.name).all()}
    finally:
        db.close()
    missing = {r.value for r in RoleName} - names
    assert not missing, f"missing roles: {', '.join(sorted(missing))}"
    return "roles"


def check_refresh_token_format():
    import base64
    from lms_api.services.tokens import generate_refresh_token
    a, b = generate_refresh_token(), generate_refresh_token()
    assert a != b
    assert len(base64.b64decode(a)) == 32
    return "refresh_token_format"


def main():
    checks = [check_imports, check_jwt_settings, check_init_db, check_roles, check_refresh_token_format]
    for fn in checks:
        try:
            name = fn()
            print(f"OK {name}")
        except Exception as e:
            print(f"FAIL {fn.__name__}: {e}")
            return 1
    print("All pre-push checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
