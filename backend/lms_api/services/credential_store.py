"""
Credential store: users, password hashes and role memberships on top of a SQLAlchemy session.
Uses bcrypt directly (no passlib) to avoid passlib/bcrypt version conflicts.
Expected failures (duplicate username, weak password, unknown role) come back as OperationResult;
database errors propagate so callers never report success for a write that did not happen.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

import bcrypt
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms_api.models import Course, Role, RoleName, User, user_roles

logger = logging.getLogger(__name__)

# Bcrypt only reads the first 72 bytes; longer passwords are rejected, never truncated
BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a store write: succeeded, or failed with human-readable errors."""
    succeeded: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, *errors: str) -> "OperationResult":
        return cls(succeeded=False, errors=tuple(errors))

    @property
    def detail(self) -> str:
        return ", ".join(self.errors)


def _password_bytes(s: str) -> bytes | None:
    """UTF-8 bytes for bcrypt, or None when longer than BCRYPT_MAX_BYTES."""
    encoded = (s or "").encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return None
    return encoded


def hash_password(password: str) -> str:
    """Hash password for storage. Raises ValueError if password is None or over the bcrypt limit."""
    if password is None:
        raise ValueError("password is required")
    raw = _password_bytes(password)
    if raw is None:
        raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(raw, salt)
    return hashed.decode("utf-8")


def check_password(plain: str, hashed: str) -> bool:
    raw = _password_bytes(plain)
    if raw is None:
        # Stored passwords never exceed the limit, so a longer one cannot match
        return False
    try:
        return bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def password_policy_errors(password: str | None) -> list[str]:
    """Default password rules: length, digit, lower, upper, a non-alphanumeric character, bcrypt byte cap."""
    password = password or ""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        errors.append(f"Passwords must be at most {BCRYPT_MAX_BYTES} bytes.")
    if not any(c.isdigit() for c in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if not any(c.islower() for c in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(c.isupper() for c in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    if all(c.isalnum() for c in password):
        errors.append("Passwords must have at least one non alphanumeric character.")
    return errors


class CredentialStore:
    """Identity operations used by the auth core and the access policy."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_name(self, username: str | None) -> User | None:
        """Usernames are matched case-insensitively, so "alice" and "Alice" are one account."""
        if not username:
            return None
        return self.db.query(User).filter(func.lower(User.username) == username.lower()).first()

    def find_by_id(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def verify_password(self, user: User, password: str) -> bool:
        return check_password(password, user.password_hash)

    def create_user(self, user: User, password: str) -> OperationResult:
        """Validate, hash the password and insert. The user is committed on success."""
        errors = []
        if not (user.username or "").strip():
            errors.append("Username is required.")
        elif self.find_by_name(user.username):
            errors.append(f"Username '{user.username}' is already taken.")
        if not (user.email or "").strip():
            errors.append("Email is required.")
        elif self.db.query(User).filter(func.lower(User.email) == user.email.lower()).first():
            errors.append(f"Email '{user.email}' is already taken.")
        errors.extend(password_policy_errors(password))
        if user.course_id is not None and self.db.get(Course, user.course_id) is None:
            errors.append(f"Course with ID {user.course_id} does not exist.")
        if errors:
            return OperationResult.failed(*errors)

        user.password_hash = hash_password(password)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("create_user IntegrityError: %s", e)
            return OperationResult.failed("Username or email is already taken.")
        self.db.refresh(user)
        return OperationResult.success()

    def update_user(self, user: User) -> None:
        """Persist pending changes on user. Database errors propagate after rollback."""
        self.db.add(user)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

    def delete_user(self, user: User) -> OperationResult:
        self.db.delete(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("delete_user IntegrityError for %s: %s", user.id, e)
            return OperationResult.failed("User could not be deleted.")
        return OperationResult.success()

    def get_roles(self, user: User) -> list[RoleName]:
        """Current role memberships, always read from the database."""
        rows = (
            self.db.query(Role.name)
            .join(user_roles, user_roles.c.role_id == Role.id)
            .filter(user_roles.c.user_id == user.id)
            .order_by(Role.name)
            .all()
        )
        roles = []
        for (name,) in rows:
            role = RoleName.parse(name)
            if role is not None:
                roles.append(role)
        return roles

    def add_to_role(self, user: User, role: RoleName) -> OperationResult:
        role_row = self.db.query(Role).filter(Role.name == role.value).first()
        if role_row is None:
            return OperationResult.failed(f"Role '{role.value}' does not exist.")
        if role in self.get_roles(user):
            return OperationResult.failed(f"User already in role '{role.value}'.")
        self.db.execute(user_roles.insert().values(user_id=user.id, role_id=role_row.id))
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("add_to_role IntegrityError for %s: %s", user.id, e)
            return OperationResult.failed(f"Could not add user to role '{role.value}'.")
        return OperationResult.success()

    def ensure_roles(self) -> list[str]:
        """Create-if-absent for every RoleName. Returns the names that were created."""
        existing = {name for (name,) in self.db.query(Role.name).all()}
        created = [role.value for role in RoleName if role.value not in existing]
        for name in created:
            self.db.add(Role(name=name))
        if created:
            self.db.commit()
        return created

    def rotate_refresh_token(
        self, user: User, expected: str, new_token: str, expires_at: datetime
    ) -> bool:
        """
        Replace the refresh token only if the stored value still equals expected.
        Single conditional UPDATE; False means another request rotated it first.
        """
        result = self.db.execute(
            update(User)
            .where(User.id == user.id, User.refresh_token == expected)
            .values(refresh_token=new_token, refresh_token_expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            return False
        self.db.commit()
        self.db.refresh(user)
        return True
