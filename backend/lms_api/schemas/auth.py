"""
Auth request/response schemas.
"""
from pydantic import EmailStr, field_validator

from lms_api.schemas.base import CamelModel
from lms_api.services.credential_store import BCRYPT_MAX_BYTES


def _bcrypt_limit(v: str) -> str:
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes (bcrypt limit)")
    return v


class RegistrationRequest(CamelModel):
    username: str
    email: EmailStr
    password: str
    first_name: str | None = None
    last_name: str | None = None
    course_id: int | None = None
    # Checked against the closed role set by AuthService.register, not here, so the 400 names the bad role
    role: str = "Student"

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _bcrypt_limit(v)


class LoginRequest(CamelModel):
    # Any length; an over-long password is just a failed login
    username: str
    password: str


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str


class RefreshRequest(CamelModel):
    """Previous (possibly expired) access token and the current refresh token."""
    access_token: str
    refresh_token: str


class MeResponse(CamelModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    course_id: int | None = None
    roles: list[str]
