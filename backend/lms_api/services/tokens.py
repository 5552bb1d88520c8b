"""
Access/refresh token lifecycle.

TokenIssuer signs an HS256 JWT (subject name, subject id, audience, issuer, one role claim per membership)
and manages the opaque refresh token stored on the user. RefreshCoordinator exchanges an expired access
token plus the current refresh token for a new pair, rotating the refresh token exactly once.
"""
import base64
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from lms_api.config import require_jwt_settings
from lms_api.errors import InvalidRefreshRequestError, InvalidTokenError, RefreshConflictError
from lms_api.models import User
from lms_api.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "HS256"
REFRESH_TOKEN_BYTES = 32
REFRESH_TOKEN_LIFETIME = timedelta(days=2)

# Claim names
CLAIM_NAME = "sub"
CLAIM_ID = "nameid"
CLAIM_ROLE = "role"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_refresh_token() -> str:
    """32 bytes from the OS CSPRNG, base64-encoded."""
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def decode_access_token(token: str) -> dict | None:
    """Fully validate a bearer token (signature, issuer, audience, expiry). None if invalid."""
    cfg = require_jwt_settings()
    try:
        return jwt.decode(
            token,
            cfg.secret_key,
            algorithms=[SIGNING_ALGORITHM],
            audience=cfg.jwt_audience,
            issuer=cfg.jwt_issuer,
        )
    except JWTError:
        return None


def read_expired_access_token(token: str) -> dict:
    """
    Validate signature, issuer and audience but not lifetime; the token is expected to be expired.
    Raises InvalidTokenError for anything else, including a header algorithm other than HS256.
    """
    cfg = require_jwt_settings()
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise InvalidTokenError("Malformed access token") from e
    if (header.get("alg") or "").upper() != SIGNING_ALGORITHM:
        raise InvalidTokenError("Unexpected signing algorithm")
    try:
        return jwt.decode(
            token,
            cfg.secret_key,
            algorithms=[SIGNING_ALGORITHM],
            audience=cfg.jwt_audience,
            issuer=cfg.jwt_issuer,
            options={"verify_exp": False},
        )
    except JWTError as e:
        raise InvalidTokenError("Access token failed validation") from e


class TokenIssuer:
    def __init__(self, store: CredentialStore):
        self.store = store

    def issue(self, user: User | None, extend_expiry: bool) -> TokenPair:
        """
        Sign a new access token for user.

        extend_expiry=True rotates the refresh token and moves its expiry to now + 2 days, persisting
        both before returning. extend_expiry=False reuses the stored refresh token unchanged (the
        caller has just rotated it), so rotation and extension always happen together.
        """
        if user is None:
            raise ValueError("user is required to issue a token")
        cfg = require_jwt_settings()
        now = utcnow()
        if extend_expiry:
            user.refresh_token = generate_refresh_token()
            user.refresh_token_expires_at = now + REFRESH_TOKEN_LIFETIME
            self.store.update_user(user)
        elif not user.refresh_token:
            raise ValueError("user has no refresh token; issue with extend_expiry=True")

        claims = {
            CLAIM_NAME: user.username,
            CLAIM_ID: user.id,
            "aud": cfg.jwt_audience,
            "iss": cfg.jwt_issuer,
            CLAIM_ROLE: [role.value for role in self.store.get_roles(user)],
            "iat": int(now.timestamp()),
            # JWT exp must be numeric (Unix timestamp), not datetime
            "exp": int((now + timedelta(minutes=cfg.jwt_expires_minutes)).timestamp()),
        }
        access_token = jwt.encode(claims, cfg.secret_key, algorithm=SIGNING_ALGORITHM)
        return TokenPair(access_token=access_token, refresh_token=user.refresh_token)


class RefreshCoordinator:
    def __init__(self, store: CredentialStore, issuer: TokenIssuer):
        self.store = store
        self.issuer = issuer

    def refresh(self, access_token: str, refresh_token: str) -> TokenPair:
        claims = read_expired_access_token(access_token)
        username = claims.get(CLAIM_NAME)
        user = self.store.find_by_name(username)
        now = utcnow()
        # One combined check so the response never tells which part failed.
        if (
            user is None
            or not refresh_token
            or not user.refresh_token
            or not secrets.compare_digest(user.refresh_token.encode("utf-8"), refresh_token.encode("utf-8"))
            or user.refresh_token_expires_at is None
            or user.refresh_token_expires_at <= now
        ):
            logger.info("Refresh rejected for subject %r", username)
            raise InvalidRefreshRequestError("The token pair has invalid values")

        rotated = self.store.rotate_refresh_token(
            user,
            expected=refresh_token,
            new_token=generate_refresh_token(),
            expires_at=now + REFRESH_TOKEN_LIFETIME,
        )
        if not rotated:
            logger.warning("Refresh conflict for user %s: token rotated concurrently", user.id)
            raise RefreshConflictError("Refresh token was rotated concurrently")
        return self.issuer.issue(user, extend_expiry=False)
