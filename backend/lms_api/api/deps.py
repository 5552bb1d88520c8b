"""
Shared dependencies: caller resolution from the Bearer token, service factories, and enforce() which turns
an access-policy Decision into 401/403/404.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from lms_api.database import get_db
from lms_api.models import RoleName, User
from lms_api.services.access_policy import Caller, Decision, Verdict
from lms_api.services.auth import AuthService
from lms_api.services.credential_store import CredentialStore
from lms_api.services.tokens import CLAIM_ID, CLAIM_ROLE, decode_access_token

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_auth_service(store: CredentialStore = Depends(get_credential_store)) -> AuthService:
    return AuthService(store)


def _role_claims(payload: dict) -> frozenset[RoleName]:
    raw = payload.get(CLAIM_ROLE) or []
    if isinstance(raw, str):
        raw = [raw]
    return frozenset(role for role in (RoleName.parse(r) for r in raw) if role is not None)


def _resolve(credentials, store: CredentialStore) -> tuple[User | None, dict | None]:
    if not credentials or not (getattr(credentials, "credentials", None) or "").strip():
        logger.debug("Auth failed: no Bearer token in request")
        return None, None
    payload = decode_access_token(credentials.credentials)
    if not payload or CLAIM_ID not in payload:
        logger.debug("Auth failed: invalid or expired token")
        return None, None
    user = store.find_by_id(payload[CLAIM_ID])
    if user is None:
        logger.debug("Auth failed: token subject no longer exists")
        return None, None
    return user, payload


def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store: CredentialStore = Depends(get_credential_store),
) -> Caller | None:
    """Caller for the access policy, or None when unauthenticated (the policy answers 401)."""
    user, payload = _resolve(credentials, store)
    if user is None:
        return None
    # Identity and roles from the token; enrollment read fresh from the users row.
    return Caller(user_id=user.id, roles=_role_claims(payload), course_id=user.course_id)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store: CredentialStore = Depends(get_credential_store),
) -> User:
    """Require valid Bearer token; return User or 401."""
    user, _ = _resolve(credentials, store)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Send header: Authorization: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def enforce(decision: Decision, resource: str, resource_id=None) -> Decision:
    """Raise the HTTP error matching a denying Decision; return allowing Decisions unchanged."""
    if decision.allowed:
        return decision
    if decision.verdict == Verdict.UNAUTHENTICATED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Send header: Authorization: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if decision.verdict == Verdict.NOT_FOUND:
        what = f"{resource} with ID {resource_id}" if resource_id is not None else resource
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} was not found.")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"You do not have access to this {resource.lower()}.",
    )
