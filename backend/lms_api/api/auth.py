"""
Auth routes: register (Teacher | Student), login (access + refresh token), refresh, GET me.
Register, login and refresh are open to unauthenticated callers.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status

from lms_api.api.deps import get_auth_service, get_credential_store, get_current_user
from lms_api.models import User
from lms_api.schemas.auth import LoginRequest, MeResponse, RefreshRequest, RegistrationRequest, TokenResponse
from lms_api.services.auth import AuthService
from lms_api.services.credential_store import CredentialStore

router = APIRouter(prefix="/api/authentication", tags=["authentication"])
logger = logging.getLogger(__name__)

INVALID_LOGIN_DETAIL = "Invalid login attempt. Please check your credentials and try again."


@router.post("/register", status_code=status.HTTP_201_CREATED, response_class=Response)
def register(data: RegistrationRequest, auth: AuthService = Depends(get_auth_service)):
    """Register a new user with exactly one role."""
    result = auth.register(data)
    if not result.succeeded:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.detail)
    return Response(status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Login with username/password; returns access token and a fresh refresh token."""
    user = auth.validate_credentials(data)
    if user is None:
        logger.info("Login failed for %r", data.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_LOGIN_DETAIL)
    tokens = auth.issue_token(user, extend_expiry=True)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/refresh", response_model=TokenResponse)
def refresh(data: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    """Exchange an expired access token and the current refresh token for a new pair."""
    tokens = auth.refresh_token(data)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """Return current user with its roles."""
    return MeResponse(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        course_id=current_user.course_id,
        roles=[r.value for r in store.get_roles(current_user)],
    )
