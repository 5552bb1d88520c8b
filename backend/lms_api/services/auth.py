"""
Auth service: the single entry point the HTTP layer uses for registration, login and token refresh.
Stateless: validate_credentials returns the user, which the caller passes to issue_token.
"""
import logging

from lms_api.models import RoleName, User
from lms_api.schemas.auth import LoginRequest, RefreshRequest, RegistrationRequest
from lms_api.services.credential_store import CredentialStore, OperationResult
from lms_api.services.tokens import RefreshCoordinator, TokenIssuer, TokenPair

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: CredentialStore):
        self.store = store
        self.issuer = TokenIssuer(store)
        self.refresher = RefreshCoordinator(store, self.issuer)

    def register(self, data: RegistrationRequest) -> OperationResult:
        """Create the user and its single role; never leaves a user without a role."""
        if data is None:
            raise ValueError("registration request is required")
        role = RoleName.parse(data.role)
        if role is None:
            return OperationResult.failed(
                f"Invalid role: '{data.role}'. Only 'Student' or 'Teacher' roles are allowed."
            )

        user = User(
            username=data.username,
            email=data.email,
            first_name=data.first_name or "",
            last_name=data.last_name or "",
            course_id=data.course_id,
        )
        result = self.store.create_user(user, data.password)
        if not result.succeeded:
            logger.info("Registration of %r failed: %s", data.username, result.detail)
            return result

        try:
            role_result = self.store.add_to_role(user, role)
        except Exception:
            logger.exception("Role assignment raised for %r; deleting the new user", data.username)
            self._delete_unassigned(user)
            raise
        if not role_result.succeeded:
            logger.warning(
                "Role assignment failed for %r (%s); deleting the new user", data.username, role_result.detail
            )
            self._delete_unassigned(user)
            return role_result
        logger.info("Registered %r as %s", data.username, role.value)
        return OperationResult.success()

    def _delete_unassigned(self, user: User) -> None:
        """Compensating delete for a user whose role assignment failed. Raises if the user survives."""
        self.store.db.rollback()
        result = self.store.delete_user(user)
        if not result.succeeded:
            logger.error("Compensating delete failed for user %s: %s", user.id, result.detail)
            raise RuntimeError(f"User {user.id} was created without a role and could not be deleted")

    def validate_credentials(self, data: LoginRequest) -> User | None:
        """The user if username and password match, else None. Unknown names skip password verification."""
        if data is None:
            raise ValueError("login request is required")
        user = self.store.find_by_name(data.username)
        if user is None:
            return None
        if not self.store.verify_password(user, data.password):
            return None
        return user

    def issue_token(self, user: User | None, extend_expiry: bool) -> TokenPair:
        return self.issuer.issue(user, extend_expiry=extend_expiry)

    def refresh_token(self, data: RefreshRequest) -> TokenPair:
        return self.refresher.refresh(data.access_token, data.refresh_token)
