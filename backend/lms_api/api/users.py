"""
Users API: paged list and delete for Teachers, profile read for Teachers or the user themself.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms_api.api.deps import enforce, get_credential_store, get_current_caller
from lms_api.api.paging import PageParams, apply_filter, apply_sort, paginate
from lms_api.database import get_db
from lms_api.models import User
from lms_api.schemas.course import UserListResponse, UserResponse
from lms_api.services import access_policy
from lms_api.services.access_policy import Caller
from lms_api.services.credential_store import CredentialStore

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)

_SORT_COLUMNS = {"name": User.first_name, "lastname": User.last_name, "email": User.email, "username": User.username}


@router.get("", response_model=UserListResponse)
def list_users(
    page: PageParams = Depends(),
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    enforce(access_policy.can_list(caller, teacher_only=True), "User")
    full_name = User.first_name + " " + User.last_name
    query = apply_filter(db.query(User), page.filter, full_name, User.email, User.username)
    query = apply_sort(query, page.sort_by, _SORT_COLUMNS, User.id)
    total, users = paginate(query, page)
    return UserListResponse(
        total=total,
        page_number=page.page_number,
        page_size=page.page_size,
        items=[UserResponse.model_validate(u) for u in users],
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    caller: Caller | None = Depends(get_current_caller),
    store: CredentialStore = Depends(get_credential_store),
):
    user = store.find_by_id(user_id)
    enforce(access_policy.can_read_user(caller, user_id, exists=user is not None), "User", user_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_user(
    user_id: str,
    caller: Caller | None = Depends(get_current_caller),
    store: CredentialStore = Depends(get_credential_store),
):
    user = store.find_by_id(user_id)
    enforce(access_policy.can_mutate(caller, exists=user is not None), "User", user_id)
    result = store.delete_user(user)
    if not result.succeeded:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.detail)
    logger.info("User %s deleted by %s", user_id, caller.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
