"""
Activities API. An activity's course is its module's course; Students are scoped through that join.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms_api.api.deps import enforce, get_current_caller
from lms_api.api.paging import PageParams, apply_filter, apply_sort, paginate
from lms_api.database import get_db
from lms_api.models import Activity, ActivityType, Module
from lms_api.schemas.course import ActivityListResponse, ActivityResponse, ActivityWrite
from lms_api.services import access_policy
from lms_api.services.access_policy import Caller

router = APIRouter(prefix="/api/activities", tags=["activities"])

_SORT_COLUMNS = {"name": Activity.name, "startdate": Activity.start_date, "moduleid": Activity.module_id}


def _check_references(db: Session, data: ActivityWrite) -> None:
    if db.get(Module, data.module_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Module with ID {data.module_id} does not exist.",
        )
    if db.get(ActivityType, data.type_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Activity type with ID {data.type_id} does not exist.",
        )


@router.get("", response_model=ActivityListResponse)
def list_activities(
    page: PageParams = Depends(),
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    decision = enforce(access_policy.can_list(caller), "Activity")
    query = db.query(Activity)
    if decision.course_id is not None:
        query = query.join(Module, Activity.module_id == Module.id).filter(Module.course_id == decision.course_id)
    query = apply_filter(query, page.filter, Activity.name, Activity.description)
    query = apply_sort(query, page.sort_by, _SORT_COLUMNS, Activity.id)
    total, activities = paginate(query, page)
    return ActivityListResponse(
        total=total,
        page_number=page.page_number,
        page_size=page.page_size,
        items=[ActivityResponse.model_validate(a) for a in activities],
    )


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(
    activity_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    activity = db.get(Activity, activity_id)
    course_id = activity.module.course_id if activity else None
    enforce(access_policy.can_read(caller, course_id, exists=activity is not None), "Activity", activity_id)
    return ActivityResponse.model_validate(activity)


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    data: ActivityWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    enforce(access_policy.can_mutate(caller), "Activity")
    _check_references(db, data)
    activity = Activity(**data.model_dump())
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return ActivityResponse.model_validate(activity)


@router.put("/{activity_id}", response_model=ActivityResponse)
def update_activity(
    activity_id: int,
    data: ActivityWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    activity = db.get(Activity, activity_id)
    enforce(access_policy.can_mutate(caller, exists=activity is not None), "Activity", activity_id)
    _check_references(db, data)
    for field, value in data.model_dump().items():
        setattr(activity, field, value)
    db.commit()
    db.refresh(activity)
    return ActivityResponse.model_validate(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_activity(
    activity_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    activity = db.get(Activity, activity_id)
    enforce(access_policy.can_mutate(caller, exists=activity is not None), "Activity", activity_id)
    db.delete(activity)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
