"""
Courses API: list (Teacher only), get by id, roster of enrolled users, create/update/delete (Teacher only).
Every handler resolves existence first, then asks access_policy.
"""
import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from lms_api.api.deps import enforce, get_current_caller
from lms_api.api.paging import PageParams, apply_filter, apply_sort, paginate
from lms_api.database import get_db
from lms_api.models import Course, User
from lms_api.schemas.course import (
    CourseListResponse,
    CourseResponse,
    CourseWrite,
    ModuleResponse,
    UserResponse,
)
from lms_api.services import access_policy
from lms_api.services.access_policy import Caller

router = APIRouter(prefix="/api/courses", tags=["courses"])
logger = logging.getLogger(__name__)

_SORT_COLUMNS = {"name": Course.name, "startdate": Course.start_date}


def _course_to_response(c: Course) -> CourseResponse:
    return CourseResponse(
        id=c.id,
        name=c.name,
        description=c.description or "",
        start_date=c.start_date,
        modules=[ModuleResponse.model_validate(m) for m in sorted(c.modules, key=lambda m: m.id)],
    )


def _user_to_response(u: User) -> UserResponse:
    return UserResponse.model_validate(u)


@router.get("", response_model=CourseListResponse)
def list_courses(
    page: PageParams = Depends(),
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Paged course list; Teacher only."""
    enforce(access_policy.can_list(caller, teacher_only=True), "Course")
    query = apply_filter(db.query(Course), page.filter, Course.name, Course.description)
    query = apply_sort(query, page.sort_by, _SORT_COLUMNS, Course.id)
    total, courses = paginate(query, page)
    return CourseListResponse(
        total=total,
        page_number=page.page_number,
        page_size=page.page_size,
        items=[_course_to_response(c) for c in courses],
    )


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Teachers read any course; Students only the course they are enrolled in."""
    course = db.get(Course, course_id)
    enforce(
        access_policy.can_read(caller, course.id if course else None, exists=course is not None),
        "Course",
        course_id,
    )
    return _course_to_response(course)


@router.get("/{course_id}/students", response_model=list[UserResponse])
def get_students_for_course(
    course_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Users enrolled in the course. A Student caller is left out of the list."""
    course = db.get(Course, course_id)
    decision = enforce(
        access_policy.can_read_roster(caller, course_id, exists=course is not None),
        "Course",
        course_id,
    )
    query = db.query(User).filter(User.course_id == course_id)
    if decision.exclude_user_id is not None:
        query = query.filter(User.id != decision.exclude_user_id)
    users = query.order_by(User.last_name, User.first_name, User.username).all()
    return [_user_to_response(u) for u in users]


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    enforce(access_policy.can_mutate(caller), "Course")
    course = Course(name=data.name, description=data.description, start_date=data.start_date)
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info("Course %s created by %s", course.id, caller.user_id)
    return _course_to_response(course)


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    data: CourseWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    course = db.get(Course, course_id)
    enforce(access_policy.can_mutate(caller, exists=course is not None), "Course", course_id)
    course.name = data.name
    course.description = data.description
    course.start_date = data.start_date
    db.commit()
    db.refresh(course)
    return _course_to_response(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_course(
    course_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Delete a course with its modules and activities; enrolled users are unenrolled."""
    course = db.get(Course, course_id)
    enforce(access_policy.can_mutate(caller, exists=course is not None), "Course", course_id)
    db.delete(course)
    db.commit()
    logger.info("Course %s deleted by %s", course_id, caller.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
