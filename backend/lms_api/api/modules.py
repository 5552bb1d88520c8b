"""
Modules API: paged list (Students see their own course's modules), get by id with activities,
create/update/delete (Teacher only).
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms_api.api.deps import enforce, get_current_caller
from lms_api.api.paging import PageParams, apply_filter, apply_sort, paginate
from lms_api.database import get_db
from lms_api.models import Course, Module
from lms_api.schemas.course import (
    ActivityResponse,
    ModuleDetailResponse,
    ModuleListResponse,
    ModuleResponse,
    ModuleWrite,
)
from lms_api.services import access_policy
from lms_api.services.access_policy import Caller

router = APIRouter(prefix="/api/modules", tags=["modules"])

_SORT_COLUMNS = {"name": Module.name, "courseid": Module.course_id, "startdate": Module.start_date}


def _module_to_detail(m: Module) -> ModuleDetailResponse:
    return ModuleDetailResponse(
        id=m.id,
        name=m.name,
        description=m.description or "",
        start_date=m.start_date,
        end_date=m.end_date,
        course_id=m.course_id,
        activities=[ActivityResponse.model_validate(a) for a in sorted(m.activities, key=lambda a: a.start_date)],
    )


def _require_course(db: Session, course_id: int) -> None:
    if db.get(Course, course_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Course with ID {course_id} does not exist.",
        )


@router.get("", response_model=ModuleListResponse)
def list_modules(
    page: PageParams = Depends(),
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    decision = enforce(access_policy.can_list(caller), "Module")
    query = db.query(Module)
    if decision.course_id is not None:
        query = query.filter(Module.course_id == decision.course_id)
    query = apply_filter(query, page.filter, Module.name, Module.description)
    query = apply_sort(query, page.sort_by, _SORT_COLUMNS, Module.id)
    total, modules = paginate(query, page)
    return ModuleListResponse(
        total=total,
        page_number=page.page_number,
        page_size=page.page_size,
        items=[ModuleResponse.model_validate(m) for m in modules],
    )


@router.get("/{module_id}", response_model=ModuleDetailResponse)
def get_module(
    module_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    module = db.get(Module, module_id)
    enforce(
        access_policy.can_read(caller, module.course_id if module else None, exists=module is not None),
        "Module",
        module_id,
    )
    return _module_to_detail(module)


@router.post("", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
def create_module(
    data: ModuleWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    enforce(access_policy.can_mutate(caller), "Module")
    _require_course(db, data.course_id)
    module = Module(**data.model_dump())
    db.add(module)
    db.commit()
    db.refresh(module)
    return ModuleResponse.model_validate(module)


@router.put("/{module_id}", response_model=ModuleResponse)
def update_module(
    module_id: int,
    data: ModuleWrite,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    module = db.get(Module, module_id)
    enforce(access_policy.can_mutate(caller, exists=module is not None), "Module", module_id)
    _require_course(db, data.course_id)
    for field, value in data.model_dump().items():
        setattr(module, field, value)
    db.commit()
    db.refresh(module)
    return ModuleResponse.model_validate(module)


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_module(
    module_id: int,
    caller: Caller | None = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    module = db.get(Module, module_id)
    enforce(access_policy.can_mutate(caller, exists=module is not None), "Module", module_id)
    db.delete(module)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
