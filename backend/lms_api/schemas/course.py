"""
Course, module, activity and user schemas for the resource routers.
"""
from datetime import datetime

from pydantic import Field, model_validator

from lms_api.schemas.base import CamelModel


class ActivityTypeResponse(CamelModel):
    id: int
    name: str


class ActivityResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    details: str | None = None
    type_id: int
    type: ActivityTypeResponse | None = None
    start_date: datetime
    end_date: datetime
    module_id: int


class ActivityWrite(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    details: str | None = None
    type_id: int
    start_date: datetime
    end_date: datetime
    module_id: int

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class ModuleResponse(CamelModel):
    id: int
    name: str
    description: str
    start_date: datetime
    end_date: datetime
    course_id: int


class ModuleDetailResponse(ModuleResponse):
    activities: list[ActivityResponse] = []


class ModuleWrite(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    course_id: int
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class CourseResponse(CamelModel):
    id: int
    name: str
    description: str
    start_date: datetime
    modules: list[ModuleResponse] = []


class CourseWrite(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    start_date: datetime


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    course_id: int | None = None


class PagedResponse(CamelModel):
    total: int
    page_number: int
    page_size: int


class CourseListResponse(PagedResponse):
    items: list[CourseResponse]


class ModuleListResponse(PagedResponse):
    items: list[ModuleResponse]


class ActivityListResponse(PagedResponse):
    items: list[ActivityResponse]


class UserListResponse(PagedResponse):
    items: list[UserResponse]
