"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from lms_api.models.user import User
from lms_api.models.role import Role, RoleName, user_roles
from lms_api.models.course import Course
from lms_api.models.module import Module
from lms_api.models.activity import Activity, ActivityType

__all__ = ["User", "Role", "RoleName", "user_roles", "Course", "Module", "Activity", "ActivityType"]
