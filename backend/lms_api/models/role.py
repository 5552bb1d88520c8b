"""
Roles: closed set {Teacher, Student}. RoleName is used everywhere in code; the roles table
stores the same strings and is seeded by CredentialStore.ensure_roles / migration 001.
"""
import enum
from sqlalchemy import String, Integer, Column, ForeignKey, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_api.database import Base


class RoleName(str, enum.Enum):
    TEACHER = "Teacher"
    STUDENT = "Student"

    @classmethod
    def parse(cls, value: str | None) -> "RoleName | None":
        """Exact, case-sensitive match against the closed set; None for anything else."""
        for role in cls:
            if role.value == value:
                return role
        return None


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    users = relationship("User", secondary=user_roles, back_populates="roles")
