"""
Course: top of the content hierarchy. Users are enrolled through users.course_id.
"""
from datetime import datetime
from sqlalchemy import String, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_api.database import Base
from lms_api.models.types import UtcDateTime


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)

    users = relationship("User", back_populates="course")
    modules = relationship("Module", back_populates="course", cascade="all, delete-orphan")
