"""
Module: belongs to one course; access is decided on course_id.
"""
from datetime import datetime
from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_api.database import Base
from lms_api.models.types import UtcDateTime


class Module(Base):
    __tablename__ = "modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    course = relationship("Course", back_populates="modules")
    activities = relationship("Activity", back_populates="module", cascade="all, delete-orphan")
