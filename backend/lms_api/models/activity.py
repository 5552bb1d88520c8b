"""
Activity and ActivityType. An activity's owning course is reached through its module.
"""
from datetime import datetime
from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms_api.database import Base
from lms_api.models.types import UtcDateTime


class ActivityType(Base):
    __tablename__ = "activity_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    activities = relationship("Activity", back_populates="type")


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    type_id: Mapped[int] = mapped_column(Integer, ForeignKey("activity_types.id"), nullable=False)
    start_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    module_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True
    )

    type = relationship("ActivityType", back_populates="activities")
    module = relationship("Module", back_populates="activities")
