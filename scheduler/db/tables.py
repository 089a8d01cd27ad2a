from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scheduler.db.database import Base


class Level(Base):
    """Level/stage pair a class belongs to (0 = preparatory, 1-3 = levels)"""
    __tablename__ = "levels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    level: Mapped[int] = mapped_column(Integer)
    stage: Mapped[int] = mapped_column(Integer)


class SchoolClass(Base):
    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    level_id: Mapped[Optional[str]] = mapped_column(ForeignKey("levels.id"), nullable=True)
    location: Mapped[str] = mapped_column(String(255))

    level: Mapped[Optional["Level"]] = relationship(lazy="joined")


class User(Base):
    """Directory user; only teachers and supervisors matter to the scheduler"""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(32), default="teacher")
    subject: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)


class TeacherSubjectAssignment(Base):
    """Teacher per subject for one class (at most one row per class)"""
    __tablename__ = "teacher_subject_assignments"

    class_id: Mapped[str] = mapped_column(ForeignKey("classes.id"), primary_key=True)
    taks_teacher_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    al7an_teacher_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    coptic_teacher_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
