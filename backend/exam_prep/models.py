"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Foreign keys carry database-level `ON DELETE` rules so that removing a
subject removes everything attached to it, and removing a topic only
detaches the notes that referenced it.
"""

from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date, timezone

DEFAULT_COLOR = "#3498db"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subject(SQLModel, table=True):
    """A course or domain of study.

    `color` is a 7 character hex string used by clients to tint the subject.
    """
    __tablename__ = "subjects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, nullable=False)
    description: str = ""
    color: str = Field(default=DEFAULT_COLOR, max_length=7)
    created_at: datetime = Field(default_factory=_utcnow)


class Topic(SQLModel, table=True):
    """A unit of knowledge within a subject."""
    __tablename__ = "topics"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subjects.id", ondelete="CASCADE", index=True)
    name: str = Field(max_length=200, nullable=False)
    is_completed: bool = False
    is_weak: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class Note(SQLModel, table=True):
    """Free-text note attached to a subject and optionally to a topic."""
    __tablename__ = "notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subjects.id", ondelete="CASCADE", index=True)
    topic_id: Optional[int] = Field(default=None, foreign_key="topics.id", ondelete="SET NULL")
    title: str = Field(max_length=200, nullable=False)
    content: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class StudyPlan(SQLModel, table=True):
    """A per-date allocation of study hours for a subject.

    `hours_planned` and `hours_completed` are stored with one fractional
    digit.
    """
    __tablename__ = "study_plan"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subjects.id", ondelete="CASCADE", index=True)
    study_date: date = Field(index=True)
    hours_planned: float = 1.0
    hours_completed: float = 0.0
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
