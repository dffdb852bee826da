"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable. Update payloads are
"patches": only fields present in the request body are considered, see
`model_dump(exclude_unset=True)` in the controllers.
"""

from datetime import date
from pydantic import BaseModel, Field
from typing import Any, Optional

# row ids are signed 64-bit integers in the database
MIN_ID = -(2 ** 63)
MAX_ID = 2 ** 63 - 1


class Envelope(BaseModel):
    """Uniform response wrapper returned by every API endpoint."""
    success: bool
    message: str
    data: Optional[Any] = None


class SubjectIn(BaseModel):
    """Payload for creating a subject."""
    name: str = Field(min_length=1)
    description: str = ""
    color: str = ""


class SubjectPatch(BaseModel):
    """Partial subject update; empty strings leave the stored value alone."""
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class TopicIn(BaseModel):
    """Payload for creating a topic."""
    subject_id: int = Field(ge=MIN_ID, le=MAX_ID)
    name: str = Field(min_length=1)


class TopicPatch(BaseModel):
    """Partial topic update; flags are applied when present, even if false."""
    name: Optional[str] = None
    is_completed: Optional[bool] = None
    is_weak: Optional[bool] = None


class NoteIn(BaseModel):
    """Payload for creating a note."""
    subject_id: int = Field(ge=MIN_ID, le=MAX_ID)
    topic_id: Optional[int] = Field(default=None, ge=MIN_ID, le=MAX_ID)
    title: str = Field(min_length=1)
    content: str = ""


class NotePatch(BaseModel):
    """Note update.

    `content` and `topic_id` are always written (absent means empty/null);
    `title` only when non-empty.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    topic_id: Optional[int] = Field(default=None, ge=MIN_ID, le=MAX_ID)


class StudyPlanIn(BaseModel):
    """Payload for creating a study plan entry."""
    subject_id: int = Field(ge=MIN_ID, le=MAX_ID)
    study_date: date
    hours_planned: float = 0.0
    notes: str = ""


class StudyPlanPatch(BaseModel):
    """Partial study plan update."""
    hours_planned: Optional[float] = None
    hours_completed: Optional[float] = None
    notes: Optional[str] = None
