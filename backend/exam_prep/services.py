"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they validate the few rules the API
enforces, build patches for partial updates and shape rows into plain
dictionaries ready to be wrapped in a response envelope.

Errors are reported with `ValueError` (bad input) and `NotFoundError`
(no matching row); controllers map those to HTTP status codes.
"""

from datetime import date, datetime, timezone
from typing import List, Optional
from sqlmodel import Session
from . import models, repositories
from .config import DEFAULT_EXAM_DATE


class NotFoundError(LookupError):
    """Raised when an identifier has no matching row."""


def percentage(part: int, total: int) -> float:
    """Return `part / total * 100`, or 0.0 when `total` is zero."""
    if total <= 0:
        return 0.0
    return float(part) / float(total) * 100


def parse_exam_date(raw: Optional[str]) -> date:
    """Parse a `YYYY-MM-DD` exam date, falling back to the default date."""
    try:
        return datetime.strptime((raw or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        return datetime.strptime(DEFAULT_EXAM_DATE, "%Y-%m-%d").date()


def days_until_exam(exam_date: date, now: Optional[datetime] = None) -> int:
    """Whole days from `now` until midnight of `exam_date`, never negative."""
    if now is None:
        now = datetime.now()
    exam_start = datetime.combine(exam_date, datetime.min.time())
    days = int((exam_start - now).total_seconds() // 86400)
    return max(days, 0)


def _progress_row(subject: models.Subject, total, completed, weak) -> dict:
    return {
        'id': subject.id,
        'name': subject.name,
        'color': subject.color,
        'total_topics': int(total),
        'completed_topics': int(completed),
        'weak_topics': int(weak),
        'progress': percentage(int(completed), int(total)),
    }


def _plan_row(plan: models.StudyPlan, subject_name: str, subject_color: str) -> dict:
    return {
        'id': plan.id,
        'subject_id': plan.subject_id,
        'subject_name': subject_name,
        'subject_color': subject_color,
        'study_date': plan.study_date,
        'hours_planned': plan.hours_planned,
        'hours_completed': plan.hours_completed,
        'notes': plan.notes or '',
        'created_at': plan.created_at,
    }


class SubjectService:
    """Subject CRUD with per-subject topic progress."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.SubjectRepository(session)

    def _shape(self, row) -> dict:
        subject, total, completed, weak = row
        out = _progress_row(subject, total, completed, weak)
        out['description'] = subject.description or ''
        out['created_at'] = subject.created_at
        return out

    def list(self) -> List[dict]:
        return [self._shape(row) for row in self.repo.list_with_progress()]

    def get(self, subject_id: int) -> dict:
        row = self.repo.get_with_progress(subject_id)
        if row is None:
            raise NotFoundError("Subject not found")
        return self._shape(row)

    def create(self, name: str, description: str = "", color: str = "") -> models.Subject:
        """Create a subject, applying the default color when none is given."""
        if not name:
            raise ValueError("name is required")
        s = models.Subject(name=name, description=description or "", color=color or models.DEFAULT_COLOR)
        return self.repo.create(s)

    def update(self, subject_id: int, patch: dict) -> models.Subject:
        """Replace name/description/color only with non-empty values."""
        subject = self.repo.get(subject_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        changes = {k: v for k, v in patch.items() if k in ('name', 'description', 'color') and v}
        return self.repo.update(subject, changes)

    def delete(self, subject_id: int):
        subject = self.repo.get(subject_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        self.repo.delete(subject)


class TopicService:
    """Topic CRUD and flag toggles."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.TopicRepository(session)

    def list_by_subject(self, subject_id: int) -> List[models.Topic]:
        return self.repo.list_by_subject(subject_id)

    def create(self, subject_id: int, name: str) -> models.Topic:
        if not name:
            raise ValueError("name is required")
        return self.repo.save(models.Topic(subject_id=subject_id, name=name))

    def update(self, topic_id: int, patch: dict) -> models.Topic:
        """Apply the supplied fields; at least one must be present.

        `name` counts only when non-empty, the flags whenever they are
        present in the request (including `false`).
        """
        changes = {}
        if patch.get('name'):
            changes['name'] = patch['name']
        for flag in ('is_completed', 'is_weak'):
            if patch.get(flag) is not None:
                changes[flag] = patch[flag]
        if not changes:
            raise ValueError("No fields to update")
        topic = self.repo.get(topic_id)
        if topic is None:
            raise NotFoundError("Topic not found")
        topic.sqlmodel_update(changes)
        return self.repo.save(topic)

    def toggle(self, topic_id: int, flag: str):
        """Flip `is_completed` or `is_weak` in place."""
        if not self.repo.toggle(topic_id, flag):
            raise NotFoundError("Topic not found")

    def delete(self, topic_id: int):
        topic = self.repo.get(topic_id)
        if topic is None:
            raise NotFoundError("Topic not found")
        self.repo.delete(topic)


class NoteService:
    """Note CRUD. Title is kept unless a non-empty one is supplied; content
    and topic are always overwritten."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.NoteRepository(session)

    def list_all(self) -> List[models.Note]:
        return self.repo.list_all()

    def list_by_subject(self, subject_id: int) -> List[models.Note]:
        return self.repo.list_by_subject(subject_id)

    def create(self, subject_id: int, title: str, content: str = "", topic_id: Optional[int] = None) -> models.Note:
        if not title:
            raise ValueError("title is required")
        note = models.Note(subject_id=subject_id, topic_id=topic_id, title=title, content=content or "")
        return self.repo.save(note)

    def update(self, note_id: int, title: Optional[str], content: Optional[str], topic_id: Optional[int]) -> models.Note:
        note = self.repo.get(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        if title:
            note.title = title
        note.content = content or ""
        note.topic_id = topic_id
        note.updated_at = datetime.now(timezone.utc)
        return self.repo.save(note)

    def delete(self, note_id: int):
        note = self.repo.get(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        self.repo.delete(note)


class StudyPlanService:
    """Daily study plan entries."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.StudyPlanRepository(session)

    def list_all(self) -> List[dict]:
        return [_plan_row(*row) for row in self.repo.list_all()]

    def list_today(self, today: Optional[date] = None) -> List[dict]:
        """Entries for the current local calendar day."""
        return [_plan_row(*row) for row in self.repo.list_for_date(today or date.today())]

    def create(self, subject_id: int, study_date: date, hours_planned: float = 0.0, notes: str = "") -> models.StudyPlan:
        if study_date is None:
            raise ValueError("study_date is required")
        # zero means "not supplied"
        if not hours_planned:
            hours_planned = 1.0
        plan = models.StudyPlan(
            subject_id=subject_id,
            study_date=study_date,
            hours_planned=round(hours_planned, 1),
            notes=notes or "",
        )
        return self.repo.save(plan)

    def update(self, plan_id: int, patch: dict) -> models.StudyPlan:
        """Update only the supplied hours/notes; reject an empty patch."""
        changes = {}
        for key in ('hours_planned', 'hours_completed'):
            if patch.get(key) is not None:
                changes[key] = round(patch[key], 1)
        if patch.get('notes'):
            changes['notes'] = patch['notes']
        if not changes:
            raise ValueError("No fields to update")
        plan = self.repo.get(plan_id)
        if plan is None:
            raise NotFoundError("Study plan not found")
        plan.sqlmodel_update(changes)
        return self.repo.save(plan)

    def delete(self, plan_id: int):
        plan = self.repo.get(plan_id)
        if plan is None:
            raise NotFoundError("Study plan not found")
        self.repo.delete(plan)


class DashboardService:
    """Compute the dashboard and per-subject progress views.

    Everything here is read-only: a per-subject join over topics, three
    topic counts across all subjects, and today's plan entries.
    """
    def __init__(self, session: Session, exam_date: str = DEFAULT_EXAM_DATE):
        self.session = session
        self.exam_date = exam_date
        self.subject_repo = repositories.SubjectRepository(session)
        self.topic_repo = repositories.TopicRepository(session)
        self.plan_repo = repositories.StudyPlanRepository(session)

    def subject_progress(self) -> List[dict]:
        return [_progress_row(*row) for row in self.subject_repo.list_with_progress()]

    def todays_plan(self, today: Optional[date] = None) -> List[dict]:
        out = []
        for plan, name, color in self.plan_repo.list_for_date(today or date.today()):
            out.append({
                'subject_id': plan.subject_id,
                'subject_name': name,
                'subject_color': color,
                'hours_planned': plan.hours_planned,
                'hours_completed': plan.hours_completed,
            })
        return out

    def dashboard(self, now: Optional[datetime] = None) -> dict:
        """Return the combined dashboard payload."""
        if now is None:
            now = datetime.now()
        total, completed, weak = self.topic_repo.totals()
        total, completed, weak = int(total or 0), int(completed or 0), int(weak or 0)
        return {
            'days_until_exam': days_until_exam(parse_exam_date(self.exam_date), now),
            'exam_date': self.exam_date,
            'total_subjects': self.subject_repo.count(),
            'total_topics': total,
            'completed_topics': completed,
            'weak_topics': weak,
            'overall_progress': percentage(completed, total),
            'todays_plan': self.todays_plan(now.date()),
            'subject_progress': self.subject_progress(),
        }
