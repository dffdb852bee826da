"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (subjects,
topics, notes, study plan). Repositories return SQLModel objects or
plain row mappings for the aggregate queries, and perform
commits/refreshes where appropriate.
"""

from datetime import date
from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import case, func, update
from . import models


def _topic_counts():
    """Aggregate columns counting all/completed/weak topics of a subject."""
    return (
        func.count(models.Topic.id).label("total_topics"),
        func.coalesce(func.sum(case((models.Topic.is_completed, 1), else_=0)), 0).label("completed_topics"),
        func.coalesce(func.sum(case((models.Topic.is_weak, 1), else_=0)), 0).label("weak_topics"),
    )


class SubjectRepository:
    """CRUD operations for `Subject` objects plus the topic progress join."""
    def __init__(self, session: Session):
        self.session = session

    def _with_progress(self):
        stmt = (
            select(models.Subject, *_topic_counts())
            .join(models.Topic, models.Topic.subject_id == models.Subject.id, isouter=True)
            .group_by(models.Subject.id)
        )
        return stmt

    def list_with_progress(self) -> list:
        """Return `(subject, total, completed, weak)` rows ordered by id."""
        stmt = self._with_progress().order_by(models.Subject.id)
        return self.session.exec(stmt).all()

    def get_with_progress(self, subject_id: int):
        """Return a single `(subject, total, completed, weak)` row or `None`."""
        stmt = self._with_progress().where(models.Subject.id == subject_id)
        return self.session.exec(stmt).first()

    def count(self) -> int:
        return self.session.exec(select(func.count(models.Subject.id))).one()

    def get(self, subject_id: int) -> Optional[models.Subject]:
        """Get a `Subject` by primary key."""
        return self.session.get(models.Subject, subject_id)

    def create(self, subject: models.Subject) -> models.Subject:
        """Persist a new subject and return the managed instance."""
        self.session.add(subject)
        self.session.commit()
        self.session.refresh(subject)
        return subject

    def update(self, subject: models.Subject, patch: dict) -> models.Subject:
        subject.sqlmodel_update(patch)
        self.session.add(subject)
        self.session.commit()
        self.session.refresh(subject)
        return subject

    def delete(self, subject: models.Subject):
        """Delete the subject; the database cascades to its children."""
        self.session.delete(subject)
        self.session.commit()


class TopicRepository:
    """CRUD operations for `Topic` records."""
    def __init__(self, session: Session):
        self.session = session

    def list_by_subject(self, subject_id: int) -> List[models.Topic]:
        """Return all topics of a subject ordered by id."""
        stmt = select(models.Topic).where(models.Topic.subject_id == subject_id).order_by(models.Topic.id)
        return self.session.exec(stmt).all()

    def totals(self):
        """Return `(total, completed, weak)` counted across all subjects."""
        return self.session.exec(select(*_topic_counts())).one()

    def get(self, topic_id: int) -> Optional[models.Topic]:
        return self.session.get(models.Topic, topic_id)

    def toggle(self, topic_id: int, flag: str) -> bool:
        """Flip a boolean column in a single UPDATE; False if no row matched."""
        column = getattr(models.Topic, flag)
        stmt = (
            update(models.Topic)
            .where(models.Topic.id == topic_id)
            .values({flag: ~column})
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount > 0

    def save(self, topic: models.Topic) -> models.Topic:
        """Insert or update `topic` and return the refreshed instance."""
        self.session.add(topic)
        self.session.commit()
        self.session.refresh(topic)
        return topic

    def delete(self, topic: models.Topic):
        self.session.delete(topic)
        self.session.commit()


class NoteRepository:
    """CRUD operations for `Note` records."""
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[models.Note]:
        """Return every note, most recently updated first."""
        stmt = select(models.Note).order_by(models.Note.updated_at.desc(), models.Note.id.desc())
        return self.session.exec(stmt).all()

    def list_by_subject(self, subject_id: int) -> List[models.Note]:
        stmt = (
            select(models.Note)
            .where(models.Note.subject_id == subject_id)
            .order_by(models.Note.updated_at.desc(), models.Note.id.desc())
        )
        return self.session.exec(stmt).all()

    def get(self, note_id: int) -> Optional[models.Note]:
        return self.session.get(models.Note, note_id)

    def save(self, note: models.Note) -> models.Note:
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def delete(self, note: models.Note):
        self.session.delete(note)
        self.session.commit()


class StudyPlanRepository:
    """CRUD operations for `StudyPlan` entries joined with their subject."""
    def __init__(self, session: Session):
        self.session = session

    def _with_subject(self):
        return select(models.StudyPlan, models.Subject.name, models.Subject.color).join(
            models.Subject, models.StudyPlan.subject_id == models.Subject.id
        )

    def list_all(self) -> list:
        """Return `(plan, subject_name, subject_color)` rows, latest date first."""
        stmt = self._with_subject().order_by(models.StudyPlan.study_date.desc(), models.StudyPlan.id)
        return self.session.exec(stmt).all()

    def list_for_date(self, study_date: date) -> list:
        """Return `(plan, subject_name, subject_color)` rows for one day ordered by id."""
        stmt = self._with_subject().where(models.StudyPlan.study_date == study_date).order_by(models.StudyPlan.id)
        return self.session.exec(stmt).all()

    def get(self, plan_id: int) -> Optional[models.StudyPlan]:
        return self.session.get(models.StudyPlan, plan_id)

    def save(self, plan: models.StudyPlan) -> models.StudyPlan:
        self.session.add(plan)
        self.session.commit()
        self.session.refresh(plan)
        return plan

    def delete(self, plan: models.StudyPlan):
        self.session.delete(plan)
        self.session.commit()
