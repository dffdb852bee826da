"""Database engine and helpers.

This module builds the SQLModel/SQLAlchemy engine from `Settings`,
creates the schema, seeds the default subjects and provides the
request-scoped session dependency. The engine is owned by the
application object (`app.state.engine`); nothing here keeps a global
handle to it.
"""

import logging

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine, select

from . import models

logger = logging.getLogger("exam_prep.database")

DEFAULT_SUBJECTS = [
    ("Flutter", "Mobile app development with Flutter framework", "#02569B"),
    ("Research Methodology", "Research methods and academic writing", "#9C27B0"),
    ("Linux", "Linux operating system and administration", "#FCC624"),
    ("Oracle", "Oracle database management and SQL", "#F80000"),
    ("Microprocessor", "Microprocessor architecture and programming", "#00897B"),
]


def build_engine(database_url: str) -> Engine:
    """Create the engine for `database_url`.

    SQLite connections get `PRAGMA foreign_keys=ON` so cascading deletes
    behave the same way they do on PostgreSQL.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=False, connect_args={"check_same_thread": False})

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def create_db_and_tables(engine: Engine):
    """Create all tables if they do not exist yet."""
    SQLModel.metadata.create_all(engine)
    logger.info("database tables initialized")


def seed_subjects(engine: Engine) -> int:
    """Insert each default subject whose name is not already present.

    Returns the number of subjects added.
    """
    added = 0
    with Session(engine) as session:
        for name, description, color in DEFAULT_SUBJECTS:
            existing = session.exec(select(models.Subject.id).where(models.Subject.name == name)).first()
            if existing is not None:
                continue
            session.add(models.Subject(name=name, description=description, color=color))
            session.commit()
            logger.info("added subject: %s", name)
            added += 1
    return added


def get_session(request: Request):
    """Yield a database `Session` for FastAPI dependency injection.

    The session is bound to the engine stored on the application and is
    closed when the request scope finishes.
    """
    with Session(request.app.state.engine) as session:
        yield session
