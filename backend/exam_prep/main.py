"""FastAPI application factory and HTTP controllers.

This module defines the HTTP endpoints of the exam preparation study
tracker. Controllers are intentionally thin: they accept requests,
delegate to services, and return the uniform JSON envelope.

Endpoints implemented (all under /api):
- GET /dashboard, GET /progress
- GET/POST /subjects, GET/PUT/DELETE /subjects/{id}
- GET /subjects/{id}/topics, GET /subjects/{id}/notes
- POST /topics, PUT /topics/{id}, PUT /topics/{id}/complete,
  PUT /topics/{id}/weak, DELETE /topics/{id}
- GET/POST /notes, PUT/DELETE /notes/{id}
- GET /study-plan, GET /study-plan/today, POST /study-plan,
  PUT/DELETE /study-plan/{id}
"""

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
import json
import logging
import time
import uuid
from typing import Annotated
from . import services
from .config import Settings
from .database import build_engine, create_db_and_tables, get_session, seed_subjects
from .responses import error, success
from .schemas import MAX_ID, MIN_ID, NoteIn, NotePatch, StudyPlanIn, StudyPlanPatch, SubjectIn, SubjectPatch, TopicIn, TopicPatch

logger = logging.getLogger("exam_prep.api")

api = APIRouter(prefix="/api")

# ids must fit a signed 64-bit column
RowId = Annotated[int, Path(ge=MIN_ID, le=MAX_ID)]


def _call(fn, *args, **kwargs):
    """Run a service call, translating service errors into HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except services.NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@api.get('/dashboard')
def get_dashboard(request: Request, db: Session = Depends(get_session)):
    """Days until the exam, overall topic counts, today's plan and per-subject progress."""
    svc = services.DashboardService(db, exam_date=request.app.state.settings.EXAM_DATE)
    return success("Dashboard data retrieved", svc.dashboard())


@api.get('/progress')
def get_progress(db: Session = Depends(get_session)):
    svc = services.DashboardService(db)
    return success("Progress data retrieved", svc.subject_progress())


@api.get('/subjects')
def list_subjects(db: Session = Depends(get_session)):
    """List all subjects ordered by id, each with its topic progress."""
    return success("Subjects retrieved", services.SubjectService(db).list())


@api.get('/subjects/{subject_id}')
def get_subject(subject_id: RowId, db: Session = Depends(get_session)):
    data = _call(services.SubjectService(db).get, subject_id)
    return success("Subject retrieved", data)


@api.post('/subjects')
def create_subject(payload: SubjectIn, db: Session = Depends(get_session)):
    """Create a subject. An empty `color` falls back to the default color."""
    s = _call(services.SubjectService(db).create, payload.name, payload.description, payload.color)
    return success("Subject created", {'id': s.id}, status_code=201)


@api.put('/subjects/{subject_id}')
def update_subject(subject_id: RowId, payload: SubjectPatch, db: Session = Depends(get_session)):
    """Update a subject; empty or missing fields keep their stored value."""
    _call(services.SubjectService(db).update, subject_id, payload.model_dump(exclude_unset=True))
    return success("Subject updated")


@api.delete('/subjects/{subject_id}')
def delete_subject(subject_id: RowId, db: Session = Depends(get_session)):
    """Delete a subject together with its topics, notes and plan entries."""
    _call(services.SubjectService(db).delete, subject_id)
    return success("Subject deleted")


@api.get('/subjects/{subject_id}/topics')
def list_topics_by_subject(subject_id: RowId, db: Session = Depends(get_session)):
    return success("Topics retrieved", services.TopicService(db).list_by_subject(subject_id))


@api.get('/subjects/{subject_id}/notes')
def list_notes_by_subject(subject_id: RowId, db: Session = Depends(get_session)):
    return success("Notes retrieved", services.NoteService(db).list_by_subject(subject_id))


@api.post('/topics')
def create_topic(payload: TopicIn, db: Session = Depends(get_session)):
    t = _call(services.TopicService(db).create, payload.subject_id, payload.name)
    return success("Topic created", {'id': t.id}, status_code=201)


@api.put('/topics/{topic_id}')
def update_topic(topic_id: RowId, payload: TopicPatch, db: Session = Depends(get_session)):
    """Update a topic's name and/or flags. At least one field is required."""
    _call(services.TopicService(db).update, topic_id, payload.model_dump(exclude_unset=True))
    return success("Topic updated")


@api.put('/topics/{topic_id}/complete')
def toggle_topic_complete(topic_id: RowId, db: Session = Depends(get_session)):
    _call(services.TopicService(db).toggle, topic_id, 'is_completed')
    return success("Topic completion toggled")


@api.put('/topics/{topic_id}/weak')
def toggle_topic_weak(topic_id: RowId, db: Session = Depends(get_session)):
    _call(services.TopicService(db).toggle, topic_id, 'is_weak')
    return success("Topic weak status toggled")


@api.delete('/topics/{topic_id}')
def delete_topic(topic_id: RowId, db: Session = Depends(get_session)):
    """Delete a topic. Notes pointing at it keep existing with no topic."""
    _call(services.TopicService(db).delete, topic_id)
    return success("Topic deleted")


@api.get('/notes')
def list_notes(db: Session = Depends(get_session)):
    """List all notes, most recently updated first."""
    return success("Notes retrieved", services.NoteService(db).list_all())


@api.post('/notes')
def create_note(payload: NoteIn, db: Session = Depends(get_session)):
    n = _call(services.NoteService(db).create, payload.subject_id, payload.title, payload.content, payload.topic_id)
    return success("Note created", {'id': n.id}, status_code=201)


@api.put('/notes/{note_id}')
def update_note(note_id: RowId, payload: NotePatch, db: Session = Depends(get_session)):
    """Update a note.

    `title` changes only when non-empty; `content` and `topic_id` are
    always overwritten with the supplied values.
    """
    _call(services.NoteService(db).update, note_id, payload.title, payload.content, payload.topic_id)
    return success("Note updated")


@api.delete('/notes/{note_id}')
def delete_note(note_id: RowId, db: Session = Depends(get_session)):
    _call(services.NoteService(db).delete, note_id)
    return success("Note deleted")


@api.get('/study-plan')
def list_study_plans(db: Session = Depends(get_session)):
    """List all plan entries, latest study date first."""
    return success("Study plans retrieved", services.StudyPlanService(db).list_all())


@api.get('/study-plan/today')
def list_today_study_plan(db: Session = Depends(get_session)):
    return success("Today's study plan retrieved", services.StudyPlanService(db).list_today())


@api.post('/study-plan')
def create_study_plan(payload: StudyPlanIn, db: Session = Depends(get_session)):
    """Create a plan entry. `hours_planned` of 0 (or missing) becomes 1.0."""
    p = _call(
        services.StudyPlanService(db).create,
        payload.subject_id, payload.study_date, payload.hours_planned, payload.notes,
    )
    return success("Study plan created", {'id': p.id}, status_code=201)


@api.put('/study-plan/{plan_id}')
def update_study_plan(plan_id: RowId, payload: StudyPlanPatch, db: Session = Depends(get_session)):
    _call(services.StudyPlanService(db).update, plan_id, payload.model_dump(exclude_unset=True))
    return success("Study plan updated")


@api.delete('/study-plan/{plan_id}')
def delete_study_plan(plan_id: RowId, db: Session = Depends(get_session)):
    _call(services.StudyPlanService(db).delete, plan_id)
    return success("Study plan deleted")


_PATH_RESOURCES = {'plan_id': 'study plan'}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get('loc', ())]
    if loc and loc[0] == 'path':
        # e.g. subject_id -> "Invalid subject ID"
        resource = _PATH_RESOURCES.get(loc[-1], loc[-1].replace('_id', ''))
        return f"Invalid {resource} ID"
    field = '.'.join(loc[1:])
    return f"{field}: {first.get('msg')}" if field else str(first.get('msg'))


def _register_error_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return error(str(exc.detail), exc.status_code, headers=getattr(exc, 'headers', None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error(_validation_message(exc), 400)

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.error("store_error path=%s", request.url.path, exc_info=exc)
        orig = getattr(exc, 'orig', None)
        return error(str(orig) if orig is not None else str(exc), 500)


def create_app(settings: Settings = None) -> FastAPI:
    """Build the application together with its database engine.

    The engine is created here, stored on `app.state.engine` and handed
    to each request by the `get_session` dependency. Tables are created
    and the default subjects seeded before the app is returned.
    """
    if settings is None:
        settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="Exam Preparation Study API")
    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials='*' not in settings.CORS_ORIGINS,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
        )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.exception(
                "request_failed %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": elapsed_ms,
                    },
                    ensure_ascii=True,
                ),
            )
            raise
        response.headers["X-Request-ID"] = req_id
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        if request.url.path.startswith("/api"):
            logger.info(
                "request_done %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "status_code": response.status_code,
                        "duration_ms": elapsed_ms,
                    },
                    ensure_ascii=True,
                ),
            )
        return response

    _register_error_handlers(app)
    app.include_router(api)

    @app.get("/health")
    def health():
        """Lightweight health check for uptime monitoring."""
        return {"status": "ok"}

    create_db_and_tables(app.state.engine)
    seed_subjects(app.state.engine)
    logger.info("exam date: %s", settings.EXAM_DATE)
    return app
