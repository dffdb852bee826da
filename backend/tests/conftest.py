import pytest
from fastapi.testclient import TestClient

from exam_prep.config import Settings
from exam_prep.main import create_app


@pytest.fixture
def make_client(tmp_path, monkeypatch):
    """Build a client against a fresh SQLite file; extra env vars override settings."""
    created = []

    def _make(**env):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
        monkeypatch.setenv("EXAM_DATE", "2026-02-11")
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        app = create_app(Settings())
        created.append(app)
        return TestClient(app)

    yield _make
    for app in created:
        app.state.engine.dispose()


@pytest.fixture
def client(make_client):
    """A client whose database holds only the five seeded subjects."""
    return make_client()
