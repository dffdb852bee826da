"""Application settings and validation."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE = Path(__file__).resolve().parent.parent
DEFAULT_EXAM_DATE = "2026-02-11"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,"
    "http://localhost:5174,http://localhost:5175"
)


class Settings:
    ENV: str
    DATABASE_URL: str
    EXAM_DATE: str
    SERVER_HOST: str
    SERVER_PORT: int
    CORS_ORIGINS: list
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL") or self._database_url_from_parts()
        self.EXAM_DATE = (os.getenv("EXAM_DATE") or "").strip() or DEFAULT_EXAM_DATE
        self.SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
        self._raw_port = os.getenv("SERVER_PORT", "8080")
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()]
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    @staticmethod
    def _database_url_from_parts() -> str:
        """Build a PostgreSQL URL from DB_* variables, or fall back to SQLite."""
        host = os.getenv("DB_HOST")
        if not host:
            return f"sqlite:///{BASE / 'exam_prep.db'}"
        port = os.getenv("DB_PORT", "5432")
        user = os.getenv("DB_USER", "")
        password = os.getenv("DB_PASSWORD", "")
        name = os.getenv("DB_NAME", "")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    def _validate(self):
        try:
            self.SERVER_PORT = int(self._raw_port)
        except ValueError:
            raise RuntimeError(f"SERVER_PORT must be an integer, got {self._raw_port!r}")
