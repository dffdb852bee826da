"""Run a quick in-process request against the app.

Uses FastAPI's TestClient to hit `/health` and `/api/dashboard` with the
settings taken from the environment (or `.env`).
"""

import os
import sys

# Ensure backend folder is on sys.path so `exam_prep` can be imported
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient  # noqa: E402
from exam_prep.main import create_app  # noqa: E402


def run():
    client = TestClient(create_app())
    for path in ('/health', '/api/dashboard'):
        resp = client.get(path)
        print(path, 'STATUS:', resp.status_code)
        print('JSON:', resp.json())


if __name__ == '__main__':
    run()
