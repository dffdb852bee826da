"""Run the API with uvicorn on the configured host and port."""

import uvicorn

from .config import Settings


def run():
    settings = Settings()
    uvicorn.run("exam_prep.main:create_app", factory=True, host=settings.SERVER_HOST, port=settings.SERVER_PORT)


if __name__ == "__main__":
    run()
