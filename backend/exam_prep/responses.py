"""Uniform JSON envelope for API responses.

Successful calls return `{"success": true, "message": ..., "data": ...}`
(`data` is left out when there is nothing to return); failures return
`{"success": false, "message": ...}`.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .schemas import Envelope


def success(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    body = Envelope(success=True, message=message).model_dump(exclude={"data"})
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=body)


def error(message: str, status_code: int, headers: dict = None) -> JSONResponse:
    body = Envelope(success=False, message=message).model_dump(exclude={"data"})
    return JSONResponse(status_code=status_code, content=body, headers=headers)
