# hr_session/routers/_responses.py — Response envelopes shared with the browser client

from typing import Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class DataEnvelope(BaseModel):
    data: Any


class ErrorEnvelope(BaseModel):
    """The `{"error": ...}` body the session client turns into FunctionCallError."""

    error: str


# OpenAPI `responses=` for the privileged endpoints.
PRIVILEGED_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status_code: {"model": ErrorEnvelope} for status_code in (400, 401, 403, 404)
}


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def validation_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid request")
    return f"{location}: {message}" if location else message
