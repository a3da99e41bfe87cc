# hr_session/main.py — FastAPI app hosting the privileged functions

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from hr_session.config import get_settings
from hr_session.routers._responses import error_response, validation_error_message
from hr_session.routers import audit, functions, health

app = FastAPI(
    title="hr-session",
    description="Privileged identity functions for the HR workspace",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    allow_methods=["GET", "POST", "OPTIONS"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    return error_response(validation_error_message(exc), 400)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(
    functions.router,
    prefix="/functions/v1",
    tags=["functions"],
)
app.include_router(audit.router, prefix="/api/audit", tags=["audit"])
