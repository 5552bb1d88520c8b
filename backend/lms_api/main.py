"""
FastAPI application entrypoint.
Run with: uvicorn lms_api.main:app --reload --port 8000 (from backend/).

Routes:
  - Auth: POST /api/authentication/register, POST /api/authentication/login,
          POST /api/authentication/refresh, GET /api/authentication/me
  - Courses: GET/POST /api/courses, GET/PUT/DELETE /api/courses/{id}, GET /api/courses/{id}/students
  - Modules: /api/modules, Activities: /api/activities, Users: /api/users

Every error body is a problem document: {title, status, detail, instance}.
"""
import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lms_api.config import require_jwt_settings, settings
from lms_api.errors import ConfigurationError, RefreshConflictError, TokenRefreshError
from lms_api.schemas.problem import ProblemDetails
from lms_api.api.auth import router as auth_router
from lms_api.api.courses import router as courses_router
from lms_api.api.modules import router as modules_router
from lms_api.api.activities import router as activities_router
from lms_api.api.users import router as users_router

logger = logging.getLogger("lms_api.main")

app = FastAPI(
    title="LMS API",
    description="Courses, modules and activities with JWT auth and Teacher/Student access scoping.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(courses_router)
app.include_router(modules_router)
app.include_router(activities_router)
app.include_router(users_router)


def _problem(
    request: Request,
    status_code: int,
    detail: str | None,
    title: str | None = None,
    errors: list | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    body = ProblemDetails(
        title=title or HTTPStatus(status_code).phrase,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else None
    return _problem(request, exc.status_code, detail, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg", "")}
        for e in exc.errors()
    ]
    return _problem(
        request,
        400,
        "One or more validation errors occurred.",
        title="Validation failed",
        errors=errors,
    )


@app.exception_handler(TokenRefreshError)
async def token_refresh_error_handler(request: Request, exc: TokenRefreshError):
    # Same body for every sub-check; the reason is only logged.
    logger.info("Token refresh rejected: %s", type(exc).__name__)
    return _problem(request, 400, TokenRefreshError.public_detail, title="Invalid token")


@app.exception_handler(RefreshConflictError)
async def refresh_conflict_handler(request: Request, exc: RefreshConflictError):
    return _problem(request, 409, RefreshConflictError.public_detail, title="Concurrency Conflict")


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.critical("Configuration error: %s", exc)
    return _problem(request, 500, "An unexpected error occurred.")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _problem(request, 500, "An unexpected error occurred.")


@app.on_event("startup")
def startup():
    """Fail fast on missing JWT config, then create SQLite tables and the two roles."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        require_jwt_settings()
    except ConfigurationError as e:
        logger.critical("%s. Set it in env or backend/.env.", e)
        raise
    from lms_api.database import init_sqlite_db
    init_sqlite_db()
    logger.info("LMS API ready (token lifetime %s min)", settings.jwt_expires_minutes)


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {"status": "ok", "message": "LMS API"}
