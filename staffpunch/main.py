# staffpunch/main.py
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from starlette.requests import Request

from staffpunch.api.v1.router import api_router
from staffpunch.core.config import settings
from staffpunch.core.errors import PunchError, TemporaryError, Unauthenticated, ValidationError
from staffpunch.core.logging import setup_logging
from staffpunch.db.bootstrap import run_migrations_and_seed
from staffpunch.services.punch import PUNCH_OUTCOMES

setup_logging()
logger = logging.getLogger(__name__)

api = FastAPI(
    title="Staff Attendance Punch API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"displayRequestDuration": True, "persistAuthorization": True},
)

api.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # narrow to the punch page's origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# /metrics (Prometheus)
Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

api.include_router(api_router, prefix="/api/v1")

PUNCH_PATH = "/api/v1/attendance/punch"


@api.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}


@api.on_event("startup")
def startup():
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations_and_seed(seed_demo=settings.SEED_DEMO_DATA)


def _count_rejected_punch(request: Request, err: PunchError):
    # rejections raised before the punch service runs (auth, body, storage)
    if request.method == "POST" and request.url.path == PUNCH_PATH:
        PUNCH_OUTCOMES.labels(purpose="unknown", outcome=err.code).inc()


@api.exception_handler(PunchError)
def handle_punch_error(request: Request, exc: PunchError):
    if isinstance(exc, Unauthenticated):
        _count_rejected_punch(request, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@api.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    err = ValidationError.from_pydantic(exc.errors())
    _count_rejected_punch(request, err)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@api.exception_handler(OperationalError)
@api.exception_handler(PoolTimeoutError)
def handle_storage_unavailable(request: Request, exc: Exception):
    logger.warning("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    err = TemporaryError()
    _count_rejected_punch(request, err)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@api.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "INTERNAL_ERROR"})


app = api
