from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scheduleguard.api.routes import assignments, availability, health
from scheduleguard.core.config import get_settings
from scheduleguard.core.exceptions import AppError
from scheduleguard.core.logging import configure_logging
from scheduleguard.core.middleware import RequestSizeLimitMiddleware, RequestTimingMiddleware

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings)
    logger.info("%s forwarding to %s", settings.project_name, settings.backend_base_url)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )

app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestTimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(assignments.router, prefix=f"{settings.api_prefix}/assignments", tags=["assignments"])
app.include_router(availability.router, prefix=settings.api_prefix, tags=["availability"])
