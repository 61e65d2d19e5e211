"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import api_router
from core import configure_logging, settings
from services import RateLimitMiddleware, ServiceError, get_rate_limiter

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(title="Chirp API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Count", "X-Page-Count", "X-Next-Page"],
    )
    app.add_middleware(RateLimitMiddleware, limiter_factory=get_rate_limiter)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.include_router(api_router)
    return app
