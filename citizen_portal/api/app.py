"""FastAPI application factory for the stub portal API."""
from contextlib import asynccontextmanager
import json
import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException

from citizen_portal.api.routes import router as portal_router
from citizen_portal.api.state import PortalState
from citizen_portal.config.settings import settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _envelope_message(body: bytes) -> str | None:
    """Return the ``message`` of a JSON error envelope, if ``body`` is one."""
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Stub portal API starting up")
    logger.info("Debug mode: %s", settings.DEBUG)
    yield
    logger.info("Stub portal API shutting down")


def create_app(state: PortalState | None = None) -> FastAPI:
    """Build the stub API around ``state`` (a freshly seeded one by default)."""
    app = FastAPI(
        title=f"{settings.PROJECT_NAME} stub API",
        description="In-memory stand-in for the citizen portal backend",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.portal = state if state is not None else PortalState()

    @app.middleware("http")
    async def log_failed_portal_calls(request: Request, call_next):
        """Log every 4xx/5xx answer with the envelope message the client will see."""
        started_at = time.perf_counter()
        response = await call_next(request)
        if response.status_code < 400:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        logger.warning(
            "%s %s -> %s in %.1fms: %s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started_at) * 1000,
            _envelope_message(body) or "<no message>",
        )
        return Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
        )

    @app.exception_handler(HTTPException)
    async def http_error_envelope(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_envelope(request: Request, exc: RequestValidationError):
        errors = [{"msg": error.get("msg", ""), "loc": list(error.get("loc", ()))} for error in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation failed", "errors": errors},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        portal: PortalState = app.state.portal
        return {
            "status": "healthy",
            "version": "1.0.0",
            "notifications": len(portal.notifications),
        }

    app.include_router(portal_router, prefix=API_PREFIX)
    return app
