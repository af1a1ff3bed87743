"""FastAPI application."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from leadcrm.configs import settings
from leadcrm.controllers.follow_up_controllers import follow_up_router
from leadcrm.controllers.lead_controllers import lead_router
from leadcrm.controllers.user_controllers import user_router
from leadcrm.logger_config import get_logger
from leadcrm.services.exceptions import ServiceError
from leadcrm.startup import init_db

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


def register_exception_handlers(app: FastAPI) -> None:
    """Answer every error with a ``{"message": ...}`` body."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )


def create_app() -> FastAPI:
    """Build the API with its routers, CORS policy and error handlers."""
    app = FastAPI(
        title="Lead CRM API",
        root_path=settings.ROOT_PATH_BACKEND,
        description="Lead assignment, follow-up and verification call endpoints",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )
    register_exception_handlers(app)

    app.include_router(user_router)
    app.include_router(lead_router)
    app.include_router(follow_up_router)

    def _health() -> Dict[str, str]:
        return {
            "status": "ok",
            "message": "Lead CRM backend is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.add_api_route("/", _health, methods=["GET"], response_description="Api healthcheck")
    app.add_api_route("/health", _health, methods=["GET"], response_description="Api healthcheck")
    return app


app = create_app()
