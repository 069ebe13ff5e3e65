from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .container import build_services
from .errors import TaskApiError
from .logging_setup import configure_logging
from .middleware import RequestIdMiddleware
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .settings import Settings, get_settings
from .tokens import TokenConfig

logger = structlog.get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, login and the authenticated user's profile."},
    {
        "name": "tasks",
        "description": "CRUD on the authenticated user's tasks with title search and status filtering.",
    },
]


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(TaskApiError)
    async def task_api_error_handler(request: Request, exc: TaskApiError) -> JSONResponse:
        """
        Render core errors as:
            {"error": "<ErrorClass>", "message": "<client-safe message>"}
        """
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": type(exc).__name__, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Bodies that are not valid JSON or carry wrongly typed fields.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("request.unhandled_error", path=request.url.path, exc_info=exc)
        content = {"error": "InternalServerError", "message": "Internal server error"}
        if not settings.is_production:
            content["detail"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, token_config: Optional[TokenConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; loaded from the environment when omitted.
        token_config: Signing key and lifetime; derived from settings when omitted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_output=settings.is_production)

    app = FastAPI(
        title="Task Backend",
        description="Per-user task tracking API with bearer-token authentication.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.services = build_services(settings, token_config)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    _register_exception_handlers(app, settings)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(tasks_router.router)

    logger.info(
        "app.created",
        backend=settings.persistence_backend,
        environment=settings.environment,
    )
    return app


# Default app instance (used by uvicorn: src.api.main:app)
app = create_app()
