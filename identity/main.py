"""FastAPI application initialization."""

import asyncio
from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identity import database
from identity.api.auth import router as auth_router
from identity.api.dependencies import get_password_hasher, get_token_service
from identity.api.middleware import CorrelationIdMiddleware
from identity.api.routes import router
from identity.config import get_settings
from identity.errors import IdentityError, InvalidTokenError
from identity.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Missing or invalid token configuration aborts startup here.
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    get_token_service()
    hasher = get_password_hasher()
    # bcrypt work stays off the event loop
    await asyncio.to_thread(lambda: hasher.dummy_hash)

    try:
        await database.init_database()
        await database.run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - auth requests will return 503",
        )

    logger.info(
        "application_started",
        log_level=settings.log_level,
        jwt_algorithm=settings.jwt_algorithm,
        access_token_expire_minutes=settings.access_token_expire_minutes,
        refresh_token_expire_days=settings.refresh_token_expire_days,
    )

    yield

    await database.close_database()
    logger.info("application_shutdown")


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def create_app() -> FastAPI:
    app = FastAPI(
        title="Identity Service",
        description="Account registration, login and JWT issuance",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(IdentityError)
    async def identity_exception_handler(
        request: Request, exc: IdentityError
    ) -> JSONResponse:
        """Render domain errors as client-safe JSON."""
        correlation_id = _correlation_id(request)
        headers = {"X-Correlation-Id": correlation_id}
        if isinstance(exc, InvalidTokenError):
            headers["WWW-Authenticate"] = "Bearer"

        structlog.get_logger().info(
            "request_rejected",
            error_code=exc.error_code,
            status_code=exc.status_code,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "detail": exc.message,
                "correlation_id": correlation_id,
            },
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors with a single readable message."""
        correlation_id = _correlation_id(request)

        errors = exc.errors()
        if errors:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
            message = first_error.get("msg", "Validation failed")
            detail = f"Field '{field}': {message}"
        else:
            detail = "Request validation failed"

        structlog.get_logger().warning(
            "validation_error",
            correlation_id=correlation_id,
            detail=detail,
        )

        return JSONResponse(
            status_code=400,
            content={
                "error": "VALIDATION_ERROR",
                "detail": detail,
                "correlation_id": correlation_id,
            },
            headers={"X-Correlation-Id": correlation_id},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(auth_router)
    app.include_router(router)

    return app


app = create_app()
