from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List

import structlog
from dotenv import load_dotenv

# Load .env file before importing app modules
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.config import settings
from app.exceptions import SchoolException
from app.middleware.auth import setup_auth_middleware
from app.utils.logger import configure_logger

configure_logger(settings.ENVIRONMENT)
logger = structlog.get_logger()

HTTP_ERROR_CODES = {
    400: "VALIDATION_FAILED",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_FAILED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application."""
    logger.info("Starting up FastAPI application", environment=settings.ENVIRONMENT)
    Path(settings.STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    from fastapi.openapi.utils import get_openapi

    openapi_schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="School management API for subjects, students, teachers and enrollments",
        routes=app.routes,
    )

    # Add Bearer token security scheme
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter JWT token (without 'Bearer ' prefix)",
        }
    }

    # Auth endpoints that don't require authentication
    public_auth_endpoints = {"/auth/login", "/auth/register"}

    # Apply security to protected endpoints
    for path, path_data in openapi_schema["paths"].items():
        for method, method_data in path_data.items():
            if method.upper() != "OPTIONS":
                tags = method_data.get("tags", [])
                is_health_endpoint = "Health" in tags
                is_public_auth_endpoint = any(
                    path.endswith(endpoint) for endpoint in public_auth_endpoints
                )

                if not is_health_endpoint and not is_public_auth_endpoint:
                    method_data["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


def error_envelope(
    status_code: int,
    message: str,
    error_code: str,
    errors: Dict[str, List[str]] | None = None,
    details: Dict[str, Any] | None = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "message": message,
        "error_code": error_code,
    }
    if errors:
        content["errors"] = errors
    # Add details if available and not in production
    if details and settings.ENVIRONMENT != "production":
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def format_validation_errors(
    raw_errors: List[Dict[str, Any]], strip_location: bool
) -> tuple[Dict[str, List[str]], str]:
    """Group pydantic errors by dotted field path.

    Returns the grouped messages and the error code: ``INVALID_ENUM`` when
    every failure is an enumeration mismatch, ``VALIDATION_FAILED`` otherwise.
    """
    errors: Dict[str, List[str]] = {}
    for error in raw_errors:
        loc = list(error.get("loc", ()))
        # Request errors start with "body", "query" or "path"
        if strip_location and len(loc) > 1:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "request"
        errors.setdefault(field, []).append(error["msg"])

    all_enum = bool(raw_errors) and all(e.get("type") == "enum" for e in raw_errors)
    return errors, "INVALID_ENUM" if all_enum else "VALIDATION_FAILED"


# Exception handlers
@app.exception_handler(SchoolException)
async def school_exception_handler(
    request: Request, exc: SchoolException
) -> JSONResponse:
    """Handle custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Application error",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(
        exc.status_code, exc.message, exc.error_code, exc.errors, exc.details
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle invalid request bodies, query strings and path parameters."""
    errors, error_code = format_validation_errors(exc.errors(), strip_location=True)
    logger.info(
        "Request validation error",
        errors=errors,
        error_code=error_code,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(422, "Validation failed", error_code, errors)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised while building payloads from forms."""
    errors, error_code = format_validation_errors(exc.errors(), strip_location=False)
    logger.info(
        "Validation error",
        errors=errors,
        error_code=error_code,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(422, "Validation failed", error_code, errors)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Handle database integrity errors (unique constraints, foreign keys, etc.)."""
    error_msg = str(exc.orig) if exc.orig else str(exc)
    logger.error(
        "Database integrity error",
        error=error_msg,
        path=request.url.path,
        method=request.method,
    )

    lowered = error_msg.lower()
    if "unique" in lowered:
        message = "A record with this information already exists"
    elif "foreign key" in lowered:
        message = "Referenced record does not exist"
    elif "not null" in lowered:
        message = "Required field is missing"
    else:
        message = "Data integrity error"

    return error_envelope(422, message, "VALIDATION_FAILED")


@app.exception_handler(OperationalError)
async def operational_error_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    """Handle database operational errors (connection issues, etc.)."""
    logger.error(
        "Database operational error",
        error=str(exc.orig) if exc.orig else str(exc),
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(
        503,
        "Database is temporarily unavailable. Please try again later.",
        "DATABASE_UNAVAILABLE",
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle other SQLAlchemy database errors."""
    logger.exception(
        "Database error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(500, "A database error occurred", "SERVER_ERROR")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP errors raised by routing and by FastAPI itself."""
    logger.info(
        "HTTP error",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(
        exc.status_code,
        str(exc.detail),
        HTTP_ERROR_CODES.get(exc.status_code, "SERVER_ERROR"),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for all unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return error_envelope(
        500, "An unexpected error occurred. Please try again later.", "SERVER_ERROR"
    )


# Set CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup auth middleware (must be after CORS middleware)
setup_auth_middleware(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)

# Uploaded avatars and teacher images
app.mount(
    settings.STORAGE_URL_PREFIX,
    StaticFiles(directory=settings.STORAGE_ROOT, check_dir=False),
    name="storage",
)
