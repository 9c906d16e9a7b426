from typing import Callable, List, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings

logger = structlog.get_logger()


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce authentication for all routes except those explicitly excluded.
    """

    def __init__(
        self,
        app: ASGIApp,
        public_paths: Optional[List[str]] = None,
        public_path_prefixes: Optional[List[str]] = None,
    ):
        """
        Initialize the auth middleware.

        Args:
            app: The ASGI app
            public_paths: List of exact paths that are publicly accessible
            public_path_prefixes: List of path prefixes that are publicly accessible
        """
        super().__init__(app)
        api = settings.API_V1_STR
        # Default public paths
        self.public_paths = public_paths or [
            "/docs",
            "/redoc",
            "/openapi.json",
            f"{api}/openapi.json",
            f"{api}/auth/login",
            f"{api}/auth/register",
            f"{api}/health",
        ]

        # Default public path prefixes
        self.public_path_prefixes = public_path_prefixes or [
            "/docs/",
            "/redoc/",
            f"{settings.STORAGE_URL_PREFIX}/",
        ]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process each request and determine if authentication is required.

        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler

        Returns:
            The response
        """
        # Skip authentication for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path

        if path in self.public_paths:
            return await call_next(request)

        for prefix in self.public_path_prefixes:
            if path.startswith(prefix):
                return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            logger.info("Missing bearer token", path=path, method=request.method)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "success": False,
                    "message": "Unauthenticated",
                    "error_code": "UNAUTHORIZED",
                },
            )

        # The token itself is validated by the endpoint's dependency
        return await call_next(request)


def setup_auth_middleware(app: FastAPI):
    """
    Set up the authentication middleware for the application.

    Args:
        app: The FastAPI application
    """
    app.add_middleware(AuthMiddleware)
