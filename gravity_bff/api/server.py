"""
FastAPI server for the Gravity BFF.
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from .auth import StreamAuthenticator
from .models import ErrorCode, HealthResponse, error_body
from .routes import router as stream_router
from ..config.settings import AppConfig
from ..data.base import DatabaseConnection
from ..exceptions import InvalidCursor, InvalidFilter, StorageError, StreamError
from ..services.stream import StreamService

logger = logging.getLogger(__name__)

API_VERSION = "2.0.0"


class StreamServer:
    """FastAPI server for the priority stream endpoints."""

    def __init__(self,
                 config: AppConfig,
                 stream_service: StreamService,
                 authenticator: StreamAuthenticator,
                 database: Optional[DatabaseConnection] = None):
        """Initialize stream server.

        Args:
            config: Application configuration
            stream_service: Cache-aside stream service
            authenticator: Bearer token authenticator
            database: Item store connection, pinged by the health check
        """
        self.config = config
        self.stream_service = stream_service
        self.authenticator = authenticator
        self.database = database
        self.server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None

        self.app = FastAPI(
            title="Gravity BFF API",
            description="Unified priority stream across email, chat, calendar and social sources",
            version=API_VERSION,
            docs_url="/docs",
            redoc_url="/redoc",
            openapi_url="/openapi.json",
        )
        self.app.state.stream_service = stream_service
        self.app.state.authenticator = authenticator

        self._setup_middleware()
        self._setup_routes()
        self._setup_error_handlers()

    def _setup_middleware(self) -> None:
        """Configure FastAPI middleware."""
        cors_origins = list(self.config.server.cors_origins)

        # Add localhost for development if not already present
        dev_origins = [
            "http://localhost:8080",
            "http://localhost:5173",
            "http://localhost:3000",
        ]
        for domain in dev_origins:
            if domain not in cors_origins:
                cors_origins.append(domain)

        logger.info(f"CORS allowed origins: {cors_origins}")

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

        self.app.add_middleware(GZipMiddleware, minimum_size=1000)

        @self.app.middleware("http")
        async def request_logging(request: Request, call_next):
            request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
            request.state.request_id = request_id
            started = time.perf_counter()

            response = await call_next(request)

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f}ms) request_id={request_id}"
            )
            response.headers["X-Request-ID"] = request_id
            return response

    def _setup_routes(self) -> None:
        """Configure API routes."""

        @self.app.get("/health", response_model=HealthResponse, tags=["Health"])
        async def health_check():
            """Check API health status.

            Always returns 200; a failing dependency marks the service degraded.
            """
            services = {"database": None, "cache": None}
            failed = False
            try:
                if self.database is not None:
                    services["database"] = await self.database.ping()
                services.update(await self.stream_service.health_check())
            except Exception as e:
                logger.error(f"Health check failed: {e}")
                failed = True

            healthy = not failed and all(v for v in services.values() if v is not None)
            return HealthResponse(
                status="ok" if healthy else "degraded",
                timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
                services=services,
            )

        self.app.include_router(stream_router, prefix="/v2", tags=["Stream"])

    def _setup_error_handlers(self) -> None:
        """Configure global error handlers."""

        @self.app.exception_handler(InvalidFilter)
        @self.app.exception_handler(InvalidCursor)
        async def validation_error_handler(request: Request, exc: StreamError):
            """Caller-correctable errors."""
            return JSONResponse(
                status_code=400,
                content=error_body(ErrorCode.VALIDATION_FAILED, exc.user_message),
            )

        @self.app.exception_handler(StorageError)
        async def storage_error_handler(request: Request, exc: StorageError):
            """Item store failures."""
            logger.error(f"Storage failure on {request.url.path}: {exc.to_log_string()}")
            return JSONResponse(
                status_code=500,
                content=error_body(ErrorCode.INTERNAL_ERROR, "Failed to load stream data"),
            )

        @self.app.exception_handler(StreamError)
        async def stream_error_handler(request: Request, exc: StreamError):
            """Any other service error."""
            logger.error(f"Stream error on {request.url.path}: {exc.to_log_string()}")
            return JSONResponse(
                status_code=500,
                content=error_body(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"),
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            """Malformed query or path parameters."""
            errors = exc.errors()
            if errors:
                location = ".".join(str(part) for part in errors[0].get("loc", ()))
                message = f"Invalid parameter {location}: {errors[0].get('msg')}"
            else:
                message = "Invalid request"
            return JSONResponse(
                status_code=400,
                content=error_body(ErrorCode.VALIDATION_FAILED, message),
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_error_handler(request: Request, exc: StarletteHTTPException):
            """Wrap HTTP errors in the standard error body."""
            if isinstance(exc.detail, dict) and "code" in exc.detail:
                content = error_body(exc.detail["code"], exc.detail.get("message", ""))
            elif exc.status_code == 404:
                content = error_body(ErrorCode.NOT_FOUND, str(exc.detail))
            else:
                content = error_body(ErrorCode.BAD_REQUEST, str(exc.detail))
            return JSONResponse(
                status_code=exc.status_code,
                content=content,
                headers=getattr(exc, "headers", None),
            )

        @self.app.exception_handler(Exception)
        async def general_error_handler(request: Request, exc: Exception):
            """Handle unexpected errors."""
            logger.error(f"Unhandled error in stream endpoint: {exc}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content=error_body(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"),
            )

    async def start_server(self) -> None:
        """Start the server in the background without blocking."""
        if self._server_task is not None:
            logger.warning("Stream server already running")
            return

        host = self.config.server.host
        port = self.config.server.port

        logger.info(f"Starting stream server on {host}:{port}")

        server_config = uvicorn.Config(
            app=self.app,
            host=host,
            port=port,
            log_level=self.config.log_level.value.lower(),
            access_log=False,
            loop="asyncio",
        )

        self.server = uvicorn.Server(server_config)
        self._server_task = asyncio.create_task(self.server.serve())

        logger.info(f"Stream server started on http://{host}:{port}")

    async def wait(self) -> None:
        """Block until the server task exits."""
        if self._server_task is not None:
            await self._server_task

    async def stop_server(self) -> None:
        """Stop the server gracefully."""
        if self.server is None:
            logger.warning("Stream server not running")
            return

        logger.info("Stopping stream server...")
        self.server.should_exit = True

        if self._server_task:
            try:
                await asyncio.wait_for(self._server_task, timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Server shutdown timed out, cancelling task")
                self._server_task.cancel()
                try:
                    await self._server_task
                except asyncio.CancelledError:
                    pass

        self.server = None
        self._server_task = None

        logger.info("Stream server stopped")

    def get_app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self.app
