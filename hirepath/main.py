"""
HirePath API - Main Application

FastAPI backend with:
- MongoDB for users and job applications
- JWT authentication (password and Google OAuth)
- Stats and KPI progress per user
- Endpoints for the HirePath browser extension

Run: uvicorn hirepath.main:app --reload --port 5000
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hirepath import __version__
from hirepath.api.routes import api_router
from hirepath.core.config import Settings, get_settings
from hirepath.core.errors import AppError, ServerError
from hirepath.core.logger import setup_logging
from hirepath.db.mongodb import init_mongo_indexes, test_mongo_connection
from hirepath.services.google_oauth import GoogleAuthProvider

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "Unauthorized",
    404: "NotFound",
    405: "MethodNotAllowed",
}


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _server_error_body(exc: Exception, settings: Settings) -> dict:
    body = ServerError("Server error").to_dict()
    if settings.is_development:
        body["details"] = str(exc)
    return body


def register_exception_handlers(app: FastAPI, settings: Settings):
    """Map every failure to a JSON body carrying message and code."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "code": "Validation", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail), "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTPError")},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=_server_error_body(exc, settings))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_server_error_body(exc, settings))


def create_app(
    settings: Optional[Settings] = None,
    google_provider: Optional[GoogleAuthProvider] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    The Google provider is created here from settings (unless one is passed
    in) and kept on app.state for the OAuth routes.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="HirePath API",
        description="""
        Job application tracking.

        ## Features
        - **Authentication**: email/password and Google sign-in, JWT sessions
        - **Applications**: create, filter, update and delete tracked applications
        - **Stats**: daily / weekly / monthly counts and progress against a daily target
        - **Extension**: token check and quick-save endpoint for the browser extension
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.google_provider = google_provider or GoogleAuthProvider.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        """Initialize MongoDB indexes on startup."""
        try:
            init_mongo_indexes()
            logger.info("MongoDB indexes initialized")
        except PyMongoError as e:
            logger.warning("MongoDB index initialization failed: %s", e)

    @app.get("/", tags=["Health"])
    async def root():
        return {"message": "Welcome to HirePath API"}

    @app.get("/health", tags=["Health"])
    def health_check():
        """Detailed health check."""
        return {
            "status": "healthy",
            "mongodb": "connected" if test_mongo_connection() else "disconnected"
        }

    return app


app = create_app()
