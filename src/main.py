"""
PlaceShare API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from src.api.routes import router as api_router
from src.config import get_settings
from src.database import Database
from src.kernel.errors import PlaceShareError, ValidationError
from src.kernel.geocoding.geocoder import GoogleGeocoder
from src.kernel.identity.jwt import IdentityVerifier, JWTManager
from src.kernel.uploads.blob_store import LocalBlobStore
from src.logging_config import configure_logging, get_logger
from src.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Builds the collaborators (store handle, geocoder, blob store, identity
    verifier) and tears them down on shutdown.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
        service=settings.project_name,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    db = Database(settings.database_url, echo=settings.debug)
    await db.init()

    http_client = httpx.AsyncClient()
    geocoder = GoogleGeocoder(http_client)
    if not geocoder.configured:
        logger.warning("GOOGLE_API_KEY is not set; creating places will fail")

    app.state.db = db
    app.state.geocoder = geocoder
    app.state.blob_store = LocalBlobStore(settings.upload_dir)
    app.state.identity_verifier = IdentityVerifier(JWTManager())

    yield

    logger.info("Shutting down...")
    await http_client.aclose()
    await db.close()


app = FastAPI(
    title=settings.project_name,
    description="""
    Share places: title, description, geocoded address and an image.

    ## Invariants

    1. A place's creator and the creator's place list always agree
    2. Creating or deleting a place updates both sides in one transaction
    3. Only a place's creator may edit or delete it
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# add_middleware stacks innermost-first: CORS is added last so it wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    expose_headers=[REQUEST_ID_HEADER],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses, which can bypass the CORS middleware."""
    origin = request.headers.get("origin")
    if "*" in settings.cors_origins:
        headers = {"Access-Control-Allow-Origin": "*"}
    elif origin and origin in settings.cors_origins:
        headers = {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    else:
        return {}
    headers["Access-Control-Allow-Headers"] = "Origin, X-Requested-With, Content-Type, Accept, Authorization"
    headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE"
    return headers


def _error_response(request: Request, status_code: int, content: dict, headers: dict | None = None) -> JSONResponse:
    all_headers = _cors_headers(request)
    if headers:
        all_headers.update(headers)
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        all_headers[REQUEST_ID_HEADER] = req_id
        content["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=content, headers=all_headers)


@app.exception_handler(PlaceShareError)
async def place_share_error_handler(request: Request, exc: PlaceShareError):
    """Render a classified failure. Server-side faults get a generic message."""
    if exc.status_code >= 500:
        logger.error(
            "%s: %s",
            type(exc).__name__,
            exc.message,
            extra={"code": exc.code, "path": request.url.path, **exc.context},
        )
    else:
        logger.info(
            "Request rejected: %s",
            exc.code,
            extra={"path": request.url.path, "status_code": exc.status_code},
        )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return _error_response(
        request,
        exc.status_code,
        {"detail": exc.public_message, "code": exc.code},
        headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return _error_response(
        request,
        ValidationError.status_code,
        {
            "detail": ValidationError.default_message,
            "code": ValidationError.code,
            "errors": errors,
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (unknown path, wrong method)."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        detail, code = "Could not find this route", "route_not_found"
    else:
        detail, code = str(exc.detail), "http_error"
    return _error_response(
        request,
        exc.status_code,
        {"detail": detail, "code": code},
        getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Unclassified failures never leak internals."""
    logger.exception("Unhandled exception: %s", exc)
    content = {"detail": UNKNOWN_ERROR_MESSAGE, "code": "unknown_error"}
    if settings.debug:
        content["type"] = type(exc).__name__
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health."""
    geocoder = getattr(request.app.state, "geocoder", None)
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected" if getattr(request.app.state, "db", None) else "not initialized",
        geocoder_configured=bool(getattr(geocoder, "configured", False)),
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "places": f"{settings.api_prefix}/places",
            "users": f"{settings.api_prefix}/users",
        },
    }


app.include_router(api_router, prefix=settings.api_prefix)

# Uploaded images are served from where the blob store writes them
app.mount(
    "/" + Path(settings.upload_dir).as_posix().strip("/"),
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
