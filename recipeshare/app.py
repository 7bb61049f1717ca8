"""
RecipeShare FastAPI application.

Every JSON answer uses the `{success, message, ...}` envelope; errors are
rendered by the handlers below from the AppError taxonomy.
"""
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipeshare import __version__, config
from recipeshare.database import get_db, init_db
from recipeshare.errors import AppError, AuthenticationRequired, ValidationFailure, field_errors
from recipeshare.logger import get_logger
from recipeshare.routers import base
from recipeshare.schemas.recipe import ApiResponse
from recipeshare.session_guard import attach_identity
from recipeshare.utils_time import format_datetime, get_now

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"RecipeShare {__version__} started ({config.APP_ENV})")
    yield
    logger.info("RecipeShare shutting down")


app = FastAPI(title="RecipeShare API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(attach_identity)


# ============================================================================
# Health Check
# ============================================================================

@base.api_router.get("/health", response_model=ApiResponse)
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"
    return ApiResponse(
        success=True,
        message="RecipeShare API is running",
        timestamp=format_datetime(get_now()),
        environment=config.APP_ENV,
        database=database,
    )


@base.api_router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
                           include_in_schema=False)
def api_not_found(path: str):
    raise StarletteHTTPException(status_code=404, detail="API endpoint not found")


app.include_router(base.api_router)
app.include_router(base.views_router)


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, AuthenticationRequired) and not exc.wants_json:
        return RedirectResponse(url=f"/login.html?returnTo={quote(exc.return_to, safe='')}", status_code=303)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    failure = ValidationFailure(errors=field_errors(exc.errors()))
    return JSONResponse(status_code=failure.status_code, content=failure.payload())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Resource not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    message = "An unexpected error occurred" if config.IS_PRODUCTION else str(exc)
    return JSONResponse(status_code=500, content={"success": False, "message": message})
