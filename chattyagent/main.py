from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chattyagent.api.auth import router as auth_router
from chattyagent.api.chat import router as chat_router
from chattyagent.api.files import router as files_router
from chattyagent.api.projects import router as projects_router
from chattyagent.core.config import settings
from chattyagent.core.errors import AppError
from chattyagent.db.database import init_db

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ChattyAgent API",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(projects_router, prefix="/api/projects", tags=["Projects"])
app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
app.include_router(files_router, prefix="/api/files", tags=["Files"])


@app.on_event("startup")
async def on_startup():
    """Initialize application on startup"""
    logger.info("🚀 ChattyAgent API starting...")
    init_db()
    logger.info(f"📍 Environment: {settings.ENVIRONMENT}")
    logger.info(f"🌐 Frontend URL: {settings.FRONTEND_URL}")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("👋 Application shutting down...")


@app.get("/health")
async def health_check():
    """Liveness check, no authentication"""
    return {
        "success": True,
        "message": "ChattyAgent API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }


def _error_body(message: str, errors=None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.errors))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content=_error_body("Validation error", errors))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "API endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(message), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.error(f"Internal server error: {exc}", exc_info=True)
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content=_error_body(message))

