from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from contextlib import asynccontextmanager
import datetime

# Import core modules
from core.config import settings
from core.exceptions import ConfigError, LedgerError, Unauthenticated, ValidationError
from utils.logger import logger

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""

    logger.info(f"Starting {settings.APP_NAME}...")

    if not settings.SECRET_KEY:
        logger.warning("JWT_SECRET is not set. Auth routes will fail until it is configured.")

    try:
        from connect_db import Base, engine
        import models.models  # noqa: F401  registers tables on Base

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Personal expense ledger API",
    version=settings.VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS
)

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, ConfigError):
        logger.error(f"Configuration error on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Server misconfigured", "message": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError.from_pydantic(exc.errors())
    return JSONResponse(status_code=error.status_code, content=error.to_dict())

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )

# Import routers after app creation to avoid circular imports
from api import auth, expenses

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])

@app.get("/")
async def root():
    """Root endpoint for health check."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.VERSION,
        "status": "running",
    }

@app.get("/health")
async def health_check_endpoint():
    return {
        "status": "ok",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        server_header=False,
        proxy_headers=True
    )
