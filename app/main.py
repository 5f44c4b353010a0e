"""
ProcureHub API - FastAPI application entry point.
"""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .database import engine, Base
from .middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from .limiter import limiter
from .logging_config import api_logger
from .responses import ApiException, api_exception_handler
from .services.errors import WorkflowError
from .routes import (
    auth_router,
    health_router,
    requests_router,
    approval_router,
    administration_router,
    approvers_router,
    brfq_router,
    awards_router,
)
from . import models  # noqa: F401  registers tables on Base.metadata

settings = get_settings()

# Create tables (in production, use Alembic migrations instead)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="ProcureHub API",
    description="Procurement request approval workflow",
    version="1.0.0",
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Uniform JSON error envelope
app.add_exception_handler(WorkflowError, api_exception_handler)
app.add_exception_handler(ApiException, api_exception_handler)
app.add_exception_handler(StarletteHTTPException, api_exception_handler)
app.add_exception_handler(RequestValidationError, api_exception_handler)
app.add_exception_handler(Exception, api_exception_handler)

# Security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# Request logging middleware (only in debug mode)
if settings.debug:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    max_age=3600,  # Cache preflight requests for 1 hour
)

# Routes
app.include_router(auth_router)
app.include_router(health_router)
app.include_router(requests_router)
app.include_router(approval_router)
app.include_router(administration_router)
app.include_router(approvers_router)
app.include_router(brfq_router)
app.include_router(awards_router)

api_logger.info("Application configured", environment=settings.environment, debug=settings.debug)


@app.get("/api/health")
def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": "1.0.0",
    }


@app.get("/")
def root():
    return {
        "message": "ProcureHub API",
        "docs": "/api/docs" if settings.debug else "Disabled in production",
    }
