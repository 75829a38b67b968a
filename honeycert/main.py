"""
HoneyCert - Main Application Entry Point
Admin registration with schema-per-tenant provisioning
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from honeycert.core.config import get_settings
from honeycert.core.exception_handlers import register_exception_handlers
from honeycert.api import admin, otp

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Initializing HoneyCert backend")
    # Global tables come from alembic.ini, tenant tables from tenant_alembic.ini
    logger.info("Database managed by Alembic migrations")

    yield

    logger.info("Shutting down HoneyCert backend")


app = FastAPI(
    title="HoneyCert API",
    description="Admin registration and tenant schema provisioning",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(otp.router, prefix="/api/otp", tags=["otp"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "honeycert-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "HoneyCert API",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "honeycert.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
