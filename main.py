"""
Flexo Planner: Main Application

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import structlog

from config import settings, DatabaseConfigError
from exceptions import AppError
from services.store import MATERIALS, get_store

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def check_store() -> dict:
    """Probe the record store with a cheap read."""
    try:
        store = get_store()
        materials = len(store.list_records(MATERIALS))
        return {
            "status": "healthy",
            "backend": settings.store_backend,
            "materials_count": materials
        }
    except (AppError, DatabaseConfigError) as e:
        return {
            "status": "unhealthy",
            "backend": settings.store_backend,
            "error": str(e)
        }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: Check the record store
    Shutdown: Log
    """
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug,
        store_backend=settings.store_backend
    )

    store_status = check_store()
    if store_status["status"] == "healthy":
        logger.info("store_connected", materials=store_status["materials_count"])
    else:
        logger.error("store_connection_failed", error=store_status.get("error"))

    yield

    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="Flexo Planner",
    description="Production requirements and material allocation for flexible packaging",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Basic health status and record store state
    """
    store_status = check_store()

    return {
        "status": "healthy" if store_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "store": store_status
    }


@app.get("/")
async def root():
    """API information and available endpoints."""
    return {
        "name": "Flexo Planner API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "production": "/api/production",
            "orders": "/api/orders",
            "materials": "/api/materials",
            "products": "/api/products",
            "clients": "/api/clients",
            "suppliers": "/api/suppliers",
            "config": "/api/config"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catches unhandled exceptions and returns the standard error format."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes import (
    production_router,
    orders_router,
    config_router,
    materials_router,
    products_router,
    clients_router,
    suppliers_router,
)

app.include_router(production_router, prefix="/api/production", tags=["Production"])
app.include_router(orders_router, prefix="/api/orders", tags=["Orders"])
app.include_router(materials_router, prefix="/api/materials", tags=["Materials"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(clients_router, prefix="/api/clients", tags=["Clients"])
app.include_router(suppliers_router, prefix="/api/suppliers", tags=["Suppliers"])
app.include_router(config_router, prefix="/api/config", tags=["Config"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
