"""
Wholesale Order Writer — Main Application

Serves the order workbook download and upload endpoints.
Run locally: python main.py (or uvicorn main:app --reload)
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, check_connection
from exceptions import AppError
from models.catalog import OrderType
from routes import order_writer_router

API_VERSION = "0.1.0"

# stdlib logging carries structlog output; level comes from LOG_LEVEL
logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration and catalog reachability on startup."""
    logger.info(
        "order_writer_starting",
        environment=settings.environment,
        debug=settings.debug,
        max_upload_mb=settings.order_writer_max_upload_mb,
        default_pricing_tier=settings.default_pricing_tier,
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "catalog_reachable",
            products=db_status["products_count"],
            companies=db_status["companies_count"]
        )
    else:
        # Imports will report PARSE_ERROR until the catalog comes back
        logger.error("catalog_unreachable", error=db_status.get("error"))

    yield

    logger.info("order_writer_stopped")


app = FastAPI(
    title="Wholesale Order Writer",
    description="Personalized order workbooks for B2B wholesale: export, fill in Excel, import",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3100",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    # Browser needs this to read the workbook filename
    expose_headers=["Content-Disposition"],
)

app.include_router(order_writer_router)  # Prefix already in router


# ===================
# SERVICE ENDPOINTS
# ===================

@app.get("/health")
async def health_check():
    """Catalog connectivity and upload limits."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status,
        "order_writer": {
            "max_upload_mb": settings.order_writer_max_upload_mb,
            "default_pricing_tier": settings.default_pricing_tier,
        },
    }


@app.get("/")
async def root():
    return {
        "name": "Wholesale Order Writer API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "order_types": [t.value for t in OrderType],
        "endpoints": {
            "template": "GET /api/orders/order-writer/template",
            "import": "POST /api/orders/order-writer/import",
            "sku": "GET /api/orders/order-writer/sku/{sku}",
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors that escape a route keep their code and status."""
    logger.warning(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes INTERNAL_ERROR; details only in debug."""
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


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
