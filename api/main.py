"""
Brand POS API - Main Application.

FastAPI application with CORS enabled for the dashboard frontend.

Environment variables (read from .env):
- CORS_ORIGINS: Comma separated allowed origins (default: *)
- LOG_LEVEL: Logging level name (default: INFO)
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from domain.sale import SaleErrorCode

load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Brand POS API",
    description="REST API for catalog management, sales recording and sales reporting",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

cors_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Body/query validation failures.

    Absent or unparseable values are MISSING_FIELDS; values of the right type
    that break a constraint are VALIDATION_FAILED.
    """
    errors = exc.errors()
    missing = any(
        error.get("type") == "missing"
        or str(error.get("type", "")).endswith(("_parsing", "_type"))
        for error in errors
    )
    code = SaleErrorCode.MISSING_FIELDS if missing else SaleErrorCode.VALIDATION_FAILED
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error_code": code.value,
            "message": "Missing required fields" if missing else "Validation failed",
            "details": {"errors": jsonable_encoder(errors)},
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": "Something went wrong", "error": str(exc)},
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "brand-pos-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Brand POS API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import brands, reports, sales

app.include_router(brands.router, prefix="/api/v1", tags=["Brands"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
