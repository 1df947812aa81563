"""
Commerce service: order pricing and fulfilment, product variants,
reviews and wishlists.
"""

import os
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from commerce.api.orders import router as orders_router
from commerce.api.products import router as products_router
from commerce.api.reviews import router as reviews_router
from commerce.api.wishlists import router as wishlists_router
from commerce.application.errors import CommerceError
from commerce.core_settings import get_settings
from commerce.infrastructure.db import get_engine, init_models

SERVICE_NAME = "commerce-service"
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
SERVICE_DESCRIPTION = "Orders, pricing, variants, reviews and wishlists"

settings = get_settings()

setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    logger.info("Running database migrations")
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=os.path.join(os.path.dirname(__file__), ".."),
        capture_output=True,
        text=True,
        check=False
    )
    if result.returncode != 0:
        logger.warning(f"Migration output: {result.stderr}")
    else:
        logger.info("Database migrations completed")

    init_models()
    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

@app.exception_handler(CommerceError)
async def commerce_error_handler(request: Request, exc: CommerceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(
            f"{request.method} {request.url.path} rejected: {exc.message}",
            extra={'extra_fields': {'status_code': exc.status_code, 'error': type(exc).__name__}}
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

health_service = ServiceHealth(SERVICE_NAME, get_engine, SERVICE_VERSION, redis_url=settings.REDIS_URL)
app.include_router(health_service.create_health_router())

app.include_router(orders_router)
app.include_router(products_router)
app.include_router(reviews_router)
app.include_router(wishlists_router)

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }
