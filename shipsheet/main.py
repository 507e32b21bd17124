"""
ShipSheet order store service

Serves the shared fulfillment sheet: role-scoped listing, creation, field
edits with server-side re-validation and audit, and deletion of orders.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
import subprocess
import os

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from shipsheet.core_settings import get_settings
from shipsheet.api.routes import router as orders_router
from shipsheet.api.profiles import router as profiles_router
from shipsheet.application.errors import OrderStoreError
from shipsheet.infrastructure.db import engine, init_models

settings = get_settings()

SERVICE_NAME = "shipsheet"
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Fulfillment tracking sheet for admins and vendors"

setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    try:
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
    except OSError as e:
        logger.error(f"Migration error: {e}")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

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

# Every failure leaves the API as {"error": "..."}
@app.exception_handler(OrderStoreError)
async def order_store_error_handler(request: Request, exc: OrderStoreError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message}
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

# Failed reads and profile lookups; get_db closes the session, which rolls it back
@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Database error",
        exc_info=exc,
        extra={"extra_fields": {"path": request.url.path, "method": request.method}}
    )
    return JSONResponse(status_code=500, content={"error": "database unavailable"})

health_service = ServiceHealth(SERVICE_NAME, engine, SERVICE_VERSION)
app.include_router(health_service.create_health_router())

app.include_router(orders_router)
app.include_router(profiles_router)

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }
