"""
FastAPI application entry point
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from dinebook_service.app.api.v1 import router as api_router
from dinebook_service.app.api.v1.errors import format_validation_errors
from dinebook_service.app.metrics import metrics_middleware, metrics_response
from dinebook_service.config import get_settings
from dinebook_service.infrastructure.database.session import close_client, ensure_indexes, get_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events - make sure indexes exist on startup, close the client on shutdown"""
    try:
        ensure_indexes(next(get_db()))
        logger.info("✅ DineBook Service initialized")
    except PyMongoError as e:
        logger.warning(f"⚠️  Could not ensure MongoDB indexes: {e}")
        logger.warning("Nearby search runs in degraded mode until the geospatial index exists.")

    yield

    close_client()


app = FastAPI(
    title="DineBook Service",
    description="Restaurant discovery, table booking, reviews and favorites",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [settings.frontend_origin],
    allow_credentials=not settings.debug,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(metrics_middleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with a field-level message"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": format_validation_errors(exc.errors())}
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "Welcome to the DineBook API"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus text exposition"""
    return metrics_response()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
