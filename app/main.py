from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import WorkflowIngestionError
from app.api.endpoints import health, quotes, savings
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    quotes.router,
    prefix=f"{settings.API_V1_PREFIX}/quotes",
    tags=["quotes"]
)

app.include_router(
    savings.router,
    prefix=f"{settings.API_V1_PREFIX}/savings",
    tags=["savings"]
)

app.include_router(
    health.router,
    prefix=f"{settings.API_V1_PREFIX}/health",
    tags=["health"]
)


@app.get("/")
async def root():
    return {
        "message": "StackShift Quote API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.exception_handler(WorkflowIngestionError)
async def workflow_ingestion_exception_handler(request: Request, exc: WorkflowIngestionError):
    """Ingestion errors that escape per-file handling are client errors."""
    logger.warning(f"{exc.kind} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "kind": exc.kind}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return a generic 500."""
    if isinstance(exc, HTTPException):
        raise exc

    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
