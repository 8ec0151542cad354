import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from kubedash.core.config import settings
from kubedash.core.exceptions import ClusterReadError, OverviewBuildError
from kubedash.api.v1.api import api_router
from kubedash.models.kubernetes import ErrorResponse

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STATUS_BY_REASON = {
    "unreachable": 503,
    "api_error": 502,
    "malformed": 502,
}

# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Kubernetes cluster resource monitoring API",
    openapi_url="/api/v1/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(OverviewBuildError)
async def overview_build_error_handler(request: Request, exc: OverviewBuildError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(
        error=f"Failed to read {exc.source}",
        detail=str(exc.cause),
        source=exc.source,
    )
    return JSONResponse(status_code=STATUS_BY_REASON.get(exc.reason, 500), content=body.model_dump())


@app.exception_handler(ClusterReadError)
async def cluster_read_error_handler(request: Request, exc: ClusterReadError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(error="Cluster read failed", detail=str(exc), source=exc.source)
    return JSONResponse(status_code=STATUS_BY_REASON.get(exc.reason, 500), content=body.model_dump())


# Root endpoint
@app.get("/")
async def root():
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }

# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.app_version}
