"""FastAPI application entry point"""

import os
import sys
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pagegen_api.core.config import settings
from pagegen_api.models.errors import ApplicationError
from pagegen_api.api import generate, pages, preview

# Configure logging early with force=True to override any existing config
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True,
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """Render ApplicationError as the JSON error envelope"""
    logger.warning(f"{request.method} {request.url.path} -> {exc.code.value}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.model_dump())


@app.on_event("startup")
async def startup_event():
    """Log startup diagnostic information"""
    logger.info("=" * 60)
    logger.info("PAGE GENERATOR STARTING")
    logger.info("=" * 60)
    logger.info(f"PID: {os.getpid()}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Model: {settings.openai_model}")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set - every run will use the fallback spec")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    """Report runs still in flight on shutdown"""
    if generate.running_tasks:
        logger.warning(f"Shutting down with {len(generate.running_tasks)} generation runs in flight")
    logger.info("Page generator shutdown complete")


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "healthy", "version": settings.api_version}


@app.get("/health")
async def health():
    """Health check for monitoring"""
    return {"status": "healthy"}


# Register API routes
app.include_router(generate.router, prefix="/api", tags=["generate"])
app.include_router(pages.router, prefix="/api", tags=["pages"])
app.include_router(preview.router, tags=["preview"])
