import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI

from .api import state
from .dependencies import get_intake_service, get_settings
from .logging_config import log_configuration, setup_logging
from .services.intake_service import IntakeService

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")
    log_configuration(settings)

    logging.info("Scan Intake Agent starting up...")
    intake_service = get_intake_service()
    intake_task = asyncio.create_task(intake_service.run(), name="intake-service")
    logging.info("IntakeService started as background task")

    yield

    logging.info("Scan Intake Agent shutting down...")
    intake_service.stop("application shutdown")
    await asyncio.gather(intake_task, return_exceptions=True)
    logging.info("All background tasks stopped")


app = FastAPI(
    title="Scan Intake Agent",
    description="Watches a drop folder, reads the barcode of each scanned document and files it under that code",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(state.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Scan Intake Agent is running"}


@app.get("/health")
async def health(intake_service: IntakeService = Depends(get_intake_service)):
    """Detailed health check."""
    return {
        "status": "healthy" if intake_service.is_healthy else "unhealthy",
        "service": "scan-intake",
        "watching": intake_service.snapshot().watching,
        "error": str(intake_service.fatal_error) if intake_service.fatal_error else None,
    }


if __name__ == "__main__":
    uvicorn.run(
        "scan_intake.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level="info",
    )
