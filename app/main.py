"""
Main FastAPI application.

Single-IP proxy in front of the Alto listings API.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1 import alto_import
from app.core.api_errors import ConfigurationError, ProxyAuthorizationError
from app.core.config import get_settings
from app.sources.alto.client import AltoClient
from app.sources.alto.importer import AltoImporter
from app.sources.alto.token_manager import TokenManager

SERVICE_NAME = "Alto Proxy"
SERVICE_VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_importer(settings) -> AltoImporter:
    """Wire the Alto client, token cache and importer from settings."""
    client = AltoClient(
        api_base=settings.api_base,
        branch_id=settings.alto_branch_id,
        timeout=settings.alto_http_timeout_seconds,
    )
    token_manager = TokenManager(
        client=client,
        username=settings.alto_username,
        password=settings.alto_password,
        ttl_seconds=settings.alto_token_ttl_seconds,
    )
    return AltoImporter(
        client=client,
        token_manager=token_manager,
        strict_student_match=settings.alto_strict_student_match,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Runs on startup and shutdown.
    """
    # Startup
    try:
        settings = get_settings().validate_required()
    except ConfigurationError as e:
        logger.error(f"Refusing to start, missing configuration: {e.missing_config}")
        raise
    logging.getLogger().setLevel(settings.log_level)
    logger.info(f"Starting {SERVICE_NAME}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Alto branch: {settings.alto_branch_id}")

    importer = build_importer(settings)
    app.state.alto_importer = importer

    yield

    # Shutdown
    await importer.client.close()
    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Fetches student lettings from Alto and returns normalized listings",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

app.include_router(alto_import.router)


@app.exception_handler(ProxyAuthorizationError)
async def unauthorized_handler(request: Request, exc: ProxyAuthorizationError):
    return JSONResponse(status_code=401, content={"success": False, "error": exc.message})


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": ["/health", "/import"],
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint. Never requires authorization."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": alto_import.utc_timestamp(),
    }
