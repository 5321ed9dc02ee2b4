import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv, find_dotenv

# Load environment variables
_ = load_dotenv(find_dotenv())

from gitsync.config import get_settings
from gitsync.core.logging_config import setup_logging
from gitsync.exceptions import AppException
from gitsync.exception_handlers import app_exception_handler, unhandled_exception_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    setup_logging()
    settings = get_settings()
    logger.info(f"GitHub sync API ready (api_base={settings.api_base}, batch_size={settings.batch_size})")

    yield

    logger.info("GitHub sync API shutting down")


app = FastAPI(
    title="GitSync API",
    description="Imports GitHub repositories into a project file set and pushes edits back as commits",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Adjust this for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Import and register routers
from gitsync.api.routers import github
app.include_router(github.router, prefix="/api")


@app.get("/health")
async def health_check():
    """Root health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/health")
async def api_health_check():
    """API health check endpoint."""
    return {"status": "healthy", "service": "gitsync"}
