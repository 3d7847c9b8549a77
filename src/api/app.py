"""
FastAPI application for the career story wizard.

Run with:
    uvicorn src.api.app:app --port 8000
"""

import logging

from fastapi import FastAPI

from src.api.story_wizard_routes import router as story_wizard_router
from src.common.config import Config
from src.common.logger import setup_logging
from version import __version__

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application and log the effective configuration."""
    setup_logging()
    application = FastAPI(title="Career Story Wizard", version=__version__)
    application.include_router(story_wizard_router)
    logger.info(f"Career story wizard configured: {Config.summary()}")
    return application


app = create_app()
