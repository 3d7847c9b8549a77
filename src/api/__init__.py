"""
HTTP surface for the career story wizard.

Contains:
- story_wizard_routes: analyze/generate endpoints (FastAPI router)
- app: application factory
"""

from src.api.story_wizard_routes import router as story_wizard_router

__all__ = ["story_wizard_router"]
