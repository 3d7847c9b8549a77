"""
Repository Configuration and Factory

Provides factory functions returning the Atlas repository implementations
configured from the environment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .base import (
    ActivityRepositoryInterface,
    CareerStoryRepositoryInterface,
    JournalEntryRepositoryInterface,
)

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """
    Configuration for repository initialization.

    Loaded from environment variables with sensible defaults.
    """
    # Atlas (required)
    atlas_uri: str

    # Database/collection names
    database: str = "career_stories"
    entries_collection: str = "journal_entries"
    activities_collection: str = "tool_activities"
    stories_collection: str = "career_stories"
    sources_collection: str = "story_sources"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI (required): Atlas MongoDB connection string
        - MONGODB_DATABASE: Database name (default: career_stories)

        Returns:
            RepositoryConfig instance

        Raises:
            ValueError: If MONGODB_URI is not set
        """
        atlas_uri = os.getenv("MONGODB_URI")
        if not atlas_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            atlas_uri=atlas_uri,
            database=os.getenv("MONGODB_DATABASE", "career_stories"),
        )


# Singleton repository instances
_entry_repository: Optional[JournalEntryRepositoryInterface] = None
_activity_repository: Optional[ActivityRepositoryInterface] = None
_story_repository: Optional[CareerStoryRepositoryInterface] = None


def get_journal_entry_repository() -> JournalEntryRepositoryInterface:
    """
    Get the journal entry repository instance.

    Raises:
        ValueError: If MongoDB URI is not configured
    """
    global _entry_repository

    if _entry_repository is None:
        config = RepositoryConfig.from_env()
        from .atlas_repository import AtlasJournalEntryRepository
        _entry_repository = AtlasJournalEntryRepository(
            mongodb_uri=config.atlas_uri,
            database=config.database,
            collection=config.entries_collection,
        )
        logger.info("Initialized Atlas journal entry repository")

    return _entry_repository


def get_activity_repository() -> ActivityRepositoryInterface:
    """
    Get the activity repository instance.

    Raises:
        ValueError: If MongoDB URI is not configured
    """
    global _activity_repository

    if _activity_repository is None:
        config = RepositoryConfig.from_env()
        from .atlas_repository import AtlasActivityRepository
        _activity_repository = AtlasActivityRepository(
            mongodb_uri=config.atlas_uri,
            database=config.database,
            collection=config.activities_collection,
        )
        logger.info("Initialized Atlas activity repository")

    return _activity_repository


def get_career_story_repository() -> CareerStoryRepositoryInterface:
    """
    Get the career story repository instance.

    Raises:
        ValueError: If MongoDB URI is not configured
    """
    global _story_repository

    if _story_repository is None:
        config = RepositoryConfig.from_env()
        from .atlas_repository import AtlasCareerStoryRepository
        _story_repository = AtlasCareerStoryRepository(
            mongodb_uri=config.atlas_uri,
            database=config.database,
            collection=config.stories_collection,
            sources_collection=config.sources_collection,
        )
        logger.info("Initialized Atlas career story repository")

    return _story_repository


def reset_repositories() -> None:
    """
    Reset the repository singletons.

    Used for testing or when configuration changes.
    """
    global _entry_repository, _activity_repository, _story_repository

    if any(r is not None for r in (_entry_repository, _activity_repository, _story_repository)):
        from .atlas_repository import AtlasBase
        AtlasBase.reset_connection()

    _entry_repository = None
    _activity_repository = None
    _story_repository = None
    logger.info("Repository singletons reset")
