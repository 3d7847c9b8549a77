"""
Repository Pattern for MongoDB Access

Abstracts the stores the story wizard reads and writes so the service can
run against Atlas in production and in-memory fakes in tests.

Usage:
    from src.common.repositories import get_journal_entry_repository

    entries = get_journal_entry_repository()
    entry = entries.find_for_user(entry_id, user_id)
"""

from .base import (
    ActivityRepositoryInterface,
    CareerStoryRepositoryInterface,
    JournalEntryRepositoryInterface,
    WriteResult,
)
from .config import (
    RepositoryConfig,
    get_activity_repository,
    get_career_story_repository,
    get_journal_entry_repository,
    reset_repositories,
)

__all__ = [
    "ActivityRepositoryInterface",
    "CareerStoryRepositoryInterface",
    "JournalEntryRepositoryInterface",
    "WriteResult",
    "RepositoryConfig",
    "get_activity_repository",
    "get_career_story_repository",
    "get_journal_entry_repository",
    "reset_repositories",
]
