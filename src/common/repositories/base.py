"""
Repository Interface Definitions

Defines the abstract interfaces for the stores the story wizard consumes:
- Journal entries (read by id + owner)
- Tool activities (read by id list)
- Career stories (write header + evidence rows)

This enables swapping implementations (Atlas, in-memory for tests)
without changing consumer code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from src.career_stories.types import ActivityRecord, CareerStory, JournalEntry, StorySource


@dataclass
class WriteResult:
    """
    Result of a story write.

    Attributes:
        inserted_id: ID of the story header
        sources_written: Number of evidence rows persisted
        sources_failed: Whether the evidence row write failed (header kept)
        transactional: Whether header and rows were written atomically
        error: Error message for a failed secondary write
    """
    inserted_id: str
    sources_written: int = 0
    sources_failed: bool = False
    transactional: bool = False
    error: Optional[str] = None


class JournalEntryRepositoryInterface(ABC):
    """Read-only access to journal entries."""

    @abstractmethod
    def find_for_user(self, entry_id: str, user_id: str) -> Optional[JournalEntry]:
        """
        Find an entry owned by a user.

        Missing and not-owned entries are indistinguishable: both return None.

        Args:
            entry_id: Journal entry id
            user_id: Acting user's id

        Returns:
            JournalEntry if found and owned, None otherwise
        """
        pass


class ActivityRepositoryInterface(ABC):
    """Read-only access to tool activities."""

    @abstractmethod
    def find_by_ids(self, activity_ids: Sequence[str]) -> List[ActivityRecord]:
        """
        Fetch activities by id. Unknown ids are skipped.

        Args:
            activity_ids: Activity ids to fetch

        Returns:
            Matching activity records (any order)
        """
        pass


class CareerStoryRepositoryInterface(ABC):
    """Append-only story store."""

    @abstractmethod
    def create_with_sources(self, story: CareerStory, sources: List[StorySource]) -> WriteResult:
        """
        Persist a story header and its evidence rows.

        Writes atomically where the store supports it. Otherwise the header
        is written first and a failed evidence write is logged, not raised.

        Args:
            story: Story header
            sources: Evidence rows for the story

        Returns:
            WriteResult

        Raises:
            Exception: If the header write fails
        """
        pass
