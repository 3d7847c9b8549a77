"""
Fixtures for career story wizard tests.

The default service has no chat model: questions come from the static
bank and narratives from the local fallback.
"""

from typing import Dict, List

import pytest

from src.career_stories.story_wizard import StoryWizardService
from src.career_stories.types import ActivityRecord, JournalEntry

from tests.unit.career_stories.fakes import (
    InMemoryActivityRepository,
    InMemoryEntryRepository,
    InMemoryStoryRepository,
    make_activities,
    make_entry,
)


@pytest.fixture
def entry() -> JournalEntry:
    return make_entry()


@pytest.fixture
def activities() -> List[ActivityRecord]:
    return make_activities()


@pytest.fixture
def entry_repository(entry) -> InMemoryEntryRepository:
    return InMemoryEntryRepository([entry])


@pytest.fixture
def activity_repository(activities) -> InMemoryActivityRepository:
    return InMemoryActivityRepository(activities)


@pytest.fixture
def story_repository() -> InMemoryStoryRepository:
    return InMemoryStoryRepository()


@pytest.fixture
def service(entry_repository, activity_repository, story_repository) -> StoryWizardService:
    """Wizard with no chat model."""
    return StoryWizardService(entry_repository, activity_repository, story_repository)


@pytest.fixture
def full_answers() -> Dict[str, dict]:
    return {
        "ff-dig-1": {"selected": ["Got paged/alerted"], "freeText": "Paged at 2am, checkout was down"},
        "ff-dig-2": {"selected": [], "freeText": "Called Sarah Chen from payments and Marcus on SRE"},
        "ff-dig-3": {"selected": [], "freeText": "The leak only showed under load"},
        "ff-impact-1": {"selected": ["Revenue/money at risk"], "freeText": "We'd have lost the sale weekend"},
        "ff-impact-2": {"selected": [], "freeText": "Recovered $120,000 in orders within 3 hours"},
        "ff-growth-1": {"selected": [], "freeText": "We added a pool saturation alert"},
    }
