"""
Test doubles for the career story wizard.

In-memory repositories and chat model stand-ins so the whole pipeline runs
without MongoDB or a provider:
- FakeListChatModel (langchain_core) for scripted responses
- FailingChatModel / SlowChatModel for the fallback paths
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from src.common.repositories.base import (
    ActivityRepositoryInterface,
    CareerStoryRepositoryInterface,
    JournalEntryRepositoryInterface,
    WriteResult,
)
from src.career_stories.types import (
    ActivityRecord,
    CareerStory,
    JournalEntry,
    StorySource,
)


# ===== REPOSITORY FAKES =====

class InMemoryEntryRepository(JournalEntryRepositoryInterface):
    def __init__(self, entries: Optional[List[JournalEntry]] = None):
        self.entries: Dict[str, JournalEntry] = {e.id: e for e in entries or []}

    def add(self, entry: JournalEntry) -> None:
        self.entries[entry.id] = entry

    def find_for_user(self, entry_id: str, user_id: str) -> Optional[JournalEntry]:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        return entry


class InMemoryActivityRepository(ActivityRepositoryInterface):
    def __init__(self, activities: Optional[List[ActivityRecord]] = None):
        self.activities: Dict[str, ActivityRecord] = {a.id: a for a in activities or []}
        self.calls: List[List[str]] = []

    def find_by_ids(self, activity_ids: Sequence[str]) -> List[ActivityRecord]:
        self.calls.append(list(activity_ids))
        return [self.activities[i] for i in activity_ids if i in self.activities]


class InMemoryStoryRepository(CareerStoryRepositoryInterface):
    def __init__(self, fail_sources: bool = False):
        self.fail_sources = fail_sources
        self.stories: List[CareerStory] = []
        self.sources: Dict[str, List[StorySource]] = {}

    def create_with_sources(self, story: CareerStory, sources: List[StorySource]) -> WriteResult:
        self.stories.append(story)
        if self.fail_sources:
            return WriteResult(inserted_id=story.id, sources_failed=True, error="bulk insert failed")
        self.sources[story.id] = list(sources)
        return WriteResult(inserted_id=story.id, sources_written=len(sources), transactional=True)


# ===== CHAT MODEL DOUBLES =====

class FailingChatModel:
    """Chat model whose every call raises."""

    def __init__(self, error: Exception = None):
        self.error = error or ConnectionError("provider unavailable")
        self.calls = 0

    async def ainvoke(self, messages, **kwargs):
        self.calls += 1
        raise self.error


class SlowChatModel:
    """Chat model that never answers within the timeout."""

    def __init__(self, delay: float = 5.0):
        self.delay = delay
        self.calls = 0

    async def ainvoke(self, messages, **kwargs):
        self.calls += 1
        await asyncio.sleep(self.delay)
        raise AssertionError("should have timed out")


class RecordingChatModel:
    """Chat model that records prompts and answers with a fixed payload."""

    def __init__(self, response):
        self.response = response if isinstance(response, str) else json.dumps(response)
        self.prompts: List[list] = []

    async def ainvoke(self, messages, **kwargs):
        self.prompts.append(list(messages))
        return AIMessage(content=self.response)

    @property
    def last_user_prompt(self) -> str:
        return self.prompts[-1][-1].content


def scripted_model(*responses) -> FakeListChatModel:
    """FakeListChatModel answering with the given payloads (dicts are JSON-encoded)."""
    return FakeListChatModel(
        responses=[r if isinstance(r, str) else json.dumps(r) for r in responses]
    )


# ===== DATA =====

USER_ID = "alice"
OTHER_USER_ID = "mallory"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_entry(
    entry_id: str = "entry-1",
    user_id: str = USER_ID,
    title: str = "Fixed the checkout outage",
    description: str = "Production checkout went down during the sale; I led the incident response.",
    full_content: str = (
        "We got paged at 2am. Checkout was returning 500s for 40% of users. "
        "I traced it to a connection pool leak and shipped a hotfix within 3 hours."
    ),
    activity_ids: Optional[List[str]] = None,
    enrichment: Optional[dict] = None,
) -> JournalEntry:
    return JournalEntry(
        id=entry_id,
        user_id=user_id,
        title=title,
        description=description,
        full_content=full_content,
        activity_ids=list(activity_ids) if activity_ids is not None else ["act-pr", "act-jira", "act-slack"],
        category="engineering",
        enrichment=enrichment or {},
    )


def make_activities() -> List[ActivityRecord]:
    return [
        ActivityRecord(
            id="act-pr",
            source="github",
            title="Fix connection pool leak in checkout",
            url="https://github.com/acme/shop/pull/42",
            raw_data={
                "number": 42,
                "author": "alice",
                "reviewers": ["bob", "carol"],
                "body": "Connections were never returned to the pool when the payment call timed out. "
                        "This change wraps the call in a context manager.",
                "additions": 180,
                "deletions": 60,
                "changedFiles": 6,
                "labels": ["hotfix", "checkout"],
                "state": "merged",
                "headRef": "fix/pool-leak",
            },
            timestamp=NOW - timedelta(days=2),
        ),
        ActivityRecord(
            id="act-jira",
            source="jira",
            title="INC-991 Checkout returning 500s",
            url="https://acme.atlassian.net/browse/INC-991",
            raw_data={
                "assignee": "alice",
                "reporter": "dave",
                "status": "Resolved",
                "labels": ["incident", "p0"],
                "comments": [{"author": "dave", "body": "Customers can't pay"}],
                "linkedIssues": ["SHOP-12"],
            },
            timestamp=NOW - timedelta(days=3),
        ),
        ActivityRecord(
            id="act-slack",
            source="slack",
            title="#incidents thread",
            raw_data={
                "parentAuthor": "dave",
                "mentions": ["alice", "erin"],
                "reactions": [{"name": "rocket", "count": 9}, {"name": "tada", "count": 4}],
            },
            timestamp=NOW - timedelta(days=3),
        ),
    ]


# ===== SCRIPTED RESPONSES =====

DYNAMIC_RESPONSE = {
    "questions": [
        {"id": "ff-dig-1", "phase": "dig", "question": "What did the first 500 look like?",
         "hint": "The exact error and who saw it."},
        {"id": "ff-impact-1", "phase": "impact", "question": "How many orders were stuck?",
         "hint": "A number, even a rough one."},
        {"id": "ff-growth-1", "phase": "growth", "question": "What alert exists now?",
         "hint": "Is it still firing correctly?"},
    ]
}

STAR_RESPONSE = {
    "title": "Saving checkout during the sale",
    "description": "Led the response to a checkout outage.",
    "fullContent": "When checkout failed for 40% of users, I traced a pool leak and shipped a fix in 3 hours.",
    "sections": {
        "situation": {"summary": "Checkout failed for 40% of users.",
                      "evidence": [{"activityId": "act-jira", "description": "Incident ticket"}]},
        "task": {"summary": "Restore checkout before the weekend.", "evidence": ["act-slack"]},
        "action": {"summary": "Traced the pool leak and shipped a hotfix.",
                   "evidence": [{"activityId": "act-pr"}]},
        "result": {"summary": "Recovered $120,000 in orders.", "evidence": []},
        "bogus": {"summary": "Not a STAR key."},
    },
    "skills": ["incident response"],
    "dominantRole": "Led",
    "phases": [{"name": "Response", "summary": "Fix", "activityIds": ["act-pr"]}],
}
