"""
Tests for the repository pattern implementation.

Covers the Atlas stores behind the story wizard: configuration, owner-scoped
entry reads, activity lookups, and the story + evidence write with its
transaction fallback.
"""

import pytest
from unittest.mock import MagicMock, patch

from bson import ObjectId
from pymongo.errors import AutoReconnect, ConfigurationError, OperationFailure

from src.common.repositories import (
    RepositoryConfig,
    WriteResult,
    get_career_story_repository,
    get_journal_entry_repository,
    reset_repositories,
)
from src.common.repositories.atlas_repository import (
    AtlasActivityRepository,
    AtlasBase,
    AtlasCareerStoryRepository,
    AtlasJournalEntryRepository,
    id_candidates,
)
from src.career_stories.types import (
    CareerStory,
    FrameworkName,
    SourceType,
    StoryArchetype,
    StorySection,
    StorySource,
)


@pytest.fixture(autouse=True)
def reset_singleton():
    """Reset the shared client and factory singletons around each test."""
    reset_repositories()
    AtlasBase.reset_connection()
    yield
    reset_repositories()
    AtlasBase.reset_connection()


@pytest.fixture
def collections():
    """Named mock collections reachable through client[db][name]."""
    named = {}

    def get(name):
        return named.setdefault(name, MagicMock(name=name))

    with patch("src.common.repositories.atlas_repository.MongoClient") as mock_client:
        mock_db = MagicMock()
        mock_db.__getitem__.side_effect = get
        mock_client.return_value.__getitem__.return_value = mock_db
        yield get


def _story(story_id="story-1"):
    return CareerStory(
        id=story_id,
        user_id="alice",
        journal_entry_id="entry-1",
        title="Saving checkout",
        hook="Got paged at 2am.",
        framework=FrameworkName.STAR,
        archetype=StoryArchetype.FIREFIGHTER,
        sections={"situation": StorySection(summary="Checkout failed.")},
    )


def _sources():
    return [
        StorySource(section_key="situation", source_type=SourceType.ACTIVITY, activity_id="act-1",
                    label="INC-991", sort_order=0),
        StorySource(section_key="situation", source_type=SourceType.WIZARD_ANSWER,
                    label="ff-dig-1", annotation="2am page", sort_order=1),
    ]


# ===== TESTS: Config =====

class TestWriteResult:
    """Tests for WriteResult dataclass."""

    def test_write_result_defaults(self):
        """WriteResult should have sensible defaults."""
        result = WriteResult(inserted_id="story-1")

        assert result.sources_written == 0
        assert result.sources_failed is False
        assert result.transactional is False
        assert result.error is None


class TestRepositoryConfig:
    """Tests for RepositoryConfig."""

    def test_config_from_env_minimal(self):
        """Should load minimal config from environment."""
        with patch.dict("os.environ", {"MONGODB_URI": "mongodb://atlas"}, clear=True):
            config = RepositoryConfig.from_env()

            assert config.atlas_uri == "mongodb://atlas"
            assert config.database == "career_stories"
            assert config.entries_collection == "journal_entries"
            assert config.sources_collection == "story_sources"

    def test_config_database_override(self):
        """MONGODB_DATABASE should override the database name."""
        env = {"MONGODB_URI": "mongodb://atlas", "MONGODB_DATABASE": "staging"}
        with patch.dict("os.environ", env, clear=True):
            assert RepositoryConfig.from_env().database == "staging"

    def test_config_from_env_missing_uri(self):
        """Should raise ValueError if MONGODB_URI is not set."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="MONGODB_URI"):
                RepositoryConfig.from_env()


class TestRepositoryFactory:
    """Tests for the singleton factory functions."""

    def test_returns_singleton(self):
        """Repeated calls return the same instance."""
        first = get_journal_entry_repository()
        assert isinstance(first, AtlasJournalEntryRepository)
        assert get_journal_entry_repository() is first

    def test_reset_creates_new_instance(self):
        """reset_repositories drops cached instances."""
        first = get_career_story_repository()
        reset_repositories()
        assert get_career_story_repository() is not first


# ===== TESTS: Reads =====

class TestIdCandidates:
    """Tests for id_candidates."""

    def test_object_id_string(self):
        """Hex ids match both the ObjectId and the raw string."""
        value = "65f0c0ffee0000000000abcd"
        assert id_candidates(value) == [ObjectId(value), value]

    def test_plain_string(self):
        """Other ids match only as strings."""
        assert id_candidates("act-pr") == ["act-pr"]


class TestAtlasJournalEntryRepository:
    """Tests for AtlasJournalEntryRepository."""

    def test_find_scoped_to_owner(self, collections):
        """The query must include the owner."""
        entries = collections("journal_entries")
        entries.find_one.return_value = {
            "_id": "entry-1",
            "user_id": "alice",
            "title": "Fixed the outage",
            "activity_ids": ["act-1"],
        }
        repo = AtlasJournalEntryRepository("mongodb://test")

        entry = repo.find_for_user("entry-1", "alice")

        query = entries.find_one.call_args[0][0]
        assert query["user_id"] == "alice"
        assert query["_id"] == {"$in": ["entry-1"]}
        assert entry.id == "entry-1"
        assert entry.activity_ids == ["act-1"]

    def test_missing_returns_none(self, collections):
        """A missing or foreign entry reads as None."""
        collections("journal_entries").find_one.return_value = None
        repo = AtlasJournalEntryRepository("mongodb://test")
        assert repo.find_for_user("entry-1", "mallory") is None

    def test_retries_transient_errors(self, collections):
        """AutoReconnect should be retried before succeeding."""
        entries = collections("journal_entries")
        entries.find_one.side_effect = [
            AutoReconnect("primary stepped down"),
            {"_id": "entry-1", "user_id": "alice"},
        ]
        repo = AtlasJournalEntryRepository("mongodb://test")

        assert repo.find_for_user("entry-1", "alice").id == "entry-1"
        assert entries.find_one.call_count == 2

    def test_query_errors_propagate(self, collections):
        """Non-transient errors are not retried."""
        entries = collections("journal_entries")
        entries.find_one.side_effect = OperationFailure("bad query", code=2)
        repo = AtlasJournalEntryRepository("mongodb://test")

        with pytest.raises(OperationFailure):
            repo.find_for_user("entry-1", "alice")
        assert entries.find_one.call_count == 1


class TestAtlasActivityRepository:
    """Tests for AtlasActivityRepository."""

    def test_empty_ids_skip_query(self, collections):
        """No ids means no round trip."""
        activities = collections("tool_activities")
        assert AtlasActivityRepository("mongodb://test").find_by_ids([]) == []
        activities.find.assert_not_called()

    def test_find_by_ids(self, collections):
        """Documents are mapped to activity records."""
        activities = collections("tool_activities")
        activities.find.return_value = [
            {"_id": "act-1", "source": "github", "title": "Fix leak",
             "raw_data": {"author": "alice"}, "timestamp": "2026-02-27T10:00:00Z"},
        ]

        records = AtlasActivityRepository("mongodb://test").find_by_ids(["act-1"])

        assert activities.find.call_args[0][0] == {"_id": {"$in": ["act-1"]}}
        assert records[0].source == "github"
        assert records[0].raw_data == {"author": "alice"}
        assert records[0].timestamp is not None


# ===== TESTS: Story Writes =====

class TestAtlasCareerStoryRepository:
    """Tests for the story header + evidence write."""

    def test_transactional_write(self, collections):
        """Header and rows are written in one transaction when supported."""
        stories = collections("career_stories")
        sources = collections("story_sources")
        repo = AtlasCareerStoryRepository("mongodb://test")

        result = repo.create_with_sources(_story(), _sources())

        assert result.transactional is True
        assert result.sources_written == 2
        assert stories.insert_one.call_args[0][0]["_id"] == "story-1"
        assert "session" in stories.insert_one.call_args[1]
        rows = sources.insert_many.call_args[0][0]
        assert [r["story_id"] for r in rows] == ["story-1", "story-1"]
        assert rows[1]["source_type"] == "wizard_answer"

    @pytest.mark.parametrize("error", [
        OperationFailure("Transaction numbers are only allowed on a replica set", code=20),
        OperationFailure("Transactions are not supported", code=263),
        ConfigurationError("Sessions are not supported"),
    ])
    def test_falls_back_without_transactions(self, collections, error):
        """Standalone deployments get a header-then-rows write."""
        stories = collections("career_stories")
        sources = collections("story_sources")
        stories.insert_one.side_effect = [error, None]
        sources.insert_many.return_value.inserted_ids = ["a", "b"]
        repo = AtlasCareerStoryRepository("mongodb://test")

        result = repo.create_with_sources(_story(), _sources())

        assert result.transactional is False
        assert result.sources_written == 2
        assert stories.insert_one.call_count == 2
        assert "session" not in stories.insert_one.call_args[1]

    def test_remembers_missing_transaction_support(self, collections):
        """After one fallback, later writes go straight to the sequential path."""
        stories = collections("career_stories")
        stories.insert_one.side_effect = [OperationFailure("no txn", code=20), None, None]
        collections("story_sources").insert_many.return_value.inserted_ids = ["a", "b"]
        repo = AtlasCareerStoryRepository("mongodb://test")

        repo.create_with_sources(_story("story-1"), _sources())
        repo.create_with_sources(_story("story-2"), _sources())

        assert stories.insert_one.call_count == 3
        AtlasBase._client.start_session.assert_called_once()

    def test_other_write_errors_propagate(self, collections):
        """Header write failures are fail-fast."""
        collections("career_stories").insert_one.side_effect = OperationFailure("unauthorized", code=13)
        repo = AtlasCareerStoryRepository("mongodb://test")

        with pytest.raises(OperationFailure):
            repo.create_with_sources(_story(), _sources())

    def test_source_failure_keeps_header(self, collections):
        """A failed evidence write is reported, not raised."""
        stories = collections("career_stories")
        stories.insert_one.side_effect = [ConfigurationError("no sessions"), None]
        collections("story_sources").insert_many.side_effect = RuntimeError("bulk write failed")
        repo = AtlasCareerStoryRepository("mongodb://test")

        result = repo.create_with_sources(_story(), _sources())

        assert result.inserted_id == "story-1"
        assert result.sources_failed is True
        assert result.error

    def test_no_sources(self, collections):
        """A story without evidence still writes its header."""
        sources = collections("story_sources")
        repo = AtlasCareerStoryRepository("mongodb://test")

        result = repo.create_with_sources(_story(), [])

        assert result.sources_written == 0
        sources.insert_many.assert_not_called()
