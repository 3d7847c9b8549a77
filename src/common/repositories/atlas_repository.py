"""
Atlas Repositories

MongoDB Atlas implementations of the wizard's stores.

Connection Management:
- One MongoClient per process, shared by all repositories
- PyMongo handles connection pooling internally

Error Handling:
- Reads retry transient AutoReconnect errors (tenacity), then propagate
- The story header write is fail-fast
- Evidence rows are written in the same transaction when the deployment
  supports transactions (replica set / sharded); otherwise after the
  header, logging and continuing if they fail
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import AutoReconnect, ConfigurationError, OperationFailure
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.common.error_handling import log_on_exception, safe_execute
from src.career_stories.types import ActivityRecord, CareerStory, JournalEntry, StorySource
from .base import (
    ActivityRepositoryInterface,
    CareerStoryRepositoryInterface,
    JournalEntryRepositoryInterface,
    WriteResult,
)

logger = logging.getLogger(__name__)

# Transient connection errors only; query errors propagate immediately
read_retry = retry(
    retry=retry_if_exception_type(AutoReconnect),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    reraise=True,
)

# Server codes meaning "this deployment can't run transactions"
TRANSACTIONS_UNSUPPORTED_CODES = {20, 263}


def id_candidates(value: str) -> List[Any]:
    """Match ids stored either as ObjectId or as plain strings."""
    candidates: List[Any] = [value]
    try:
        candidates.insert(0, ObjectId(value))
    except (InvalidId, TypeError):
        pass
    return candidates


class AtlasBase:
    """Shared MongoClient singleton for Atlas repositories."""

    _client: Optional[MongoClient] = None

    def __init__(self, mongodb_uri: str, database: str, collection: str):
        self._mongodb_uri = mongodb_uri
        self._database_name = database
        self._collection_name = collection

    def _get_client(self) -> MongoClient:
        if AtlasBase._client is None:
            AtlasBase._client = MongoClient(self._mongodb_uri)
            logger.info(f"Atlas client connected: {self._database_name}")
        return AtlasBase._client

    def _get_collection(self, name: Optional[str] = None) -> Collection:
        return self._get_client()[self._database_name][name or self._collection_name]

    @classmethod
    def reset_connection(cls) -> None:
        """
        Reset the connection pool.

        Used for testing or connection recovery.
        """
        if AtlasBase._client:
            AtlasBase._client.close()
        AtlasBase._client = None
        logger.info("Atlas repository connection reset")


class AtlasJournalEntryRepository(AtlasBase, JournalEntryRepositoryInterface):
    """Journal entries from the `journal_entries` collection."""

    def __init__(self, mongodb_uri: str, database: str = "career_stories", collection: str = "journal_entries"):
        super().__init__(mongodb_uri, database, collection)

    @read_retry
    def find_for_user(self, entry_id: str, user_id: str) -> Optional[JournalEntry]:
        doc = self._get_collection().find_one(
            {"_id": {"$in": id_candidates(entry_id)}, "user_id": user_id}
        )
        return JournalEntry.from_document(doc) if doc else None


class AtlasActivityRepository(AtlasBase, ActivityRepositoryInterface):
    """Tool activities from the `tool_activities` collection."""

    def __init__(self, mongodb_uri: str, database: str = "career_stories", collection: str = "tool_activities"):
        super().__init__(mongodb_uri, database, collection)

    @read_retry
    def find_by_ids(self, activity_ids: Sequence[str]) -> List[ActivityRecord]:
        if not activity_ids:
            return []
        candidates: List[Any] = []
        for activity_id in activity_ids:
            candidates.extend(id_candidates(activity_id))
        cursor = self._get_collection().find({"_id": {"$in": candidates}})
        return [ActivityRecord.from_document(doc) for doc in cursor]


class AtlasCareerStoryRepository(AtlasBase, CareerStoryRepositoryInterface):
    """
    Append-only story store: headers in `career_stories`, evidence rows in
    `story_sources`.
    """

    def __init__(
        self,
        mongodb_uri: str,
        database: str = "career_stories",
        collection: str = "career_stories",
        sources_collection: str = "story_sources",
    ):
        super().__init__(mongodb_uri, database, collection)
        self._sources_collection_name = sources_collection
        self._supports_transactions: Optional[bool] = None

    def _source_documents(self, story: CareerStory, sources: List[StorySource]) -> List[Dict[str, Any]]:
        return [s.to_document(story.id) for s in sources]

    def _write_transactional(self, story: CareerStory, sources: List[StorySource]) -> WriteResult:
        client = self._get_client()
        stories = self._get_collection()
        source_rows = self._get_collection(self._sources_collection_name)
        docs = self._source_documents(story, sources)

        with client.start_session() as session:
            with session.start_transaction():
                stories.insert_one(story.to_document(), session=session)
                if docs:
                    source_rows.insert_many(docs, session=session)

        return WriteResult(inserted_id=story.id, sources_written=len(docs), transactional=True)

    def _write_sequential(self, story: CareerStory, sources: List[StorySource]) -> WriteResult:
        with log_on_exception(logger, f"story header insert ({story.id})", level=logging.ERROR):
            self._get_collection().insert_one(story.to_document())

        docs = self._source_documents(story, sources)
        if not docs:
            return WriteResult(inserted_id=story.id)

        result = safe_execute(
            self._get_collection(self._sources_collection_name).insert_many,
            docs,
            operation_name=f"story sources insert ({story.id})",
            logger=logger,
            critical=True,
        )
        if result is None:
            return WriteResult(
                inserted_id=story.id,
                sources_failed=True,
                error="evidence rows not written",
            )
        return WriteResult(inserted_id=story.id, sources_written=len(result.inserted_ids))

    def create_with_sources(self, story: CareerStory, sources: List[StorySource]) -> WriteResult:
        if self._supports_transactions is not False:
            try:
                result = self._write_transactional(story, sources)
                self._supports_transactions = True
                return result
            except (OperationFailure, ConfigurationError) as e:
                code = getattr(e, "code", None)
                if isinstance(e, OperationFailure) and code not in TRANSACTIONS_UNSUPPORTED_CODES:
                    raise
                logger.info(f"Transactions unsupported ({e}); writing story rows sequentially")
                self._supports_transactions = False

        return self._write_sequential(story, sources)
