import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional, Type
from datetime import timedelta

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.oauth2 import service_account
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from src.models.place_models import VenueRecord
from src.models.response_models import AiSummaryRecord, SearchLogEntry
from src.services.places_cache import (
    DEFAULT_MAX_AGE,
    CacheStore,
    CacheTable,
    Clock,
    RecordT,
    SearchLog,
    utcnow,
)
from src.utils.config import Settings

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    gcp_exceptions.ServiceUnavailable,
    gcp_exceptions.DeadlineExceeded,
    gcp_exceptions.Aborted,
)

_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)


async def _run_blocking(fn: Callable[..., Any], *args: Any) -> Any:
    # The Firestore client is synchronous; run it off the event loop
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args))


class FirestoreCacheTable(CacheTable[RecordT]):
    """Cache table stored as one Firestore document per place_id."""

    def __init__(self, client: firestore.Client, collection_name: str, record_cls: Type[RecordT],
                 timestamp_field: str, clock: Clock = utcnow):
        super().__init__(record_cls, timestamp_field, clock)
        self.client = client
        self.collection_name = collection_name

    def _collection(self):
        return self.client.collection(self.collection_name)

    def _read(self, place_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collection().document(place_id).get()
        return doc.to_dict() if doc.exists else None

    @_write_retry
    def _write(self, place_id: str, data: Dict[str, Any]) -> None:
        self._collection().document(place_id).set(data)

    async def get_if_fresh(self, place_id: str, max_age: timedelta = DEFAULT_MAX_AGE) -> Optional[RecordT]:
        try:
            data = await _run_blocking(self._read, place_id)
        except Exception as e:
            logger.error(f"Firestore get failed for {self.collection_name}/{place_id}: {e}")
            return None
        if data is None:
            return None
        try:
            record = self.record_cls.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache document {self.collection_name}/{place_id}: {e}")
            return None
        return self._fresh_or_none(record, max_age)

    async def upsert(self, record: RecordT) -> bool:
        stamped = self._stamp(record)
        try:
            await _run_blocking(self._write, stamped.place_id, stamped.model_dump())
        except Exception as e:
            logger.error(f"Firestore save failed for {self.collection_name}/{record.place_id}: {e}")
            return False
        logger.info(f"Cached {self.record_cls.__name__} {record.place_id} to Firestore")
        return True


class FirestoreSearchLog(SearchLog):

    def __init__(self, client: firestore.Client, collection_name: str, clock: Clock = utcnow):
        self.client = client
        self.collection_name = collection_name
        self.clock = clock

    @_write_retry
    def _write(self, data: Dict[str, Any]) -> None:
        self.client.collection(self.collection_name).add(data)

    async def record(self, entry: SearchLogEntry) -> bool:
        stamped = entry.model_copy(update={"created_at": self.clock()})
        try:
            await _run_blocking(self._write, stamped.model_dump())
        except Exception as e:
            logger.error(f"Firestore search log write failed: {e}")
            return False
        return True


class FirestoreManager:
    """Lightweight wrapper around Firestore for the restaurant cache."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = logging.getLogger(__name__)
        project_id = self.settings.FIRESTORE_PROJECT_ID or self.settings.GOOGLE_CLOUD_PROJECT
        try:
            # Prefer explicit Firestore credentials if provided (split-project support)
            credentials = None
            if self.settings.FIRESTORE_CREDENTIALS:
                credentials = service_account.Credentials.from_service_account_file(
                    self.settings.FIRESTORE_CREDENTIALS
                )
            database = self.settings.FIRESTORE_DATABASE_ID or None  # default DB if None
            # Use explicit creds or fall back to ADC
            self.client = firestore.Client(project=project_id, credentials=credentials, database=database)
            self.logger.info("Initialized Firestore client", extra={"project": project_id, "database": database or "(default)"})
        except Exception:
            self.logger.exception("Failed to initialize Firestore client")
            raise

    def create_cache_store(self, clock: Clock = utcnow) -> CacheStore:
        return CacheStore(
            venues=FirestoreCacheTable(
                self.client, self.settings.FIRESTORE_RESTAURANTS_COLLECTION, VenueRecord, "cached_at", clock
            ),
            summaries=FirestoreCacheTable(
                self.client, self.settings.FIRESTORE_SUMMARIES_COLLECTION, AiSummaryRecord, "generated_at", clock
            ),
            searches=FirestoreSearchLog(self.client, self.settings.FIRESTORE_SEARCHES_COLLECTION, clock),
        )
