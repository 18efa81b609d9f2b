"""
Time-boxed cache for venue details and AI summaries, keyed by place_id.

Records are valid only while their timestamp is inside the freshness window
(24h by default). Staleness is checked on read; nothing is deleted here, an
expired record simply behaves as a miss until the next upsert overwrites it.

The in-memory backend serves tests and local runs; the Firestore backend in
src.utils.firestore_manager implements the same surface.
"""
import logging
from typing import Callable, Dict, Generic, List, Optional, Type, TypeVar
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from src.models.place_models import VenueRecord
from src.models.response_models import AiSummaryRecord, SearchLogEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)

RecordT = TypeVar("RecordT", bound=BaseModel)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_fresh(timestamp: Optional[datetime], max_age: timedelta, now: datetime) -> bool:
    """A record is fresh while no more than max_age has elapsed since it was stamped."""
    if timestamp is None:
        return False
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return now - timestamp <= max_age


class CacheTable(Generic[RecordT]):
    """One read/write surface: get_if_fresh and upsert for a single record type."""

    def __init__(self, record_cls: Type[RecordT], timestamp_field: str, clock: Clock = utcnow):
        self.record_cls = record_cls
        self.timestamp_field = timestamp_field
        self.clock = clock

    async def get_if_fresh(self, place_id: str, max_age: timedelta = DEFAULT_MAX_AGE) -> Optional[RecordT]:
        raise NotImplementedError

    async def upsert(self, record: RecordT) -> bool:
        raise NotImplementedError

    def _stamp(self, record: RecordT) -> RecordT:
        return record.model_copy(update={self.timestamp_field: self.clock()})

    def _fresh_or_none(self, record: Optional[RecordT], max_age: timedelta) -> Optional[RecordT]:
        if record is None:
            return None
        if is_fresh(getattr(record, self.timestamp_field), max_age, self.clock()):
            return record
        return None


class SearchLog:
    async def record(self, entry: SearchLogEntry) -> bool:
        raise NotImplementedError


class CacheStore:
    """The two cache tables plus the search log, shared across requests."""

    def __init__(self, venues: CacheTable[VenueRecord], summaries: CacheTable[AiSummaryRecord], searches: SearchLog):
        self.venues = venues
        self.summaries = summaries
        self.searches = searches


class InMemoryCacheTable(CacheTable[RecordT]):

    def __init__(self, record_cls: Type[RecordT], timestamp_field: str, clock: Clock = utcnow):
        super().__init__(record_cls, timestamp_field, clock)
        self._records: Dict[str, RecordT] = {}

    async def get_if_fresh(self, place_id: str, max_age: timedelta = DEFAULT_MAX_AGE) -> Optional[RecordT]:
        record = self._fresh_or_none(self._records.get(place_id), max_age)
        if record is None:
            logger.debug(f"Cache miss for {self.record_cls.__name__} {place_id}")
        return record

    async def upsert(self, record: RecordT) -> bool:
        # Last writer wins
        self._records[record.place_id] = self._stamp(record)
        logger.debug(f"Cached {self.record_cls.__name__} {record.place_id}")
        return True

    def __len__(self) -> int:
        return len(self._records)


class InMemorySearchLog(SearchLog):

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock
        self.entries: List[SearchLogEntry] = []

    async def record(self, entry: SearchLogEntry) -> bool:
        self.entries.append(entry.model_copy(update={"created_at": self.clock()}))
        return True


def create_in_memory_store(clock: Clock = utcnow) -> CacheStore:
    return CacheStore(
        venues=InMemoryCacheTable(VenueRecord, "cached_at", clock),
        summaries=InMemoryCacheTable(AiSummaryRecord, "generated_at", clock),
        searches=InMemorySearchLog(clock),
    )
