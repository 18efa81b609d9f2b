import asyncio

from google.api_core import exceptions as gcp_exceptions

from src.models.response_models import AiSummaryRecord, SearchLogEntry
from src.models.place_models import Coordinates, VenueRecord
from src.utils.firestore_manager import FirestoreCacheTable, FirestoreSearchLog

from conftest import venue_record


class FakeSnapshot:
    def __init__(self, data):
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.doc_id = doc_id

    def get(self):
        return FakeSnapshot(self.collection.docs.get(self.doc_id))

    def set(self, data):
        if self.collection.failures:
            raise self.collection.failures.pop(0)
        self.collection.docs[self.doc_id] = data


class FakeCollection:
    def __init__(self):
        self.docs = {}
        self.added = []
        self.failures = []

    def document(self, doc_id):
        return FakeDocument(self, doc_id)

    def add(self, data):
        self.added.append(data)


class FakeFirestoreClient:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


def test_upsert_writes_document_keyed_by_place_id(clock):
    client = FakeFirestoreClient()
    table = FirestoreCacheTable(client, "restaurants", VenueRecord, "cached_at", clock)

    assert asyncio.run(table.upsert(venue_record("p1", rating=4.5)))

    stored = client.collection("restaurants").docs["p1"]
    assert stored["place_id"] == "p1"
    assert stored["rating"] == 4.5
    assert stored["cached_at"] == clock.now


def test_get_if_fresh_honours_the_window(clock):
    client = FakeFirestoreClient()
    table = FirestoreCacheTable(client, "restaurants", VenueRecord, "cached_at", clock)
    asyncio.run(table.upsert(venue_record("p1")))

    clock.advance(hours=23)
    assert asyncio.run(table.get_if_fresh("p1")).place_id == "p1"

    clock.advance(hours=1, seconds=1)
    assert asyncio.run(table.get_if_fresh("p1")) is None


def test_missing_and_unreadable_documents_are_misses(clock):
    client = FakeFirestoreClient()
    client.collection("restaurant_ai_summaries").docs["p2"] = {"place_id": "p2", "rank_score": "n/a"}
    table = FirestoreCacheTable(client, "restaurant_ai_summaries", AiSummaryRecord, "generated_at", clock)

    assert asyncio.run(table.get_if_fresh("p1")) is None
    assert asyncio.run(table.get_if_fresh("p2")) is None


def test_transient_write_errors_are_retried(clock):
    client = FakeFirestoreClient()
    client.collection("restaurants").failures = [gcp_exceptions.ServiceUnavailable("try again")]
    table = FirestoreCacheTable(client, "restaurants", VenueRecord, "cached_at", clock)

    assert asyncio.run(table.upsert(venue_record("p1")))
    assert "p1" in client.collection("restaurants").docs


def test_permanent_write_errors_report_failure(clock):
    client = FakeFirestoreClient()
    client.collection("restaurants").failures = [gcp_exceptions.PermissionDenied("no")]
    table = FirestoreCacheTable(client, "restaurants", VenueRecord, "cached_at", clock)

    assert asyncio.run(table.upsert(venue_record("p1"))) is False
    assert client.collection("restaurants").docs == {}


def test_search_log_appends_entries(clock):
    client = FakeFirestoreClient()
    log = FirestoreSearchLog(client, "user_searches", clock)
    entry = SearchLogEntry(
        search_location=Coordinates(lat=1.0, lng=2.0),
        location_query="1,2",
        filters={"max_price": 2},
        results_count=7,
    )

    assert asyncio.run(log.record(entry))

    added = client.collection("user_searches").added
    assert len(added) == 1
    assert added[0]["results_count"] == 7
    assert added[0]["created_at"] == clock.now
