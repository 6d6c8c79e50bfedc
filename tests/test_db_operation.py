from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from core.exceptions import NotFound, StoreUnavailable
from db.db_operation import MongoDocumentStore, _mongo_field, _mongo_value, _to_record, keyset_filter
from services.listing_service import LISTING_ORDER


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self.sort_spec = None
        self.limit_value = None

    def sort(self, spec):
        self.sort_spec = spec
        return self

    def limit(self, n):
        self.limit_value = n
        return self

    async def to_list(self, length=None):
        return list(self.docs)


class FakeCollection:
    def __init__(self, docs=None, matched=1, error=None):
        self.docs = docs or []
        self.matched = matched
        self.error = error
        self.filters = []
        self.cursor = None

    def find(self, q):
        self.filters.append(q)
        if self.error:
            raise self.error
        self.cursor = FakeCursor(self.docs)
        return self.cursor

    async def update_one(self, q, update):
        self.filters.append(q)
        if self.error:
            raise self.error
        return SimpleNamespace(matched_count=self.matched)

    async def delete_one(self, q):
        self.filters.append(q)
        if self.error:
            raise self.error
        return SimpleNamespace(deleted_count=self.matched)


def make_store(collection):
    return MongoDocumentStore({"shops": collection})


def matches(doc, condition):
    """Evaluate the subset of Mongo filter syntax that keyset_filter emits."""
    if "$or" in condition:
        return any(matches(doc, c) for c in condition["$or"])
    for field, expected in condition.items():
        value = doc.get(field)
        if isinstance(expected, dict):
            op, bound = next(iter(expected.items()))
            if op == "$lt" and not value < bound:
                return False
            if op == "$gt" and not value > bound:
                return False
        elif value != expected:
            return False
    return True


def test_keyset_filter_shape_for_newest_first_order():
    anchor_oid = ObjectId()
    ts = datetime(2024, 3, 1, tzinfo=timezone.utc)

    q = keyset_filter(LISTING_ORDER, {"id": str(anchor_oid), "created_at": ts})

    assert q == {"$or": [
        {"created_at": {"$lt": ts}},
        {"created_at": ts, "_id": {"$lt": anchor_oid}},
    ]}


def test_keyset_filter_uses_gt_for_ascending_keys():
    q = keyset_filter([("name", 1)], {"name": "m"})
    assert q == {"$or": [{"name": {"$gt": "m"}}]}


def test_keyset_filter_orders_unequal_and_equal_timestamps():
    older = datetime(2024, 1, 1, tzinfo=timezone.utc)
    same = datetime(2024, 2, 1, tzinfo=timezone.utc)
    newer = datetime(2024, 3, 1, tzinfo=timezone.utc)
    low, anchor_id, high = sorted(ObjectId() for _ in range(3))
    q = keyset_filter(LISTING_ORDER, {"id": str(anchor_id), "created_at": same})

    # unequal timestamps: only older records come after the anchor
    assert matches({"_id": high, "created_at": older}, q)
    assert not matches({"_id": low, "created_at": newer}, q)
    # equal timestamps: the smaller id comes after the anchor, the anchor itself does not
    assert matches({"_id": low, "created_at": same}, q)
    assert not matches({"_id": high, "created_at": same}, q)
    assert not matches({"_id": anchor_id, "created_at": same}, q)


def test_to_record_renames_object_id():
    oid = ObjectId()
    record = _to_record({"_id": oid, "name": "Shop"})
    assert record == {"id": str(oid), "name": "Shop"}


def test_mongo_value_maps_only_valid_object_ids():
    oid = ObjectId()
    assert _mongo_field("id") == "_id"
    assert _mongo_field("created_at") == "created_at"
    assert _mongo_value("id", str(oid)) == oid
    assert _mongo_value("id", "not-an-object-id") == "not-an-object-id"
    assert _mongo_value("name", str(oid)) == str(oid)


@pytest.mark.asyncio
async def test_query_combines_predicate_with_keyset_and_sort():
    oid = ObjectId()
    ts = datetime(2024, 3, 1, tzinfo=timezone.utc)
    collection = FakeCollection(docs=[{"_id": oid, "name": "Shop", "created_at": ts}])
    store = make_store(collection)

    rows = await store.query("shops", {"status": "approved"}, order_by=LISTING_ORDER, limit=8,
                             start_after={"id": str(oid), "created_at": ts})

    assert rows == [{"id": str(oid), "name": "Shop", "created_at": ts}]
    assert collection.filters[0] == {"$and": [{"status": "approved"}, keyset_filter(LISTING_ORDER, {"id": str(oid), "created_at": ts})]}
    assert collection.cursor.sort_spec == [("created_at", -1), ("_id", -1)]
    assert collection.cursor.limit_value == 8


@pytest.mark.asyncio
async def test_query_maps_driver_errors_to_store_unavailable():
    store = make_store(FakeCollection(error=PyMongoError("connection refused")))
    with pytest.raises(StoreUnavailable):
        await store.query("shops", {})


@pytest.mark.asyncio
@pytest.mark.parametrize("op", ["update", "delete"])
async def test_unparsable_id_is_not_found_without_touching_the_collection(op):
    collection = FakeCollection()
    store = make_store(collection)

    with pytest.raises(NotFound):
        if op == "update":
            await store.update("shops", "not-an-object-id", {"status": "approved"})
        else:
            await store.delete("shops", "not-an-object-id")

    assert collection.filters == []


@pytest.mark.asyncio
@pytest.mark.parametrize("op", ["update", "delete"])
async def test_unmatched_id_is_not_found(op):
    store = make_store(FakeCollection(matched=0))
    record_id = str(ObjectId())

    with pytest.raises(NotFound):
        if op == "update":
            await store.update("shops", record_id, {"status": "approved"})
        else:
            await store.delete("shops", record_id)


@pytest.mark.asyncio
async def test_get_with_unparsable_id_returns_none():
    store = make_store(FakeCollection())
    assert await store.get("shops", "not-an-object-id") is None
