import asyncio
import copy
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.dependencies import get_store
from core.exceptions import NotFound
from main import app
from services.listing_service import ListingPaginator
from services.moderation_service import ModerationQueueService


class InMemoryDocumentStore:
    """DocumentStore over dicts, with hooks to inject failures and latency."""

    def __init__(self):
        self.collections = {}
        self.fail_next = {}
        self.delay = 0.0
        self.calls = []

    async def _enter(self, op):
        self.calls.append(op)
        if self.delay:
            await asyncio.sleep(self.delay)
        exc = self.fail_next.pop(op, None)
        if exc is not None:
            raise exc

    def _col(self, name):
        return self.collections.setdefault(name, {})

    @staticmethod
    def _after(record, anchor, order_by):
        for field, direction in order_by:
            a, b = record.get(field), anchor.get(field)
            if a == b:
                continue
            return a < b if direction < 0 else a > b
        return False

    async def query(self, collection, predicate, order_by=None, limit=None, start_after=None):
        await self._enter("query")
        rows = [r for r in self._col(collection).values()
                if all(r.get(k) == v for k, v in predicate.items())]
        for field, direction in reversed(order_by or []):
            rows.sort(key=lambda r: r.get(field), reverse=direction < 0)
        if start_after is not None:
            rows = [r for r in rows if self._after(r, start_after, order_by)]
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def get(self, collection, record_id):
        await self._enter("get")
        record = self._col(collection).get(record_id)
        return copy.deepcopy(record)

    async def insert(self, collection, fields):
        await self._enter("insert")
        record_id = fields.get("id") or uuid.uuid4().hex
        self._col(collection)[record_id] = {**copy.deepcopy(fields), "id": record_id}
        return record_id

    async def update(self, collection, record_id, fields):
        await self._enter("update")
        if record_id not in self._col(collection):
            raise NotFound(f"{collection} record {record_id} not found")
        self._col(collection)[record_id].update(copy.deepcopy(fields))

    async def delete(self, collection, record_id):
        await self._enter("delete")
        if self._col(collection).pop(record_id, None) is None:
            raise NotFound(f"{collection} record {record_id} not found")

    def all(self, collection):
        return list(self._col(collection).values())


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def moderation(store):
    return ModerationQueueService(store)


@pytest.fixture
def paginator(store):
    return ListingPaginator(store, page_size=8)


@pytest.fixture
def make_submission(store):
    async def _make(**overrides):
        doc = {
            "name": "Running Shoe",
            "price": "49.99",
            "category": "Footwear",
            "image_url": "https://img.example.com/shoe.png",
            "location": "Downtown",
            "delivery_charge": "5",
            "description": "Lightweight trainer",
            "self_delivery": True,
            "seller_id": "seller-1",
            "seller_email": "seller@example.com",
            "status": "pending",
        }
        doc.update(overrides)
        record_id = await store.insert("productSubmissions", doc)
        return record_id
    return _make


@pytest.fixture
def seed_shops(store):
    async def _seed(count, status="approved", start=None):
        start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        ids = []
        for i in range(count):
            ids.append(await store.insert("shops", {
                "id": f"shop-{i:03d}",
                "name": f"Shop {i}",
                "description": f"Shop number {i}",
                "address": f"{i} Main Street",
                "status": status,
                "created_at": start + timedelta(minutes=i),
            }))
        # newest first
        return list(reversed(ids))
    return _seed


@pytest.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
