from typing import Any, Optional, Protocol
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
from settings.config import settings
from core.exceptions import NotFound, StoreUnavailable
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")

Record = dict[str, Any]
OrderBy = list[tuple[str, int]]

class DocumentStore(Protocol):
    """
    Collaborator contract used by the services. Records are plain dicts keyed
    by a string "id"; predicates are equality filters.
    """

    async def query(self, collection: str, predicate: dict, order_by: Optional[OrderBy] = None,
                    limit: Optional[int] = None, start_after: Optional[Record] = None) -> list[Record]: ...

    async def get(self, collection: str, record_id: str) -> Optional[Record]: ...

    async def insert(self, collection: str, fields: dict) -> str: ...

    async def update(self, collection: str, record_id: str, fields: dict) -> None: ...

    async def delete(self, collection: str, record_id: str) -> None: ...


def _object_id(record_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        return None

def _to_record(doc: dict) -> Record:
    record = dict(doc)
    record["id"] = str(record.pop("_id"))
    return record

def _mongo_field(field: str) -> str:
    return "_id" if field == "id" else field

def _mongo_value(field: str, value):
    if field == "id" and isinstance(value, str):
        return _object_id(value) or value
    return value

def keyset_filter(order_by: OrderBy, anchor: Record) -> dict:
    """
    Build the "strictly after anchor" condition for a compound sort:
    (a < A) or (a == A and b < B) ... for descending keys, > for ascending.
    """
    branches = []
    for i, (field, direction) in enumerate(order_by):
        clause = {}
        for prev_field, _ in order_by[:i]:
            clause[_mongo_field(prev_field)] = _mongo_value(prev_field, anchor.get(prev_field))
        op = "$lt" if direction < 0 else "$gt"
        clause[_mongo_field(field)] = {op: _mongo_value(field, anchor.get(field))}
        branches.append(clause)
    return {"$or": branches}


class MongoDocumentStore:
    """DocumentStore backed by a motor database handle."""

    def __init__(self, db):
        self.db = db

    async def query(self, collection, predicate, order_by=None, limit=None, start_after=None):
        q = {_mongo_field(k): _mongo_value(k, v) for k, v in predicate.items()}
        if start_after is not None:
            if not order_by:
                raise ValueError("start_after requires order_by")
            q = {"$and": [q, keyset_filter(order_by, start_after)]}
        try:
            cursor = self.db[collection].find(q)
            if order_by:
                cursor = cursor.sort([(_mongo_field(f), d) for f, d in order_by])
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.exception(f"DB error querying {collection}")
            raise StoreUnavailable(f"Query on {collection} failed: {e}")
        return [_to_record(d) for d in docs]

    async def get(self, collection, record_id):
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            doc = await self.db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            logger.exception(f"DB error reading {collection}/{record_id}")
            raise StoreUnavailable(f"Read on {collection} failed: {e}")
        return _to_record(doc) if doc else None

    async def insert(self, collection, fields):
        doc = {k: v for k, v in fields.items() if k != "id"}
        try:
            result = await self.db[collection].insert_one(doc)
        except PyMongoError as e:
            logger.exception(f"DB error inserting into {collection}")
            raise StoreUnavailable(f"Insert into {collection} failed: {e}")
        return str(result.inserted_id)

    async def update(self, collection, record_id, fields):
        oid = _object_id(record_id)
        if oid is None:
            raise NotFound(f"{collection} record {record_id} not found")
        try:
            result = await self.db[collection].update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as e:
            logger.exception(f"DB error updating {collection}/{record_id}")
            raise StoreUnavailable(f"Update on {collection} failed: {e}")
        if result.matched_count == 0:
            raise NotFound(f"{collection} record {record_id} not found")

    async def delete(self, collection, record_id):
        oid = _object_id(record_id)
        if oid is None:
            raise NotFound(f"{collection} record {record_id} not found")
        try:
            result = await self.db[collection].delete_one({"_id": oid})
        except PyMongoError as e:
            logger.exception(f"DB error deleting {collection}/{record_id}")
            raise StoreUnavailable(f"Delete on {collection} failed: {e}")
        if result.deleted_count == 0:
            raise NotFound(f"{collection} record {record_id} not found")


async def create_indexes():
    db = mongo_conn.db
    await db[settings.SUBMISSIONS_COLLECTION].create_index("status")
    await db[settings.PRODUCTS_COLLECTION].create_index("original_submission_id")
    await db[settings.SHOPS_COLLECTION].create_index([("status", 1), ("created_at", -1), ("_id", -1)])
    logger.info("Indexes created")

class MongoConnection:
    def __init__(self):
        logger.info("Initializing MongoDB Connection")
        mongo_uri = settings.MONGO_URI
        self.client = AsyncIOMotorClient(mongo_uri)
        self.db = self.client[settings.DB_NAME]
        self.store = MongoDocumentStore(self.db)

    async def connect(self):
        try:
            # Force an actual connection & authentication check
            await self.db.command("ping")
            logger.info("Successfully connected to MongoDB and authenticated.")
            logger.info(f"Using Database: {settings.DB_NAME}")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise e

# Create the instance
mongo_conn = MongoConnection()
