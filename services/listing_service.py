# services/listing_service.py
import asyncio
import base64
import binascii
import json
from typing import Optional, Sequence
from core.exceptions import InvalidCursor, NotFound, ValidationError
from models.listing import Listing, ListingPage, LISTING_STATUSES
from services.common import call_store, matches_term, write_audit
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Listing_Service")

# newest first; id breaks ties between equal timestamps
LISTING_ORDER = [("created_at", -1), ("id", -1)]

def encode_cursor(record: dict) -> str:
    created_at = record.get("created_at")
    payload = {
        "id": record["id"],
        "created_at": created_at.isoformat() if created_at is not None else None
    }
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()

def decode_cursor(cursor: str) -> str:
    """Return the anchor record id carried by a cursor."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        anchor_id = payload["id"]
    except (binascii.Error, ValueError, TypeError, KeyError, AttributeError):
        raise InvalidCursor("Malformed pagination cursor")
    if not isinstance(anchor_id, str) or not anchor_id:
        raise InvalidCursor("Malformed pagination cursor")
    return anchor_id

def search_listings(term: Optional[str], listings: Sequence[Listing]) -> Sequence[Listing]:
    if not (term or "").strip():
        return listings
    return [l for l in listings if matches_term(term, (l.name, l.description, l.address))]


class ListingPaginator:
    """
    Walks approved listings newest-first in fixed-size pages.

    has_more is a heuristic (a full page means there may be more); inserts or
    deletes between fetches can make an entry reappear or be skipped.
    """

    def __init__(self, store, page_size: int = None, collection: str = None):
        self.store = store
        self.page_size = page_size or settings.SHOP_PAGE_SIZE
        self.collection = collection or settings.SHOPS_COLLECTION
        self.last_cursor: Optional[str] = None
        self.has_more = False
        self.items: list[Listing] = []
        self._lock = asyncio.Lock()

    async def _fetch(self, anchor: Optional[dict]) -> list[dict]:
        return await call_store(
            self.store.query(self.collection, {"status": "approved"}, order_by=LISTING_ORDER,
                             limit=self.page_size, start_after=anchor),
            "load shops"
        )

    def _page(self, records: list[dict]) -> ListingPage:
        listings = [Listing(**r) for r in records]
        self.last_cursor = encode_cursor(records[-1])
        self.has_more = len(records) == self.page_size
        return ListingPage(items=listings, cursor=self.last_cursor, has_more=self.has_more)

    async def first_page(self) -> ListingPage:
        async with self._lock:
            records = await self._fetch(None)
            self.items = []
            if not records:
                self.last_cursor = None
                self.has_more = False
                return ListingPage()
            page = self._page(records)
            self.items.extend(page.items)
        logger.info(f"Loaded first page of {len(page.items)} shops")
        return page

    async def next_page(self, cursor: Optional[str] = None) -> ListingPage:
        cursor = cursor or self.last_cursor
        if not cursor:
            raise InvalidCursor("No cursor to continue from; load the first page")
        anchor_id = decode_cursor(cursor)

        async with self._lock:
            anchor = await call_store(self.store.get(self.collection, anchor_id), "resolve pagination cursor")
            if anchor is None:
                raise InvalidCursor(f"Pagination anchor {anchor_id} no longer exists")
            records = await self._fetch(anchor)
            if not records:
                self.has_more = False
                return ListingPage(items=[], cursor=cursor, has_more=False)
            page = self._page(records)
            self.items.extend(page.items)
        logger.info(f"Loaded next page of {len(page.items)} shops", extra={"total_loaded": len(self.items)})
        return page

    def search(self, term: Optional[str], listings: Sequence[Listing] = None) -> Sequence[Listing]:
        return search_listings(term, self.items if listings is None else listings)


async def set_listing_status(store, listing_id: str, status: str, actor_email: str = None):
    """
    Move a shop between pending, approved and rejected. Only approved shops
    show up in the directory.
    """
    if status not in LISTING_STATUSES:
        raise ValidationError(f"Unknown shop status: {status}")
    collection = settings.SHOPS_COLLECTION
    current = await call_store(store.get(collection, listing_id), "load shop")
    if current is None:
        raise NotFound(f"Shop {listing_id} not found")
    await call_store(store.update(collection, listing_id, {"status": status}), "update shop status")
    await write_audit(store, "set_shop_status", "shop", listing_id, actor_email=actor_email,
                      before={"status": current.get("status")}, after={"status": status})
    logger.info(f"Shop {listing_id} status -> {status}", extra={"actor": actor_email})
    return Listing(**{**current, "status": status})
