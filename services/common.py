# services/common.py
import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Iterable, Optional, TypeVar
from core.exceptions import StoreUnavailable
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Service_Common")

T = TypeVar("T")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

async def call_store(op: Awaitable[T], what: str, timeout: Optional[float] = None) -> T:
    """
    Await a DocumentStore call with a deadline. A timeout is reported as
    StoreUnavailable so the caller can retry; cancellation propagates.
    """
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(op, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Store call timed out after {timeout}s: {what}")
        raise StoreUnavailable(f"Timed out while trying to {what}")

def matches_term(term: Optional[str], values: Iterable[Optional[str]]) -> bool:
    """Case-insensitive substring match of term against any non-empty value."""
    needle = (term or "").strip().lower()
    if not needle:
        return True
    return any(needle in v.lower() for v in values if isinstance(v, str))

async def write_audit(store, action: str, resource_type: str, resource_id: str, actor_email: Optional[str] = None,
                      before: Optional[dict] = None, after: Optional[dict] = None, reason: Optional[str] = None) -> bool:
    """
    Record an admin action. Runs after the state change it describes, so a
    failed write is logged and reported as False rather than raised.
    """
    audit_doc = {
        "actor_email": actor_email,
        "action": action,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "before": before,
        "after": after,
        "reason": reason,
        "timestamp": utcnow()
    }
    try:
        await call_store(store.insert(settings.AUDIT_COLLECTION, audit_doc), f"write audit log for {action}")
    except StoreUnavailable as e:
        logger.error(f"Audit log write failed for {action} on {resource_type} {resource_id}: {e.detail}",
                     extra={"audit": audit_doc})
        return False
    return True
