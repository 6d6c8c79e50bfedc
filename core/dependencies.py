from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header
from db.db_operation import mongo_conn
from services.listing_service import ListingPaginator
from services.moderation_service import ModerationQueueService
from utils.logger import get_logger

logger = get_logger("Dependencies")

def get_store():
    """DocumentStore used by the routes. Tests override this dependency."""
    return mongo_conn.store

@lru_cache(maxsize=None)
def _moderation_service_for(store) -> ModerationQueueService:
    logger.info("Creating moderation queue service")
    return ModerationQueueService(store)

def get_moderation_service(store = Depends(get_store)) -> ModerationQueueService:
    # one queue per store so concurrent approvals of the same submission serialize
    return _moderation_service_for(store)

def get_listing_paginator(store = Depends(get_store)) -> ListingPaginator:
    # paging state is per caller; the cursor travels with the request
    return ListingPaginator(store)

async def get_actor_email(x_actor_email: Optional[str] = Header(None)) -> Optional[str]:
    """
    Identity of the admin performing a mutation, recorded in the audit log.
    Authentication happens upstream of this service.
    """
    return x_actor_email
