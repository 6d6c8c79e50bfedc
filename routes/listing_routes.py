# routes/listing_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Body, Path
from typing import Optional
from core.dependencies import get_listing_paginator, get_store, get_actor_email
from core.exceptions import AppException, ServiceError
from models.listing import Listing, ListingPage, ListingStatusUpdate
from services.listing_service import ListingPaginator, set_listing_status
from utils.logger import get_logger

logger = get_logger("Listing_Route")
router = APIRouter(prefix="/shops", tags=["Shops"])

# Public: approved shops, newest first
@router.get("/", response_model=ListingPage)
async def api_list_shops(
    cursor: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    paginator: ListingPaginator = Depends(get_listing_paginator)
):
    """
    First page when cursor is omitted; otherwise the page after cursor.
    search only filters the returned page, the cursor still points past it.
    """
    try:
        page = await paginator.next_page(cursor) if cursor else await paginator.first_page()
    except ServiceError as e:
        logger.warning(f"Error listing shops: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error listing shops")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
    page.items = list(paginator.search(search, page.items))
    return page

# Admin: approve / reject / reset a shop
@router.patch("/{shop_id}/status", response_model=Listing)
async def api_set_shop_status(
    shop_id: str = Path(...),
    payload: ListingStatusUpdate = Body(...),
    store = Depends(get_store),
    actor_email: Optional[str] = Depends(get_actor_email)
):
    try:
        return await set_listing_status(store, shop_id, payload.status, actor_email=actor_email)
    except ServiceError as e:
        logger.warning(f"Error updating shop status: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error updating shop status")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
