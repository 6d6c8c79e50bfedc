# models/listing.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

LISTING_STATUSES = ("pending", "approved", "rejected")

class Listing(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    address: Optional[str] = None
    banner_url: Optional[str] = None
    logo_url: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None

class ListingPage(BaseModel):
    items: List[Listing] = Field(default_factory=list)
    # opaque; pass back unchanged to fetch the following page
    cursor: Optional[str] = None
    has_more: bool = False

class ListingStatusUpdate(BaseModel):
    status: Literal["pending", "approved", "rejected"]
