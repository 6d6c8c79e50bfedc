# models/submission.py
from pydantic import BaseModel, Field
from typing import Literal, Optional, Union
from datetime import datetime

SubmissionStatus = Literal["pending", "approved", "rejected"]
SUBMISSION_STATUSES = ("pending", "approved", "rejected")

# Raw seller input; price fields may still be strings until approval validates them
class Submission(BaseModel):
    id: str
    name: str = ""
    price: Union[float, str, None] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    delivery_charge: Union[float, str, None] = None
    description: Optional[str] = None
    self_delivery: bool = False
    seller_id: Optional[str] = None
    seller_email: Optional[str] = None
    status: SubmissionStatus = "pending"
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

class PublishedProduct(BaseModel):
    id: str
    name: str
    price: float = Field(..., ge=0)
    category: Optional[str] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    delivery_charge: float = Field(..., ge=0)
    description: Optional[str] = None
    self_delivery: bool = False
    seller_id: Optional[str] = None
    seller_email: Optional[str] = None
    approved_at: datetime
    original_submission_id: Optional[str] = None

class RejectionDraft(BaseModel):
    submission: Submission
    reason: str = ""

class RejectPayload(BaseModel):
    reason: str = ""
