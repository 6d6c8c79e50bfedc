# services/moderation_service.py
import asyncio
import math
from typing import Optional, Sequence
from core.exceptions import NotFound, ValidationError
from models.submission import PublishedProduct, RejectionDraft, Submission, SUBMISSION_STATUSES
from services.common import call_store, matches_term, utcnow, write_audit
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Moderation_Service")

# copied verbatim from the submission onto the published product
PUBLISHED_FIELDS = ("name", "category", "image_url", "location", "description",
                    "self_delivery", "seller_id", "seller_email")

def parse_amount(value, field: str) -> float:
    """
    Parse a seller-entered money amount. Accepts numbers and numeric strings;
    rejects booleans, blanks, NaN/inf and negatives.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if not math.isfinite(amount) or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number, got {value!r}")
    return amount

def search_submissions(term: Optional[str], submissions: Sequence[Submission]) -> Sequence[Submission]:
    """Filter an already-fetched list by name, category or seller email."""
    if not (term or "").strip():
        return submissions
    return [s for s in submissions if matches_term(term, (s.name, s.category, s.seller_email))]


class ModerationQueueService:
    """
    Review queue for product submissions. One store operation is in flight
    per instance at a time.
    """

    def __init__(self, store, submissions_collection: str = None, products_collection: str = None):
        self.store = store
        self.submissions = submissions_collection or settings.SUBMISSIONS_COLLECTION
        self.products = products_collection or settings.PRODUCTS_COLLECTION
        self._lock = asyncio.Lock()

    async def list_pending(self) -> list[Submission]:
        return await self.list_submissions(status="pending")

    async def list_submissions(self, status: Optional[str] = None) -> list[Submission]:
        if status is not None and status not in SUBMISSION_STATUSES:
            raise ValidationError(f"Unknown submission status: {status}")
        predicate = {"status": status} if status else {}
        async with self._lock:
            records = await call_store(self.store.query(self.submissions, predicate), "load submissions")
        logger.info(f"Loaded {len(records)} submissions", extra={"status": status})
        return [Submission(**r) for r in records]

    async def get_submission(self, submission_id: str) -> Submission:
        async with self._lock:
            record = await call_store(self.store.get(self.submissions, submission_id), "load submission")
        if record is None:
            raise NotFound(f"Submission {submission_id} not found")
        return Submission(**record)

    async def approve(self, submission: Submission, actor_email: str = None) -> PublishedProduct:
        """
        Publish a submission as a product and mark it approved.

        Safe to retry: an existing product carrying this submission's id is
        reused, so a failure between the two writes never yields a duplicate.
        """
        price = parse_amount(submission.price, "price")
        delivery_charge = parse_amount(submission.delivery_charge, "delivery_charge")

        async with self._lock:
            current = await call_store(self.store.get(self.submissions, submission.id), "load submission")
            if current is None:
                raise NotFound(f"Submission {submission.id} not found")
            if current.get("status") == "rejected":
                raise ValidationError(f"Submission {submission.id} was already rejected")

            existing = await call_store(
                self.store.query(self.products, {"original_submission_id": submission.id}, limit=1),
                "look up published product"
            )
            if existing:
                published = existing[0]
                logger.info(f"Reusing published product {published['id']} for submission {submission.id}")
            elif current.get("status") == "approved":
                # approved without a linked product; publishing again would duplicate it
                logger.error(f"Submission {submission.id} is approved but has no linked product")
                raise ValidationError(f"Submission {submission.id} was already approved")
            else:
                doc = {field: getattr(submission, field) for field in PUBLISHED_FIELDS}
                doc.update({
                    "price": price,
                    "delivery_charge": delivery_charge,
                    "approved_at": utcnow(),
                    "original_submission_id": submission.id
                })
                product_id = await call_store(self.store.insert(self.products, doc), "publish product")
                published = {"id": product_id, **doc}

            if current.get("status") != "approved":
                await call_store(self.store.update(self.submissions, submission.id, {"status": "approved"}),
                                 "mark submission approved")
                await write_audit(self.store, "approve_submission", "submission", submission.id,
                                  actor_email=actor_email,
                                  before={"status": current.get("status")},
                                  after={"status": "approved", "product_id": published["id"]})

        logger.info("Submission approved", extra={"submission_id": submission.id, "product_id": published["id"]})
        return PublishedProduct(**published)

    def open_rejection(self, submission: Submission) -> RejectionDraft:
        return RejectionDraft(submission=submission, reason="")

    async def reject(self, draft: RejectionDraft, actor_email: str = None) -> Submission:
        reason = (draft.reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        submission_id = draft.submission.id

        async with self._lock:
            current = await call_store(self.store.get(self.submissions, submission_id), "load submission")
            if current is None:
                raise NotFound(f"Submission {submission_id} not found")
            if current.get("status") == "approved":
                raise ValidationError(f"Submission {submission_id} was already approved")
            changes = {"status": "rejected", "rejection_reason": reason, "rejected_at": utcnow()}
            await call_store(self.store.update(self.submissions, submission_id, changes), "reject submission")
            await write_audit(self.store, "reject_submission", "submission", submission_id,
                              actor_email=actor_email,
                              before={"status": current.get("status")},
                              after={"status": "rejected"},
                              reason=reason)

        logger.info("Submission rejected", extra={"submission_id": submission_id})
        return Submission(**{**current, **changes})

    async def delete_submission(self, submission_id: str, actor_email: str = None) -> None:
        async with self._lock:
            # raises NotFound on a second delete
            await call_store(self.store.delete(self.submissions, submission_id), "delete submission")
            await write_audit(self.store, "delete_submission", "submission", submission_id,
                              actor_email=actor_email)
        logger.info("Submission deleted", extra={"submission_id": submission_id})

    def search(self, term: Optional[str], submissions: Sequence[Submission]) -> Sequence[Submission]:
        return search_submissions(term, submissions)
