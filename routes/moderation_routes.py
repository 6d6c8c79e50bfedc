# routes/moderation_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Path, Body
from typing import List, Optional
from core.dependencies import get_moderation_service, get_actor_email
from core.exceptions import AppException, ServiceError
from models.submission import PublishedProduct, RejectPayload, Submission
from services.moderation_service import ModerationQueueService
from utils.logger import get_logger

router = APIRouter(prefix="/moderation", tags=["Moderation"])
logger = get_logger("Moderation_Route")

@router.get("/submissions", response_model=List[Submission])
async def api_list_submissions(
    status_filter: Optional[str] = Query("pending", alias="status"),
    search: Optional[str] = Query(None),
    service: ModerationQueueService = Depends(get_moderation_service)
):
    """
    Pending submissions by default. Pass status=approved|rejected to review
    decided ones; search filters the loaded list by name, category or seller email.
    """
    try:
        submissions = await service.list_submissions(status=status_filter or None)
        return service.search(search, submissions)
    except ServiceError as e:
        logger.warning(f"Error listing submissions: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error listing submissions")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

@router.post("/submissions/{submission_id}/approve", response_model=PublishedProduct)
async def api_approve_submission(
    submission_id: str = Path(...),
    service: ModerationQueueService = Depends(get_moderation_service),
    actor_email: Optional[str] = Depends(get_actor_email)
):
    try:
        submission = await service.get_submission(submission_id)
        return await service.approve(submission, actor_email=actor_email)
    except ServiceError as e:
        logger.warning(f"Error approving submission: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error approving submission")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

@router.post("/submissions/{submission_id}/reject", response_model=Submission)
async def api_reject_submission(
    submission_id: str = Path(...),
    payload: RejectPayload = Body(...),
    service: ModerationQueueService = Depends(get_moderation_service),
    actor_email: Optional[str] = Depends(get_actor_email)
):
    try:
        submission = await service.get_submission(submission_id)
        draft = service.open_rejection(submission)
        draft.reason = payload.reason
        return await service.reject(draft, actor_email=actor_email)
    except ServiceError as e:
        logger.warning(f"Error rejecting submission: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error rejecting submission")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

@router.delete("/submissions/{submission_id}")
async def api_delete_submission(
    submission_id: str = Path(...),
    service: ModerationQueueService = Depends(get_moderation_service),
    actor_email: Optional[str] = Depends(get_actor_email)
):
    try:
        await service.delete_submission(submission_id, actor_email=actor_email)
        return {"message": "submission_deleted", "submission_id": submission_id}
    except ServiceError as e:
        logger.warning(f"Error deleting submission: {type(e).__name__}: {e.detail}")
        raise AppException.from_service_error(e)
    except Exception:
        logger.exception("Error deleting submission")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
