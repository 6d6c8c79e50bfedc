from fastapi import HTTPException, Request, status
from utils.logger import get_logger
from fastapi.responses import JSONResponse

logger = get_logger("Global_Exception")

class ServiceError(Exception):
    """Base for errors raised by the moderation and listing services."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

class StoreUnavailable(ServiceError):
    # transient; callers may retry the same operation
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

class ValidationError(ServiceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

class InvalidCursor(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST

async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

class AppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

    @classmethod
    def from_service_error(cls, exc: ServiceError) -> "AppException":
        return cls(status_code=exc.status_code, detail=exc.detail)
