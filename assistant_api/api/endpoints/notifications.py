import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import RateLimitGuard, get_notification_service
from ..schemas import NotificationRequest, NotificationResponse
from ...exceptions import ConfigurationError, NotificationError, ValidationError
from ...services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/send-notification", response_model=NotificationResponse, response_model_exclude_none=True)
async def send_notification(
    request: NotificationRequest,
    _rate_limit=Depends(RateLimitGuard("notifications")),
    notification_service: NotificationService = Depends(get_notification_service),
):
    if not (request.token or "").strip():
        raise ValidationError("FCM token required")

    try:
        message_id = await notification_service.send(
            token=request.token.strip(),
            title=request.title,
            body=request.body,
            data=request.data,
        )
    except ConfigurationError as e:
        logger.warning("Notification skipped, Firebase not configured", details=e.details)
        return NotificationResponse(success=False, error=e.message, details=e.details)
    except NotificationError as e:
        body = NotificationResponse(success=False, error=e.message, details=e.details)
        return JSONResponse(
            status_code=e.status_code,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )

    return NotificationResponse(success=True, message_id=message_id)
