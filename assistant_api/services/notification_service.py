import asyncio
from typing import Any, Callable, Dict, Optional

import structlog
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from ..exceptions import NotificationError

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "⏰ JARVIS Reminder"
DEFAULT_BODY = "You have a reminder!"


class NotificationService:
    """Push notifications through Firebase Cloud Messaging (HTTP v1 via firebase_admin)"""

    def __init__(
        self,
        app_factory: Callable[[], Any],
        icon: str = "/jarvis-icon.png",
        badge: str = "/jarvis-badge.png",
        link: Optional[str] = None,
    ):
        self._app_factory = app_factory
        self.icon = icon
        self.badge = badge
        self.link = link

    def build_message(
        self,
        token: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> messaging.Message:
        # FCM only accepts string data values; fcm_options.link must be HTTPS.
        fcm_options = None
        if self.link and self.link.startswith("https://"):
            fcm_options = messaging.WebpushFCMOptions(link=self.link)

        return messaging.Message(
            token=token,
            notification=messaging.Notification(
                title=title or DEFAULT_TITLE,
                body=body or DEFAULT_BODY,
            ),
            data={str(key): str(value) for key, value in (data or {}).items()},
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(
                    icon=self.icon,
                    badge=self.badge,
                    require_interaction=True,
                    vibrate=[200, 100, 200],
                ),
                fcm_options=fcm_options,
            ),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    click_action="OPEN_APP",
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound="default", badge=1),
                ),
            ),
        )

    async def send(
        self,
        token: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send one message and return the FCM message name."""
        app = self._app_factory()
        message = self.build_message(token, title, body, data)

        loop = asyncio.get_running_loop()
        try:
            message_id = await loop.run_in_executor(None, lambda: messaging.send(message, app=app))
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error("FCM send failed", error=str(e))
            raise NotificationError(
                "Failed to send notification",
                error_code="Failed to send notification",
                details={"reason": str(e), "code": getattr(e, "code", None)},
            )

        logger.info("Notification sent", message_id=message_id)
        return message_id
