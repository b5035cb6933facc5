from typing import Optional, Dict, Any

import firebase_admin
import structlog
from firebase_admin import credentials

from ..config import Settings
from ..exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

_firebase_app = None


def build_service_account_info(settings: Settings) -> Dict[str, Any]:
    if not settings.firebase_private_key or not settings.firebase_client_email:
        raise ConfigurationError(
            "Firebase service account not configured",
            error_code="NotificationNotConfigured",
            details={"missing": [
                name for name, value in (
                    ("FIREBASE_PRIVATE_KEY", settings.firebase_private_key),
                    ("FIREBASE_CLIENT_EMAIL", settings.firebase_client_email),
                ) if not value
            ]},
        )

    return {
        "type": "service_account",
        "project_id": settings.firebase_project_id,
        "private_key_id": settings.firebase_private_key_id,
        "private_key": settings.firebase_private_key,
        "client_email": settings.firebase_client_email,
        "client_id": settings.firebase_client_id,
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    }


def initialize_firebase(settings: Settings):
    global _firebase_app
    if _firebase_app is None:
        service_account_info = build_service_account_info(settings)
        cred = credentials.Certificate(service_account_info)
        options: Optional[Dict[str, Any]] = None
        if settings.firebase_project_id:
            options = {"projectId": settings.firebase_project_id}
        _firebase_app = firebase_admin.initialize_app(cred, options)
        logger.info("Firebase app initialized", project_id=settings.firebase_project_id)
    return _firebase_app


def reset_firebase() -> None:
    global _firebase_app
    if _firebase_app is not None:
        firebase_admin.delete_app(_firebase_app)
    _firebase_app = None
