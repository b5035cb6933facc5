from fastapi import APIRouter, Depends

from .dependencies import verify_app_key
from .endpoints import calendar, chat, news, notifications, places, search

# The app key is checked before any endpoint dependency, rate limiting included.
api_router = APIRouter(dependencies=[Depends(verify_app_key)])

api_router.include_router(chat.router, tags=["chat"])
api_router.include_router(search.router, tags=["search"])
api_router.include_router(places.router, tags=["places"])
api_router.include_router(news.router, tags=["news"])
api_router.include_router(calendar.router, tags=["calendar"])
api_router.include_router(notifications.router, tags=["notifications"])
