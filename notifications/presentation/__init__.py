from fastapi import APIRouter

from .notification import router as notification_router
from .realtime import router as realtime_router

router = APIRouter(tags=["notifications"])
router.include_router(notification_router)
router.include_router(realtime_router)
