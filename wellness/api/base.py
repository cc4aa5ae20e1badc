from fastapi import APIRouter
from wellness.api import health, push_notifications, timer, users
from wellness.features.billing import router as billing_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(timer.router)
api_router.include_router(users.router)
api_router.include_router(push_notifications.router)
api_router.include_router(billing_router)
api_router.include_router(health.router)
