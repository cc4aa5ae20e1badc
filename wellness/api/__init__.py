# API module exports
from wellness.api import health, push_notifications, timer, users
from wellness.api.base import api_router

__all__ = ["health", "push_notifications", "timer", "users", "api_router"]
