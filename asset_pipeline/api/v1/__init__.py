from .assets_controller import router as assets_router
from .notifications_controller import router as notifications_router

__all__ = ["assets_router", "notifications_router"]
