"""Requisitions domain API package."""

from requisitions.api.routes import contact_router, maintenance_router, notification_router, order_router

__all__ = ["contact_router", "maintenance_router", "notification_router", "order_router"]
