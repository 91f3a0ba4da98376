"""API routes."""

from timesheet_engine.api.routes.exports import router as exports_router
from timesheet_engine.api.routes.health import router as health_router

__all__ = ["exports_router", "health_router"]
