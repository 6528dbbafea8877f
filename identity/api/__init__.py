"""API package exports."""

from identity.api.auth import router as auth_router
from identity.api.middleware import CorrelationIdMiddleware
from identity.api.routes import router

__all__ = ["auth_router", "router", "CorrelationIdMiddleware"]
