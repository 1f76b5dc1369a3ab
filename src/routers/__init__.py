"""
API routers for endpoint organization.
"""
from .health import router as health_router
from .context import router as context_router
from .reformat import router as reformat_router

__all__ = [
    "health_router",
    "context_router",
    "reformat_router",
]
