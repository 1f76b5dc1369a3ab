"""
FastAPI dependency injection factories.

Service instances are created once during app startup (see app.py lifespan)
and handed to routers through these getters.
"""
from typing import Optional

from src.services import ContextCacheService, ReformatService


# Global service instances (set during app startup)
_context_cache_service: Optional[ContextCacheService] = None
_reformat_service: Optional[ReformatService] = None


def set_context_cache_service(service: Optional[ContextCacheService]):
    """Set the global context cache service instance."""
    global _context_cache_service
    _context_cache_service = service


def get_context_cache_service() -> ContextCacheService:
    """Get the global context cache service instance."""
    if _context_cache_service is None:
        raise RuntimeError("ContextCacheService not initialized. Call set_context_cache_service() during app startup.")
    return _context_cache_service


def set_reformat_service(service: Optional[ReformatService]):
    """Set the global reformat service instance."""
    global _reformat_service
    _reformat_service = service


def get_reformat_service() -> ReformatService:
    """Get the global reformat service instance."""
    if _reformat_service is None:
        raise RuntimeError("ReformatService not initialized. Call set_reformat_service() during app startup.")
    return _reformat_service
