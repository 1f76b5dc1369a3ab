"""
Service layer for business logic.
"""
from .storage_service import ObjectStorageService
from .context_cache_service import ContextCacheService, InvalidationResult
from .reformat_service import ReformatService

__all__ = [
    "ObjectStorageService",
    "ContextCacheService",
    "InvalidationResult",
    "ReformatService",
]
