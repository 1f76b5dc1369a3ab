"""
Health check router.
"""
from fastapi import APIRouter, Depends

from src.config import SERVICE_NAME
from src.dependencies import get_context_cache_service, get_reformat_service
from src.services import ContextCacheService, ReformatService

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    context_service: ContextCacheService = Depends(get_context_cache_service),
    reformat_service: ReformatService = Depends(get_reformat_service),
):
    """Liveness check. Also reports whether the context cache and template are loaded."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "contextLoaded": context_service.is_loaded,
        "templateLoaded": reformat_service.template.is_loaded,
    }
