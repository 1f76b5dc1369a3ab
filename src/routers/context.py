"""
Context cache endpoints - load, delete and query the cached context document.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from src.dependencies import get_context_cache_service
from src.models.context import (
    ContextStatusResponse,
    DeleteContextResponse,
    FindMatchRequest,
    FindMatchResponse,
    LoadContextResponse,
)
from src.services import ContextCacheService

router = APIRouter(tags=["Context Cache"])


@router.post("/load-context", response_model=LoadContextResponse)
async def load_context(service: ContextCacheService = Depends(get_context_cache_service)):
    """
    Load the context document from S3 and cache it in Gemini.

    Returns the new cache handle. Any failing step returns 500.
    """
    cache_name = await service.load()
    return LoadContextResponse(
        message="Context loaded and cached successfully",
        context_cache_name=cache_name,
    )


@router.delete("/delete-context", response_model=DeleteContextResponse)
async def delete_context(service: ContextCacheService = Depends(get_context_cache_service)):
    """Delete the cached context. Returns 400 when nothing is cached."""
    await service.delete()
    return DeleteContextResponse(message="Context cache deleted successfully")


@router.post("/find-match", response_model=FindMatchResponse)
async def find_match(
    request: Optional[FindMatchRequest] = None,
    service: ContextCacheService = Depends(get_context_cache_service),
):
    """
    Find the closest match for the input data in the cached context.

    Returns 503 until a context is loaded. A failed model call clears the
    cache, so callers must load again afterwards. A missing body is treated
    as an empty object.
    """
    request = request or FindMatchRequest()
    closest_match = await service.find_match(request.data, request.prompt)
    return FindMatchResponse(closest_match=closest_match)


@router.get("/context", response_model=ContextStatusResponse)
async def context_status(service: ContextCacheService = Depends(get_context_cache_service)):
    """Report whether a context cache is currently loaded."""
    return ContextStatusResponse(loaded=service.is_loaded, context_cache_name=service.cache_name)
