"""
Context cache models.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Base model that accepts and emits camelCase field names."""
    model_config = ConfigDict(populate_by_name=True)


class LoadContextResponse(_CamelModel):
    """Response model for loading the context cache."""
    message: str
    context_cache_name: str = Field(alias="contextCacheName")


class DeleteContextResponse(_CamelModel):
    """Response model for deleting the context cache."""
    message: str


class ContextStatusResponse(_CamelModel):
    """Current state of the context cache handle."""
    loaded: bool
    context_cache_name: Optional[str] = Field(default=None, alias="contextCacheName")


class FindMatchRequest(_CamelModel):
    """
    Request model for querying the cached context.

    Both fields are optional at the schema level so missing values are
    reported as a 400 by the service rather than a 422 by FastAPI.
    `data` may be any JSON value.
    """
    data: Optional[Any] = None  # Input payload to match
    prompt: Optional[str] = None  # Natural-language instruction


class FindMatchResponse(_CamelModel):
    """Response model for a context query."""
    closest_match: str = Field(alias="closestMatch")
