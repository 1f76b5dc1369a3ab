"""
Context Cache Gateway API Models.

This module re-exports all model classes for convenient importing.
"""

# Context cache models
from .context import (
    LoadContextResponse,
    DeleteContextResponse,
    ContextStatusResponse,
    FindMatchRequest,
    FindMatchResponse,
)

# Reformat models
from .reformat import (
    FormatDataRequest,
    FormatDataResponse,
    TemplateStatusResponse,
)

__all__ = [
    "LoadContextResponse",
    "DeleteContextResponse",
    "ContextStatusResponse",
    "FindMatchRequest",
    "FindMatchResponse",
    "FormatDataRequest",
    "FormatDataResponse",
    "TemplateStatusResponse",
]
