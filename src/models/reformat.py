"""
Data reformatting models.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class FormatDataRequest(BaseModel):
    """Request model for reshaping free text into the template CSV layout."""
    model_config = ConfigDict(populate_by_name=True)

    data: Optional[Any] = None  # Raw unformatted text (non-strings are sent as JSON)
    prompt: Optional[str] = None  # Instruction for the model
    model_name: Optional[str] = Field(default=None, alias="modelName")  # e.g., "gemini-2.5-flash"
    api_key: Optional[str] = Field(default=None, alias="apiKey")  # Caller's Gemini API key


class FormatDataResponse(BaseModel):
    """Response model for reformatted data."""
    model_config = ConfigDict(populate_by_name=True)

    converted_data: str = Field(alias="convertedData")


class TemplateStatusResponse(BaseModel):
    """State of the in-memory reformat template."""
    loaded: bool
    headers: list[str]
