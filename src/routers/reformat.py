"""
Data reformatting endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from src.dependencies import get_reformat_service
from src.exceptions import UpstreamError
from src.models.reformat import FormatDataRequest, FormatDataResponse, TemplateStatusResponse
from src.services import ReformatService

router = APIRouter(tags=["Data Reformatter"])


@router.post("/format-data", response_model=FormatDataResponse)
async def format_data(
    request: Optional[FormatDataRequest] = None,
    service: ReformatService = Depends(get_reformat_service),
):
    """Reshape free text into the template CSV layout using the caller's model and key."""
    request = request or FormatDataRequest()
    converted = await service.format_data(
        data=request.data,
        prompt=request.prompt,
        model_name=request.model_name,
        api_key=request.api_key,
    )
    return FormatDataResponse(converted_data=converted)


@router.post("/refresh-template", response_model=TemplateStatusResponse)
async def refresh_template(service: ReformatService = Depends(get_reformat_service)):
    """Refetch the reformat template regardless of the configured refresh policy."""
    if not await service.refresh_template():
        raise UpstreamError("Error fetching reformat template")
    return TemplateStatusResponse(loaded=True, headers=service.template.headers)
