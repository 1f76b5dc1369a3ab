"""
Data reformatting service.

Fetches a CSV template (header line + sample row) from a remote endpoint and
asks a Gemini model to reshape free text into that layout.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import httpx
from google import genai

from src.config import (
    Settings,
    REFRESH_ON_DEMAND,
    REFRESH_PERIODIC,
)
from src.exceptions import UpstreamError, require_fields
from src.utils.csv_utils import ReformatTemplate, normalize_csv, parse_template_body
from src.utils.text_utils import render_payload

logger = logging.getLogger(__name__)


REFORMAT_PROMPT = """Convert the following unformatted data into CSV rows.

CSV headers (in this exact order):
{headers}

Example row:
{sample_row}

Instructions:
{prompt}

Unformatted data:
{data}

Respond ONLY with the CSV rows, one per line, without the header line and without any additional text."""


def build_reformat_prompt(template: ReformatTemplate, data: Any, prompt: str) -> str:
    """Compose the single prompt sent to the model."""
    return REFORMAT_PROMPT.format(
        headers=template.header_line,
        sample_row=template.sample_row,
        prompt=prompt,
        data=render_payload(data),
    )


MAX_CACHED_CLIENTS = 32


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


class ReformatService:
    """Holds the reformat template and performs one-shot reformat completions."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[str], genai.Client] = _default_client_factory,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.template = ReformatTemplate()
        self._client_factory = client_factory
        self._http_client = http_client
        self._refresh_task: Optional[asyncio.Task] = None
        # Clients reused per API key (oldest evicted past MAX_CACHED_CLIENTS)
        self._clients: dict[str, genai.Client] = {}

    # =========================================================================
    # Template management
    # =========================================================================

    async def refresh_template(self) -> bool:
        """
        Fetch the template from TEMPLATE_URL.

        Returns:
            bool: True if a template was loaded. On failure the error is
            logged and the previous template is kept.
        """
        url = self.settings.template_url
        if not url:
            logger.warning("TEMPLATE_URL not configured; reformat template left empty")
            return False

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.settings.template_fetch_timeout_seconds) as client:
                    response = await client.get(url)
            response.raise_for_status()
            template = parse_template_body(response.text)
        except Exception as e:
            logger.error(f"Error fetching reformat template from {url}: {e}")
            return False

        if not template.is_loaded:
            logger.error(f"Reformat template from {url} is empty")
            return False

        self.template = template
        logger.info(f"Reformat template loaded: {len(template.headers)} columns")
        return True

    def start_periodic_refresh(self) -> Optional[asyncio.Task]:
        """Start the background refresh loop when the policy is periodic."""
        if self.settings.template_refresh_policy != REFRESH_PERIODIC:
            return None
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())
            logger.info(
                f"Template refresh every {self.settings.template_refresh_interval_seconds}s"
            )
        return self._refresh_task

    async def _refresh_loop(self):
        while True:
            await asyncio.sleep(self.settings.template_refresh_interval_seconds)
            try:
                await self.refresh_template()
            except Exception as e:
                logger.error(f"Template refresh failed: {e}", exc_info=True)

    async def stop(self):
        """Cancel the background refresh loop, if running."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

    # =========================================================================
    # Formatting
    # =========================================================================

    def _get_client(self, api_key: str) -> genai.Client:
        client = self._clients.get(api_key)
        if client is None:
            if len(self._clients) >= MAX_CACHED_CLIENTS:
                self._clients.pop(next(iter(self._clients)))
            client = self._client_factory(api_key)
            self._clients[api_key] = client
        return client

    async def format_data(
        self,
        data: Any,
        prompt: Optional[str],
        model_name: Optional[str],
        api_key: Optional[str],
    ) -> str:
        """
        Reshape `data` into the template's CSV layout.

        Raises:
            MissingFieldsError: If any field is missing (no remote call is made)
            UpstreamError: If the model call fails
        """
        require_fields(data=data, prompt=prompt, modelName=model_name, apiKey=api_key)

        if not self.template.is_loaded and self.settings.template_refresh_policy == REFRESH_ON_DEMAND:
            await self.refresh_template()

        composite = build_reformat_prompt(self.template, data, prompt)

        try:
            client = self._get_client(api_key)
            response = await client.aio.models.generate_content(
                model=model_name,
                contents=composite,
            )
            text = response.text
        except Exception as e:
            logger.error(f"Error reformatting data with {model_name}: {e}", exc_info=True)
            raise UpstreamError("Error formatting data")

        if text is None:
            logger.error(f"Model {model_name} returned no text")
            raise UpstreamError("Error formatting data")

        return normalize_csv(self.template.header_line, text)
