"""
Context cache service - owns the handle to a Gemini cached-content object.

The large context document lives in S3. Loading it stages the object in a
scratch file, uploads that file to the Gemini Files API and creates a
CachedContent entry that later queries reference by name, so the document is
not re-sent on every completion.

Handle lifecycle:
    UNSET -> SET    successful load()
    SET   -> UNSET  delete() (even if the remote delete fails)
    SET   -> UNSET  any find_match() failure
"""
import asyncio
import logging
import os
import tempfile
from enum import Enum
from typing import Any, Optional

from google import genai
from google.genai import types

from src.config import Settings, CONTEXT_MIME_TYPE, CONTEXT_DISPLAY_NAME
from src.exceptions import (
    ServiceUnavailableError,
    UpstreamError,
    ValidationError,
    require_fields,
)
from src.services.storage_service import ObjectStorageService
from src.utils.text_utils import render_payload

logger = logging.getLogger(__name__)


MATCH_INSTRUCTION = "Given the input data, find the closest match: {data}"


class InvalidationResult(Enum):
    """Outcome of a best-effort cache invalidation."""
    CLEARED = "cleared"
    NOTHING_TO_CLEAR = "nothing_to_clear"
    REMOTE_FAILED = "remote_failed"


class ContextCacheService:
    """
    Holds a single cache handle and routes load/delete/query calls.

    Handle reads and writes go through an asyncio.Lock. Remote calls are made
    outside the lock so a slow upload never blocks queries.
    """

    def __init__(
        self,
        settings: Settings,
        storage: ObjectStorageService,
        client: Optional[genai.Client] = None,
    ):
        self.settings = settings
        self.storage = storage
        self._client = client
        self._cache_name: Optional[str] = settings.initial_cache_name
        self._lock = asyncio.Lock()

        if self._cache_name:
            logger.info(f"Context cache handle initialised from config: {self._cache_name}")

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.settings.google_api_key)
        return self._client

    @property
    def cache_name(self) -> Optional[str]:
        """Current handle (None when no cache is loaded)."""
        return self._cache_name

    @property
    def is_loaded(self) -> bool:
        return bool(self._cache_name)

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self) -> str:
        """
        Fetch the context document from S3 and cache it in Gemini.

        Returns:
            str: The new cache handle

        Raises:
            UpstreamError: If any storage, upload or cache step fails. The
                previous handle is kept in that case.
        """
        try:
            content = await self.storage.get_object_text()
            uploaded = await self._upload_context(content)
            cache = await self.client.aio.caches.create(
                model=self.settings.cache_model,
                config=types.CreateCachedContentConfig(
                    contents=[
                        types.Content(
                            role="user",
                            parts=[
                                types.Part.from_uri(
                                    file_uri=uploaded.uri,
                                    mime_type=uploaded.mime_type,
                                )
                            ],
                        )
                    ],
                    ttl=f"{self.settings.cache_ttl_seconds}s",
                ),
            )
        except Exception as e:
            logger.error(f"Error loading and caching context: {e}", exc_info=True)
            raise UpstreamError("Error loading and caching context mapping")

        async with self._lock:
            previous = self._cache_name
            self._cache_name = cache.name

        if previous and previous != cache.name:
            logger.info(f"Context cache handle replaced: {previous} -> {cache.name}")
        logger.info(f"Context mapping cached successfully: {cache.name}")
        return cache.name

    async def _upload_context(self, content: str):
        """Stage content in a scratch file and upload it. The file is always removed."""
        fd, path = tempfile.mkstemp(suffix=".txt", prefix="context-", dir=self.settings.scratch_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            uploaded = await self.client.aio.files.upload(
                file=path,
                config=types.UploadFileConfig(
                    mime_type=CONTEXT_MIME_TYPE,
                    display_name=CONTEXT_DISPLAY_NAME,
                ),
            )
            logger.info(f"Uploaded context file: {uploaded.uri}")
            return uploaded
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self) -> None:
        """
        Delete the remote cache and clear the handle.

        The handle is cleared locally before the remote call, so a failed
        remote delete still leaves the service UNSET; the next load()
        resynchronises.

        Raises:
            ValidationError: If no cache is loaded
            UpstreamError: If the remote delete fails
        """
        async with self._lock:
            name = self._cache_name
            if not name:
                raise ValidationError("No cached context to delete.")
            self._cache_name = None

        try:
            await self.client.aio.caches.delete(name=name)
        except Exception as e:
            logger.error(f"Error deleting context cache {name}: {e}", exc_info=True)
            raise UpstreamError("Error deleting context cache")

        logger.info(f"Context cache deleted: {name}")

    # =========================================================================
    # Query
    # =========================================================================

    async def find_match(self, data: Any, prompt: Optional[str]) -> str:
        """
        Ask the model for the closest match to `data` against the cached context.

        Raises:
            ServiceUnavailableError: If no cache is loaded
            MissingFieldsError: If data or prompt is missing
            UpstreamError: If generation fails; the cache is invalidated first
        """
        async with self._lock:
            name = self._cache_name
        if not name:
            raise ServiceUnavailableError("Service Unavailable: Context cache is not ready yet.")

        require_fields(data=data, prompt=prompt)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.cache_model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part(text=prompt),
                            types.Part(text=MATCH_INSTRUCTION.format(data=render_payload(data))),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(cached_content=name),
            )
            if response.text is None:
                raise RuntimeError("Model returned no text")
            return response.text
        except Exception as e:
            logger.error(f"Error finding match against {name}: {e}", exc_info=True)
            await self.invalidate(expected=name)
            raise UpstreamError("Error finding match")

    # =========================================================================
    # Invalidation
    # =========================================================================

    async def invalidate(self, expected: Optional[str] = None) -> InvalidationResult:
        """
        Best-effort removal of the cache, used on query failure.

        Args:
            expected: Only clear if the current handle still equals this value.
                Protects a handle installed by a concurrent load().

        Returns:
            InvalidationResult: Remote failures are logged, not raised.
        """
        async with self._lock:
            name = self._cache_name
            if not name or (expected is not None and name != expected):
                return InvalidationResult.NOTHING_TO_CLEAR
            self._cache_name = None

        try:
            await self.client.aio.caches.delete(name=name)
        except Exception as e:
            logger.warning(f"Could not delete context cache {name} during invalidation: {e}")
            return InvalidationResult.REMOTE_FAILED

        logger.info(f"Context cache invalidated: {name}")
        return InvalidationResult.CLEARED
