import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import get_settings
from src.dependencies import set_context_cache_service, set_reformat_service
from src.exceptions import register_exception_handlers
from src.routers import context_router, health_router, reformat_router
from src.services import ContextCacheService, ObjectStorageService, ReformatService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create services on startup, fetch the reformat template, stop background work on shutdown."""
    settings = get_settings()

    context_service = ContextCacheService(settings, ObjectStorageService(settings))
    reformat_service = ReformatService(settings)
    set_context_cache_service(context_service)
    set_reformat_service(reformat_service)

    # Template fetch failure is logged inside and leaves the template empty
    await reformat_service.refresh_template()
    reformat_service.start_periodic_refresh()

    logger.info(
        f"Gateway started (env={settings.environment}, cache_model={settings.cache_model}, "
        f"template_policy={settings.template_refresh_policy})"
    )
    yield

    await reformat_service.stop()
    set_context_cache_service(None)
    set_reformat_service(None)


app = FastAPI(title="Context Cache Gateway", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(context_router)
app.include_router(reformat_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
