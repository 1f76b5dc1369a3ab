"""
Configuration module for the Context Cache Gateway.
Centralizes environment variables, logging setup, and constants.
"""
import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# Application Constants
# ============================================================================

SERVICE_NAME = "context-cache-gateway"

# Uploaded context file metadata
CONTEXT_MIME_TYPE = "text/plain"
CONTEXT_DISPLAY_NAME = "Large Context File"

# Template refresh policies
REFRESH_STATIC = "static"
REFRESH_PERIODIC = "periodic"
REFRESH_ON_DEMAND = "on_demand"
REFRESH_POLICIES = (REFRESH_STATIC, REFRESH_PERIODIC, REFRESH_ON_DEMAND)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an env var, treating empty strings as unset."""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    environment: str = "production"
    port: int = 3000

    # Gemini
    google_api_key: Optional[str] = None
    cache_model: str = "models/gemini-2.0-flash-001"
    cache_ttl_seconds: int = 3600
    initial_cache_name: Optional[str] = None

    # S3
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    s3_key_name: Optional[str] = None

    # Scratch directory for staged uploads (None = system temp dir)
    scratch_dir: Optional[str] = None

    # Reformat template
    template_url: Optional[str] = None
    template_refresh_policy: str = REFRESH_STATIC
    template_refresh_interval_seconds: float = 3600
    template_fetch_timeout_seconds: float = 30.0


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    policy = (_env("TEMPLATE_REFRESH_POLICY", REFRESH_STATIC) or REFRESH_STATIC).lower()
    if policy not in REFRESH_POLICIES:
        logger.warning(f"Unknown TEMPLATE_REFRESH_POLICY '{policy}', falling back to '{REFRESH_STATIC}'")
        policy = REFRESH_STATIC

    return Settings(
        environment=_env("ENVIRONMENT", "production"),
        port=int(_env("PORT", "3000")),
        google_api_key=_env("GOOGLE_API_KEY") or _env("API_KEY"),
        cache_model=_env("GEMINI_CACHE_MODEL", "models/gemini-2.0-flash-001"),
        cache_ttl_seconds=int(_env("CONTEXT_CACHE_TTL_SECONDS", "3600")),
        initial_cache_name=_env("CONTEXT_CACHE_NAME"),
        aws_access_key_id=_env("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=_env("AWS_SECRET_ACCESS_KEY"),
        aws_region=_env("AWS_REGION"),
        s3_bucket_name=_env("S3_BUCKET_NAME"),
        s3_key_name=_env("S3_KEY_NAME"),
        scratch_dir=_env("SCRATCH_DIR"),
        template_url=_env("TEMPLATE_URL"),
        template_refresh_policy=policy,
        template_refresh_interval_seconds=float(_env("TEMPLATE_REFRESH_INTERVAL_SECONDS", "3600")),
        template_fetch_timeout_seconds=float(_env("TEMPLATE_FETCH_TIMEOUT_SECONDS", "30")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
