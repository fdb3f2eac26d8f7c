"""
Application configuration settings.

Responsibilities:
- Load environment variables (optionally from a .env file)
- Hold the Replicate credential and the allow-listed caller origin
- Select the staging backend for inline images

Settings are built once at startup and handed to the app; handlers
receive them through the `get_settings` dependency so tests can swap
in their own instance.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv
from fastapi import Request

DEFAULT_VERSION = "stabilityai/triposr:v2.2.0"
DEFAULT_FORMAT = "glb"

STAGING_REPLICATE = "replicate"
STAGING_SUPABASE = "supabase"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


@dataclass(frozen=True)
class Settings:
    PROJECT_NAME: str = "Replicate Proxy"

    replicate_api_token: str = field(default="", repr=False)
    replicate_api_url: str = "https://api.replicate.com/v1"
    allowed_origin: str = ""

    default_version: str = DEFAULT_VERSION
    default_format: str = DEFAULT_FORMAT

    staging_backend: str = STAGING_REPLICATE
    supabase_url: str = ""
    supabase_key: str = field(default="", repr=False)
    staging_bucket: str = "project-uploads"
    staging_prefix: str = "uploads"

    request_timeout: Optional[float] = None
    expose_internal_errors: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from the process environment."""
        load_dotenv(env_file)

        return cls(
            replicate_api_token=os.getenv("REPLICATE_API_TOKEN", "").strip(),
            replicate_api_url=os.getenv("REPLICATE_API_URL", cls.replicate_api_url).rstrip("/"),
            allowed_origin=os.getenv("ALLOWED_ORIGIN", "").strip(),
            default_version=os.getenv("DEFAULT_MODEL_VERSION", DEFAULT_VERSION),
            default_format=os.getenv("DEFAULT_OUTPUT_FORMAT", DEFAULT_FORMAT),
            staging_backend=os.getenv("STAGING_BACKEND", STAGING_REPLICATE).strip().lower(),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_ANON_KEY", ""),
            staging_bucket=os.getenv("STAGING_BUCKET", cls.staging_bucket),
            staging_prefix=os.getenv("STAGING_PREFIX", cls.staging_prefix).strip("/"),
            request_timeout=_env_float("REQUEST_TIMEOUT"),
            expose_internal_errors=_env_flag("EXPOSE_INTERNAL_ERRORS"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings
