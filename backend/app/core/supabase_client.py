"""
Supabase client initialization and configuration.

This module provides a shared Supabase client instance for the
object-store staging backend.
"""

from typing import Dict, Tuple
from supabase import create_client, Client
from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logger import logger


class SupabaseClient:
    """Caches one Supabase client per (url, key) pair."""

    _instances: Dict[Tuple[str, str], Client] = {}

    @classmethod
    def get_client(cls, settings: Settings) -> Client:
        """
        Get or create the Supabase client instance.

        Args:
            settings: Application settings carrying the Supabase credentials

        Returns:
            Supabase client instance

        Raises:
            ConfigurationError: If the Supabase credentials are missing
        """
        key = (settings.supabase_url, settings.supabase_key)
        if key not in cls._instances:
            if not settings.supabase_url or not settings.supabase_key:
                raise ConfigurationError(
                    "Missing Supabase credentials. Please set SUPABASE_URL and "
                    "SUPABASE_ANON_KEY environment variables."
                )

            cls._instances[key] = create_client(settings.supabase_url, settings.supabase_key)
            logger.info("Supabase client initialized successfully")

        return cls._instances[key]

    @classmethod
    def reset(cls):
        """Drop cached clients (useful for testing)."""
        cls._instances.clear()


def get_supabase(settings: Settings) -> Client:
    """Get the Supabase client instance."""
    return SupabaseClient.get_client(settings)
