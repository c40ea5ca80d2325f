"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Cached settings factory
    get_supabase_client: Shared Supabase client
    check_connection: Catalog health check
    reset_connection: Drop the cached client
"""

from config.settings import settings, get_settings, Settings
from config.database import get_supabase_client, check_connection, reset_connection

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "check_connection",
    "reset_connection",
]
