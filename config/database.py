"""
Supabase client for catalog lookups and pricing RPCs.

One client per process. Services take it through get_supabase_client()
unless a client is injected, which is how the tests run against a mock.
"""

from functools import lru_cache
from supabase import create_client, Client
import structlog

from config.settings import settings
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

CATALOG_TABLE = "parts"
CATALOG_RPC = "validate_bulk_skus"


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.

    Call reset_connection() to drop it and reconnect on next use.

    Raises:
        DatabaseError: If the client cannot be created or the catalog
            table is unreachable
    """
    # Only the project host is logged, never the key
    logger.info("connecting_to_supabase", url=settings.supabase_url.split("//")[-1][:30])

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table(CATALOG_TABLE).select("id").limit(1).execute()
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseError("connect", str(e)) from e

    logger.info("supabase_connected")
    return client


def check_connection() -> dict:
    """
    Catalog health for /health and startup.

    Reports the parts count and whether the bulk validation RPC answers.
    When it does not, validation still works through the parts table.
    """
    try:
        client = get_supabase_client()
        parts = client.table(CATALOG_TABLE).select("id", count="exact").limit(1).execute()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    try:
        client.rpc(CATALOG_RPC, {"part_numbers": [], "customer_id": None}).execute()
        validation_path = "rpc"
    except Exception as e:
        logger.warning("catalog_rpc_unavailable", error=str(e))
        validation_path = "fallback"

    return {
        "status": "healthy",
        "parts_count": parts.count,
        "validation_path": validation_path,
    }


def reset_connection():
    """Forget the cached client."""
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
