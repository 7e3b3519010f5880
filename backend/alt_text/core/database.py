"""
Supabase connection for the supabase document store.

Image records live in tables named after their collections; the client is
created on first use and shared by every request.
"""

import logging
from typing import Optional

try:
    from supabase import create_client, Client
except ImportError:
    create_client = None
    Client = None

from alt_text.core.config import settings
from alt_text.utils.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)


# Shared client, created on first use
_supabase_client: Optional["Client"] = None


def get_supabase_client(
    url: Optional[str] = None,
    service_role_key: Optional[str] = None,
) -> "Client":
    """
    Get or create the Supabase client instance.

    Args:
        url: Supabase project URL (defaults to settings)
        service_role_key: Service role key (defaults to settings)

    Returns:
        Supabase client instance

    Raises:
        DocumentStoreError: If Supabase is not configured or client creation fails
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    if create_client is None:
        raise DocumentStoreError(
            "The supabase package is required for document_store=supabase",
            {},
        )

    url = url or settings.supabase_url
    service_role_key = service_role_key or settings.supabase_service_role_key
    if not url or not service_role_key:
        raise DocumentStoreError(
            "document_store is supabase but SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is not set",
            {},
        )

    try:
        _supabase_client = create_client(url, service_role_key)
        logger.info(f"Initialized Supabase client for: {url}")
        return _supabase_client
    except Exception as e:
        logger.error(f"Supabase client creation failed for {url}: {e}")
        raise DocumentStoreError(
            f"Failed to create Supabase client: {str(e)}",
            {"supabase_url": url},
        ) from e


def reset_supabase_client() -> None:
    """Drop the shared client so the next call builds a new one."""
    global _supabase_client
    _supabase_client = None
