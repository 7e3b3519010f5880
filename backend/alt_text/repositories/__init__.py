"""
Repositories for image records.

Provides the document store abstraction and its adapters:
- In-memory (development, tests)
- Supabase (PostgreSQL tables)
"""

from alt_text.repositories.document_store import (
    AnyOf,
    DocumentStore,
    Equals,
    Exists,
    InMemoryDocumentStore,
    missing_field,
)


def create_document_store(app_settings) -> DocumentStore:
    """Create the document store selected by ``settings.document_store``."""
    if app_settings.document_store == "supabase":
        from alt_text.core.database import get_supabase_client
        from alt_text.repositories.supabase_store import SupabaseDocumentStore
        return SupabaseDocumentStore(
            get_supabase_client(app_settings.supabase_url, app_settings.supabase_service_role_key)
        )
    return InMemoryDocumentStore()


__all__ = [
    "AnyOf",
    "DocumentStore",
    "Equals",
    "Exists",
    "InMemoryDocumentStore",
    "missing_field",
    "create_document_store",
]
