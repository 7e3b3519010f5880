"""
Supabase-backed document store.

Each collection maps to a table of the same name; records are rows with at
least ``id``, ``filename`` and ``url`` columns plus the alt-text column.
"""

import logging
from typing import Any, Dict, List

from alt_text.core.database import get_supabase_client
from alt_text.repositories.document_store import AnyOf, DocumentStore, Equals, Exists, Predicate
from alt_text.utils.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)


def to_postgrest_filter(predicate: Predicate) -> str:
    """
    Render a predicate as a PostgREST logic-tree expression.

    An absent column is NULL in SQL, so ``Exists(field, False)`` and
    ``Equals(field, None)`` both become ``is.null``.
    """
    if isinstance(predicate, Equals):
        if predicate.value is None:
            return f"{predicate.field}.is.null"
        if predicate.value == "":
            return f'{predicate.field}.eq.""'
        return f"{predicate.field}.eq.{predicate.value}"
    if isinstance(predicate, Exists):
        if predicate.exists:
            return f"{predicate.field}.not.is.null"
        return f"{predicate.field}.is.null"
    if isinstance(predicate, AnyOf):
        return "or(" + ",".join(to_postgrest_filter(p) for p in predicate.predicates) + ")"
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class SupabaseDocumentStore(DocumentStore):
    """Document store over Supabase tables."""

    def __init__(self, client=None):
        try:
            self.client = client or get_supabase_client()
        except DocumentStoreError:
            raise
        except Exception as e:
            raise DocumentStoreError(
                f"Failed to initialize Supabase document store: {str(e)}",
                {"error": str(e)},
            ) from e

    def find(self, collection, where=None, limit=500, select=None) -> List[Dict[str, Any]]:
        columns = "*" if select is None else ",".join(sorted(set(select) | {"id"}))
        try:
            query = self.client.table(collection).select(columns)
            if where is not None:
                expression = to_postgrest_filter(where)
                # or_() takes the inner list of an or(...) expression
                if expression.startswith("or(") and expression.endswith(")"):
                    expression = expression[3:-1]
                query = query.or_(expression)
            result = query.limit(limit).execute()
            return list(result.data or [])
        except Exception as e:
            logger.error(f"Error querying {collection}: {str(e)}", exc_info=True)
            raise DocumentStoreError(
                f"Failed to query collection {collection}: {str(e)}",
                {"collection": collection, "error": str(e)},
            ) from e

    def update(self, collection, record_id, data) -> Dict[str, Any]:
        try:
            result = (
                self.client.table(collection)
                .update(data)
                .eq("id", record_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error updating {collection}/{record_id}: {str(e)}", exc_info=True)
            raise DocumentStoreError(
                f"Failed to update {record_id} in {collection}: {str(e)}",
                {"collection": collection, "id": record_id, "error": str(e)},
            ) from e

        if not result.data:
            raise DocumentStoreError(
                f"Record {record_id} not found in {collection}",
                {"collection": collection, "id": record_id},
            )
        return result.data[0]
