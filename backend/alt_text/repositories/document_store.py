"""
Document store interface.

The alt-text service does not own image records; it reads and updates them
through a document store that exposes two operations over named
collections: find-by-filter and update-by-id.
"""

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from alt_text.utils.exceptions import DocumentStoreError


@dataclass(frozen=True)
class Equals:
    """Field equals value (``None`` matches an explicit null)."""
    field: str
    value: Any


@dataclass(frozen=True)
class Exists:
    """Field is present (or absent, with ``exists=False``) on the record."""
    field: str
    exists: bool = True


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of predicates."""
    predicates: Sequence["Predicate"]


Predicate = Union[Equals, Exists, AnyOf]


def missing_field(field: str) -> AnyOf:
    """Predicate for records whose field is empty string, null, or absent."""
    return AnyOf((Equals(field, ""), Equals(field, None), Exists(field, False)))


def matches(record: Dict[str, Any], predicate: Predicate) -> bool:
    """Evaluate a predicate against a plain record."""
    if isinstance(predicate, Equals):
        if predicate.field not in record:
            return False
        return record[predicate.field] == predicate.value
    if isinstance(predicate, Exists):
        return (predicate.field in record) == predicate.exists
    if isinstance(predicate, AnyOf):
        return any(matches(record, p) for p in predicate.predicates)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class DocumentStore(ABC):
    """Read/update access to collections of image records."""

    @abstractmethod
    def find(
        self,
        collection: str,
        where: Optional[Predicate] = None,
        limit: int = 500,
        select: Optional[Iterable[str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find records in a collection.

        Args:
            collection: Collection name
            where: Optional filter predicate
            limit: Maximum number of records to return
            select: Optional field names to include (``id`` is always included)

        Returns:
            List of records as dictionaries

        Raises:
            DocumentStoreError: If the query fails
        """
        pass

    @abstractmethod
    def update(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update fields on one record.

        Returns:
            The updated record

        Raises:
            DocumentStoreError: If the record does not exist or the update fails
        """
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    Document store kept in process memory.

    Used for local development and tests. Records are copied on the way in
    and out so callers never share mutable state with the store.
    """

    def __init__(self, collections: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None):
        self._lock = threading.Lock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for name, records in (collections or {}).items():
            for record in records:
                self.add(name, record)

    def add(self, collection: str, record: Dict[str, Any]) -> None:
        """Insert or replace a record (must carry an ``id``)."""
        if "id" not in record:
            raise DocumentStoreError("Record is missing an id", {"collection": collection})
        with self._lock:
            self._collections.setdefault(collection, {})[str(record["id"])] = copy.deepcopy(record)

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._collections.get(collection, {}).get(str(record_id))
            return copy.deepcopy(record) if record is not None else None

    def find(self, collection, where=None, limit=500, select=None):
        with self._lock:
            records = list(self._collections.get(collection, {}).values())

        results = []
        for record in records:
            if where is not None and not matches(record, where):
                continue
            if select is not None:
                fields = set(select) | {"id"}
                record = {k: v for k, v in record.items() if k in fields}
            results.append(copy.deepcopy(record))
            if len(results) >= limit:
                break
        return results

    def update(self, collection, record_id, data):
        with self._lock:
            records = self._collections.get(collection, {})
            record = records.get(str(record_id))
            if record is None:
                raise DocumentStoreError(
                    f"Record {record_id} not found in {collection}",
                    {"collection": collection, "id": record_id},
                )
            record.update(copy.deepcopy(data))
            return copy.deepcopy(record)
