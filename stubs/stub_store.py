"""
In-memory document store stub.

Implements the :class:`~fhir_server.store.base.DocumentStore` interface well enough
to run the record server without a Mongo instance. Documents are deep-copied on
the way in and out so callers cannot mutate stored state.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any

from fhir.resource import Resource

from fhir_server.errors import StoreError
from fhir_server.store.base import Filter, collection_name

_MISSING = object()


def _lookup(document: Resource, path: str) -> Any:
    """Resolve a dotted path such as ``patient.referenceid`` inside a document."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(document: Resource, query: Filter | None) -> bool:
    return all(
        _lookup(document, path) == value for path, value in (query or {}).items()
    )


@dataclass
class StoreCall:
    """A single call made against a stub collection."""

    operation: str
    query: Filter | None = None
    document: Resource | None = None


class InMemoryCollection:
    """
    A single collection of documents held in a dict keyed by resource id.

    :param name: Collection name, e.g. ``"goals"``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: list[StoreCall] = []
        self._documents: dict[str, Resource] = {}
        self._lock = threading.Lock()
        self._failure: str | None = None

    # ---------------------------
    # Public API for tests
    # ---------------------------

    def fail_with(self, message: str | None) -> None:
        """Make every following call raise :class:`StoreError`; ``None`` resets."""
        self._failure = message

    def seed(self, *documents: Resource) -> None:
        """Insert documents directly, bypassing call recording."""
        with self._lock:
            for document in documents:
                self._documents[document["id"]] = copy.deepcopy(document)

    def reset(self) -> None:
        """Drop every document, recorded call and injected failure."""
        with self._lock:
            self._documents.clear()
        self.calls.clear()
        self._failure = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    # ---------------------------
    # Collection interface
    # ---------------------------

    def find(self, query: Filter | None = None, limit: int = 0) -> list[Resource]:
        self._record("find", query)
        with self._lock:
            found = [
                copy.deepcopy(document)
                for document in self._documents.values()
                if _matches(document, query)
            ]
        return found[:limit] if limit else found

    def find_one(self, query: Filter) -> Resource | None:
        self._record("find_one", query)
        with self._lock:
            for document in self._documents.values():
                if _matches(document, query):
                    return copy.deepcopy(document)
        return None

    def insert(self, document: Resource) -> None:
        self._record("insert", document=document)
        with self._lock:
            if document["id"] in self._documents:
                raise StoreError(f"Duplicate key {document['id']} in {self.name}")
            self._documents[document["id"]] = copy.deepcopy(document)

    def update(self, query: Filter, document: Resource) -> bool:
        self._record("update", query, document)
        with self._lock:
            for key, existing in self._documents.items():
                if _matches(existing, query):
                    self._documents[key] = copy.deepcopy(document)
                    return True
        return False

    def remove(self, query: Filter) -> int:
        self._record("remove", query)
        with self._lock:
            doomed = [
                key
                for key, document in self._documents.items()
                if _matches(document, query)
            ]
            for key in doomed:
                del self._documents[key]
        return len(doomed)

    def _record(
        self,
        operation: str,
        query: Filter | None = None,
        document: Resource | None = None,
    ) -> None:
        self.calls.append(
            StoreCall(operation=operation, query=query, document=document)
        )
        if self._failure is not None:
            raise StoreError(self._failure)


@dataclass
class InMemoryDocumentStore:
    """Document store holding one :class:`InMemoryCollection` per resource type."""

    collections: dict[str, InMemoryCollection] = field(default_factory=dict)

    def collection(self, resource_name: str) -> InMemoryCollection:
        name = collection_name(resource_name)
        if name not in self.collections:
            self.collections[name] = InMemoryCollection(name)
        return self.collections[name]

    def reset(self) -> None:
        for collection in self.collections.values():
            collection.reset()
