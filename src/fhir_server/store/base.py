"""
Interfaces shared by the document store adapters.

A collection holds the documents of exactly one resource type. Filters are
equality matches on (possibly dotted) document paths, e.g.
``{"patient.referenceid": "123"}``.
"""

from typing import Any, Protocol

from fhir.resource import Resource

type Filter = dict[str, Any]


class Collection(Protocol):
    def find(self, query: Filter | None = None, limit: int = 0) -> list[Resource]:
        """Return the documents matching ``query``; ``limit`` of 0 means no limit."""
        ...

    def find_one(self, query: Filter) -> Resource | None: ...

    def insert(self, document: Resource) -> None: ...

    def update(self, query: Filter, document: Resource) -> bool:
        """Replace the first document matching ``query``; ``False`` if none matched."""
        ...

    def remove(self, query: Filter) -> int:
        """Remove every document matching ``query`` and return how many went."""
        ...


class DocumentStore(Protocol):
    def collection(self, resource_name: str) -> Collection: ...


def collection_name(resource_name: str) -> str:
    """
    Name of the collection backing a resource type.

    :param resource_name: Resource type, e.g. ``"Goal"``.
    :returns: The lower-cased, pluralised name, e.g. ``"goals"``.
    """
    return f"{resource_name.lower()}s"
