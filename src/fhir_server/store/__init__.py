"""Document store adapters."""

from fhir_server.store.base import Collection, DocumentStore, Filter, collection_name
from fhir_server.store.mongo import MongoCollection, MongoDocumentStore

__all__ = [
    "Collection",
    "DocumentStore",
    "Filter",
    "MongoCollection",
    "MongoDocumentStore",
    "collection_name",
]
