"""
MongoDB implementation of the document store.

Resource ids are stored as the document ``_id``; the adapter maps between the
``id`` key used by resources and Mongo's primary key.
"""

import logging
from typing import Any

from fhir.resource import Resource
from pymongo import MongoClient
from pymongo.collection import Collection as PyMongoCollection
from pymongo.errors import PyMongoError

from fhir_server.errors import StoreError
from fhir_server.store.base import Filter, collection_name

logger = logging.getLogger(__name__)


def _to_mongo_query(query: Filter | None) -> Filter:
    if not query:
        return {}
    return {("_id" if key == "id" else key): value for key, value in query.items()}


def _to_mongo_document(document: Resource) -> dict[str, Any]:
    stored = {key: value for key, value in document.items() if key != "id"}
    stored["_id"] = document["id"]
    return stored


def _from_mongo_document(document: dict[str, Any]) -> Resource:
    resource: Resource = {"id": str(document["_id"])}
    resource.update((key, value) for key, value in document.items() if key != "_id")
    return resource


class MongoCollection:
    """A :class:`~fhir_server.store.base.Collection` backed by a pymongo collection."""

    def __init__(self, collection: PyMongoCollection[dict[str, Any]]) -> None:
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    def find(self, query: Filter | None = None, limit: int = 0) -> list[Resource]:
        try:
            cursor = self._collection.find(_to_mongo_query(query), limit=limit)
            return [_from_mongo_document(document) for document in cursor]
        except PyMongoError as err:
            raise self._store_error("find", err) from err

    def find_one(self, query: Filter) -> Resource | None:
        try:
            document = self._collection.find_one(_to_mongo_query(query))
        except PyMongoError as err:
            raise self._store_error("find_one", err) from err
        return _from_mongo_document(document) if document is not None else None

    def insert(self, document: Resource) -> None:
        try:
            self._collection.insert_one(_to_mongo_document(document))
        except PyMongoError as err:
            raise self._store_error("insert", err) from err

    def update(self, query: Filter, document: Resource) -> bool:
        replacement = _to_mongo_document(document)
        # The primary key is immutable in Mongo; the filter already pins it.
        del replacement["_id"]
        try:
            result = self._collection.replace_one(_to_mongo_query(query), replacement)
        except PyMongoError as err:
            raise self._store_error("update", err) from err
        return result.matched_count > 0

    def remove(self, query: Filter) -> int:
        try:
            result = self._collection.delete_many(_to_mongo_query(query))
        except PyMongoError as err:
            raise self._store_error("remove", err) from err
        return result.deleted_count

    def _store_error(self, operation: str, err: PyMongoError) -> StoreError:
        logger.error("Mongo %s on collection %s failed: %s", operation, self.name, err)
        return StoreError(f"{operation} on {self.name} failed: {err}")


class MongoDocumentStore:
    """
    Document store over a single Mongo database.

    :param uri: Mongo connection string.
    :param database: Name of the database holding the resource collections.
    :param client: Optional pre-built client, mainly for tests.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        client: MongoClient[dict[str, Any]] | None = None,
    ) -> None:
        self._client = client if client is not None else MongoClient(uri)
        self._database = self._client[database]

    def collection(self, resource_name: str) -> MongoCollection:
        return MongoCollection(self._database[collection_name(resource_name)])
