"""
Generic resource controller.

One :class:`ResourceController` serves every resource type; the per-type
differences come from its :class:`~fhir_server.resources.ResourceConfig`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from fhir_server.bundle import build_bundle
from fhir_server.common.common import decode_resource
from fhir_server.errors import (
    InvalidIdentifier,
    MissingSearchCriteria,
    MultipleMatches,
    NotFound,
)
from fhir_server.identity import is_valid_id, new_id, normalize_id
from fhir_server.search import build_filter

if TYPE_CHECKING:
    from fhir.bundle import Bundle
    from fhir.resource import Resource

    from fhir_server.context import RequestContext
    from fhir_server.resources import ResourceConfig
    from fhir_server.store.base import Collection, Filter

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class ResourceController:
    """
    CRUD and conditional search over one resource collection.

    Every operation records what it did on the :class:`RequestContext` it is
    given. Failures are raised as :class:`~fhir_server.errors.RequestError`
    subclasses and translated into responses by the handler layer.
    """

    def __init__(
        self,
        config: ResourceConfig,
        collection: Collection,
        location_base: str,
    ) -> None:
        """
        Create a controller instance.

        :param config: Configuration of the resource type served.
        :param collection: Store collection holding that resource type.
        :param location_base: Scheme, host and port used to build ``Location``
            URLs, e.g. ``"http://fhir-host:3001"``.
        """
        self.config = config
        self.collection = collection
        self.location_base = location_base.rstrip("/")

    @property
    def name(self) -> str:
        return self.config.name

    def location(self, resource_id: str) -> str:
        return f"{self.location_base}/{self.name}/{resource_id}"

    def index(self, query: Mapping[str, str], context: RequestContext) -> Bundle:
        """
        Search the collection.

        Without recognised search parameters the first :data:`PAGE_SIZE` documents
        are returned unfiltered.

        :param query: Request query parameters.
        :param context: Context of the current request.
        :returns: A Bundle of at most :data:`PAGE_SIZE` results.
        :raises StoreError: If the store query fails.
        """
        self._set_context(context, "search")
        criteria = build_filter(query, self.config.search_params)
        records = self.collection.find(criteria or None, limit=PAGE_SIZE)
        context.entity = records
        return build_bundle(self.name, records, wrap_entries=self.config.wrap_entries)

    def show(self, resource_id: str, context: RequestContext) -> Resource:
        """
        Load a single resource.

        :raises InvalidIdentifier: If ``resource_id`` is malformed. The store is
            not touched in that case.
        :raises NotFound: If no resource has that id.
        :raises StoreError: If the store query fails.
        """
        self._set_context(context, "read")
        resource_id = self._check_id(resource_id)
        record = self.collection.find_one({"id": resource_id})
        if record is None:
            raise NotFound(f"{self.name} {resource_id} not found")
        context.entity = record
        return record

    def create(self, body: str | bytes | None, context: RequestContext) -> str:
        """
        Create a resource from a request body.

        :returns: The ``Location`` URL of the new resource.
        :raises MalformedBody: If the body does not decode to a JSON object.
        :raises StoreError: If the insert fails.
        """
        return self.create_resource(decode_resource(body), context)

    def create_resource(self, record: Resource, context: RequestContext) -> str:
        # Client supplied ids are never honoured.
        record["id"] = new_id()
        self._set_context(context, "create", record)
        self.collection.insert(record)
        return self.location(record["id"])

    def update(
        self, resource_id: str, body: str | bytes | None, context: RequestContext
    ) -> Resource:
        """
        Replace a resource wholesale.

        The route id always wins over any id in the body.

        :raises InvalidIdentifier: If ``resource_id`` is malformed.
        :raises MalformedBody: If the body does not decode to a JSON object.
        :raises NotFound: If no resource has that id.
        :raises StoreError: If the update fails.
        """
        return self.update_resource(resource_id, decode_resource(body), context)

    def update_resource(
        self, resource_id: str, record: Resource, context: RequestContext
    ) -> Resource:
        resource_id = self._check_id(resource_id)
        record["id"] = resource_id
        self._set_context(context, "update", record)
        if not self.collection.update({"id": resource_id}, record):
            raise NotFound(f"{self.name} {resource_id} not found")
        return record

    def conditional_update(
        self,
        query: Mapping[str, str],
        body: str | bytes | None,
        context: RequestContext,
    ) -> tuple[Resource, str | None]:
        """
        Update the single resource matching the search parameters.

        No match creates the resource; more than one match is refused.

        :returns: The stored record and, if it was created, its ``Location``.
        :raises MissingSearchCriteria: If no recognised search parameter is given.
        :raises MultipleMatches: If several resources match.
        """
        criteria = self.required_filter(query)
        record = decode_resource(body)
        return self.conditional_update_resource(criteria, record, context)

    def conditional_update_resource(
        self, criteria: Filter, record: Resource, context: RequestContext
    ) -> tuple[Resource, str | None]:
        matches = self.collection.find(criteria, limit=2)
        if not matches:
            location = self.create_resource(record, context)
            return record, location
        if len(matches) > 1:
            self._set_context(context, "update")
            raise MultipleMatches(
                f"Conditional update on {self.name} matched more than one resource"
            )
        return self.update_resource(matches[0]["id"], record, context), None

    def delete(self, resource_id: str, context: RequestContext) -> None:
        """
        Delete a resource by id.

        :raises InvalidIdentifier: If ``resource_id`` is malformed.
        :raises NotFound: If no resource has that id, including a repeated delete.
        :raises StoreError: If the delete fails.
        """
        resource_id = self._check_id(resource_id)
        self._set_context(context, "delete", resource_id)
        if not self.collection.remove({"id": resource_id}):
            raise NotFound(f"{self.name} {resource_id} not found")

    def conditional_delete(
        self, query: Mapping[str, str], context: RequestContext
    ) -> list[str]:
        """
        Delete every resource matching the search parameters.

        Matching nothing is not an error.

        :returns: The ids of the deleted resources.
        :raises MissingSearchCriteria: If no recognised search parameter is given.
        """
        criteria = self.required_filter(query)
        self._set_context(context, "delete")
        ids = [record["id"] for record in self.collection.find(criteria)]
        if ids:
            self.collection.remove(criteria)
        context.entity = ids
        return ids

    def required_filter(self, query: Mapping[str, str]) -> Filter:
        criteria = build_filter(query, self.config.search_params)
        if not criteria:
            raise MissingSearchCriteria(
                f"Conditional operations on {self.name} need one of the search "
                f"parameters: {', '.join(sorted(self.config.search_params))}"
            )
        return criteria

    def _check_id(self, resource_id: str) -> str:
        """Validate a route id and return it in its stored form."""
        if not is_valid_id(resource_id):
            raise InvalidIdentifier(f"Invalid id {resource_id!r}")
        return normalize_id(resource_id)

    def _set_context(
        self, context: RequestContext, action: str, entity: object = None
    ) -> None:
        logger.debug("Setting %s %s context", self.name, action)
        context.resource = self.name
        context.action = action
        if entity is not None:
            context.entity = entity
