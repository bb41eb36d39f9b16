"""
Batch submission across resource types.

A ``batch`` Bundle carries one request per entry. Each entry is dispatched to the
controller of the resource named by its URL and answered independently; one
failing entry does not stop the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl

from fhir_server.common.common import decode_resource
from fhir_server.context import RequestContext
from fhir_server.errors import Forbidden, MalformedBody, NotFound, RequestError
from fhir_server.identity import new_id

if TYPE_CHECKING:
    from fhir.bundle import BatchBundle, BatchEntry, BatchEntryResponse
    from fhir.resource import Resource

    from fhir_server.controller import ResourceController

logger = logging.getLogger(__name__)


class BatchController:
    """
    Processes ``batch`` Bundles.

    :param controllers: Resource controllers keyed by resource name.
    :param authorize: Called with the resource name and method of every entry;
        entries it refuses are answered with 403. Every entry is allowed when
        it is not given.
    """

    def __init__(
        self,
        controllers: Mapping[str, ResourceController],
        authorize: Callable[[str, str], bool] | None = None,
    ) -> None:
        self.controllers = controllers
        self.authorize = authorize

    def post(self, body: str | bytes | None, context: RequestContext) -> BatchBundle:
        """
        Run every entry of a batch Bundle.

        :param body: The request body.
        :param context: Context of the batch request itself.
        :returns: A ``batch-response`` Bundle with one entry per request entry.
        :raises MalformedBody: If the body is not a batch Bundle.
        """
        bundle = decode_resource(body)
        if bundle.get("resourceType") != "Bundle" or bundle.get("type") != "batch":
            raise MalformedBody("Request body must be a Bundle of type 'batch'")
        entries = bundle.get("entry", [])
        if not isinstance(entries, list):
            raise MalformedBody("Bundle entry must be a list")

        context.resource = "Bundle"
        context.action = "batch"
        responses = [self._run_entry(entry) for entry in entries]
        context.entity = responses

        return {
            "resourceType": "Bundle",
            "id": new_id(),
            "type": "batch-response",
            "entry": responses,
        }

    def _run_entry(self, entry: BatchEntry) -> BatchEntry:
        try:
            return self._dispatch(entry)
        except RequestError as err:
            logger.info("Batch entry failed with %s: %s", err.status_code, err)
            return {"response": {"status": str(err.status_code), "outcome": str(err)}}

    def _dispatch(self, entry: BatchEntry) -> BatchEntry:
        request = entry.get("request") if isinstance(entry, dict) else None
        if not request or "method" not in request or "url" not in request:
            raise MalformedBody("Batch entry must have request.method and request.url")

        method = request["method"].upper()
        path, _, raw_query = request["url"].lstrip("/").partition("?")
        resource_name, _, resource_id = path.partition("/")
        query = dict(parse_qsl(raw_query))

        controller = self.controllers.get(resource_name)
        if controller is None:
            raise NotFound(f"Unknown resource type {resource_name!r}")
        if self.authorize is not None and not self.authorize(resource_name, method):
            raise Forbidden(f"No {method} access to {resource_name}")

        # Each entry gets its own context; the entries are separate operations.
        context = RequestContext()
        match method:
            case "GET" if resource_id:
                record = controller.show(resource_id, context)
                return _entry("200", resource=record)
            case "GET":
                return _entry("200", resource=dict(controller.index(query, context)))
            case "POST":
                record = self._resource(entry)
                location = controller.create_resource(record, context)
                return _entry("201", resource=record, location=location)
            case "PUT" if resource_id:
                record = controller.update_resource(
                    resource_id, self._resource(entry), context
                )
                return _entry("200", resource=record)
            case "PUT":
                record, location = controller.conditional_update_resource(
                    controller.required_filter(query), self._resource(entry), context
                )
                if location is None:
                    return _entry("200", resource=record)
                return _entry("201", resource=record, location=location)
            case "DELETE" if resource_id:
                controller.delete(resource_id, context)
                return _entry("204")
            case "DELETE":
                controller.conditional_delete(query, context)
                return _entry("204")
            case _:
                raise MalformedBody(f"Unsupported batch method {method}")

    @staticmethod
    def _resource(entry: BatchEntry) -> Resource:
        resource = entry.get("resource")
        if not isinstance(resource, dict):
            raise MalformedBody("Batch entry must carry a resource object")
        return dict(resource)


def _entry(
    status: str, resource: Resource | None = None, location: str | None = None
) -> BatchEntry:
    response: BatchEntryResponse = {"status": status}
    if location is not None:
        response["location"] = location
    entry: BatchEntry = {"response": response}
    if resource is not None:
        entry["resource"] = resource
    return entry
