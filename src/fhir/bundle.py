"""FHIR Bundle envelopes."""

from typing import NotRequired, TypedDict

from fhir.resource import Resource


class BundleEntry(TypedDict):
    title: str
    id: str
    content: Resource


class Bundle(TypedDict):
    type: str
    title: str
    id: str
    updated: str
    totalResults: int
    entry: list[Resource] | list[BundleEntry]


class BatchEntryRequest(TypedDict):
    method: str
    url: str


class BatchEntryResponse(TypedDict):
    status: str
    location: NotRequired[str]
    outcome: NotRequired[str]


class BatchEntry(TypedDict):
    resource: NotRequired[Resource]
    request: NotRequired[BatchEntryRequest]
    response: NotRequired[BatchEntryResponse]


class BatchBundle(TypedDict):
    resourceType: str
    id: NotRequired[str]
    type: str
    entry: list[BatchEntry]
