"""FHIR data types shared by the record server."""

from fhir.bundle import (
    BatchBundle,
    BatchEntry,
    BatchEntryRequest,
    BatchEntryResponse,
    Bundle,
    BundleEntry,
)
from fhir.reference import Reference
from fhir.resource import Resource

__all__ = [
    "BatchBundle",
    "BatchEntry",
    "BatchEntryRequest",
    "BatchEntryResponse",
    "Bundle",
    "BundleEntry",
    "Reference",
    "Resource",
]
