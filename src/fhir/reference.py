"""FHIR Reference type."""

from typing import NotRequired, TypedDict


class Reference(TypedDict):
    reference: str
    referenceid: NotRequired[str]
    type: NotRequired[str]
