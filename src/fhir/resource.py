"""Opaque FHIR resource document."""

from typing import Any

# Resources are stored and served as plain JSON objects; their schema is owned
# by each resource type and is not modelled here.
type Resource = dict[str, Any]
