"""
Request-scoped context populated by the resource controllers.

Middleware that runs after a controller in the same request (audit logging,
authorization decisions) reads what the controller did from here instead of
re-deriving it from the request.
"""

from dataclasses import dataclass
from typing import Any

from flask import g

_CONTEXT_ATTRIBUTE = "resource_context"


@dataclass
class RequestContext:
    """
    What a controller did while serving one request.

    :param resource: Resource type name, e.g. ``"Goal"``.
    :param action: One of ``search``, ``read``, ``create``, ``update``, ``delete``.
    :param entity: The record(s) loaded or written, or the bare id for a delete.
    """

    resource: str | None = None
    action: str | None = None
    entity: Any = None

    def as_mapping(self) -> dict[str, Any]:
        """Return the context keyed by ``Resource``, ``Action`` and resource name."""
        mapping: dict[str, Any] = {"Resource": self.resource, "Action": self.action}
        if self.resource is not None:
            mapping[self.resource] = self.entity
        return mapping


def get_request_context() -> RequestContext:
    """
    Return the context of the active request, creating it on first use.

    Must be called inside a Flask request (or app) context.
    """
    context: RequestContext | None = g.get(_CONTEXT_ATTRIBUTE)
    if context is None:
        context = RequestContext()
        setattr(g, _CONTEXT_ATTRIBUTE, context)
    return context
