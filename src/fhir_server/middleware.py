"""
Per-route-group middleware.

A :class:`Middleware` is the Flask rendering of a handler-chain link: ``before``
runs ahead of the controller and may short-circuit by returning a response,
``after`` runs once the controller has produced its response.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from flask import Blueprint, Flask, Response
from flask.typing import ResponseReturnValue

from fhir_server.context import get_request_context

logger = logging.getLogger(__name__)

type BeforeHook = Callable[[], ResponseReturnValue | None]
type AfterHook = Callable[[Response], Response]


@dataclass(frozen=True)
class Middleware:
    before: BeforeHook | None = None
    after: AfterHook | None = None

    def install(self, scaffold: Blueprint | Flask) -> None:
        """Attach the hooks to a blueprint (one route group) or to the whole app."""
        if self.before is not None:
            scaffold.before_request(self.before)
        if self.after is not None:
            scaffold.after_request(self.after)


def audit_middleware(audit_logger: logging.Logger | None = None) -> Middleware:
    """
    Log the resource, action and outcome recorded by the controller.

    :param audit_logger: Logger to write to; defaults to ``fhir_server.audit``.
    :returns: Middleware with only an ``after`` hook.
    """
    target = audit_logger or logging.getLogger("fhir_server.audit")

    def log_request_context(response: Response) -> Response:
        context = get_request_context()
        if context.action is None:
            return response
        entity = context.entity
        if isinstance(entity, dict):
            entity_id = entity.get("id")
        elif isinstance(entity, str):
            entity_id = entity
        else:
            entity_id = None
        target.info(
            "resource=%s action=%s id=%s status=%s",
            context.resource,
            context.action,
            entity_id,
            response.status_code,
        )
        return response

    return Middleware(after=log_request_context)
