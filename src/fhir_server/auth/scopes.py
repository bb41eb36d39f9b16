"""
Resource-scoped authorization.

Scopes follow the SMART/HEART shape ``<context>/<resource>.<access>``, for
example ``patient/Goal.read`` or ``user/*.*``.
"""

import logging
import re

from flask import request
from flask.typing import ResponseReturnValue

from fhir_server.auth.identity import AuthIdentity, get_identity
from fhir_server.common.common import text_response
from fhir_server.middleware import Middleware

logger = logging.getLogger(__name__)

_SCOPE_PATTERN = re.compile(
    r"^(?:patient|user|\*)/(?P<resource>[A-Za-z]+|\*)\.(?P<access>read|write|\*)$"
)
_READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def required_access(method: str) -> str:
    return "read" if method.upper() in _READ_METHODS else "write"


def scope_grants(scope: str, resource_name: str, access: str) -> bool:
    """Check whether ``scope`` allows ``access`` (read or write) to a resource."""
    match = _SCOPE_PATTERN.match(scope)
    if match is None:
        return False
    return match["resource"] in ("*", resource_name) and match["access"] in (
        "*",
        access,
    )


def identity_permits(
    identity: AuthIdentity | None, resource_name: str, method: str
) -> bool:
    """Check whether ``identity`` holds a scope for ``method`` on a resource."""
    if identity is None:
        return False
    access = required_access(method)
    return any(scope_grants(scope, resource_name, access) for scope in identity.scopes)


def scope_check(resource_name: str) -> Middleware:
    """Middleware refusing requests whose identity lacks a scope for the resource."""

    def check_scopes() -> ResponseReturnValue | None:
        identity = get_identity()
        if identity is None:
            return text_response(401, "Unauthorized").to_response()

        if identity_permits(identity, resource_name, request.method):
            return None

        logger.warning(
            "Subject %s lacks %s scope for %s",
            identity.subject,
            required_access(request.method),
            resource_name,
        )
        return text_response(403, "Forbidden").to_response()

    return Middleware(before=check_scopes)
