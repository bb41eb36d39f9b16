"""
Errors raised by the resource controllers.

Every error carries the HTTP status it is translated to at the handler boundary.
"""

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class RequestError(Exception):
    """
    Raised (and handled) when a request cannot be served.

    Instances of this exception are caught by the resource handlers and converted
    into an appropriate :class:`~fhir_server.common.common.FlaskResponse`.

    :param message: Human-readable error message, returned as the response body.
    """

    message: str
    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        """
        Coercing this exception to a string returns the error message.

        :returns: The error message.
        """
        return self.message


class InvalidIdentifier(RequestError):
    """The route identifier is not a syntactically valid resource id."""

    status_code = 400


class MalformedBody(RequestError):
    """The request payload could not be decoded into a resource."""

    status_code = 400


class MissingSearchCriteria(RequestError):
    """A conditional operation was requested without any usable search parameter."""

    status_code = 400


class Forbidden(RequestError):
    """The authenticated identity holds no scope for the resource and action."""

    status_code = 403


class NotFound(RequestError):
    status_code = 404


class MultipleMatches(RequestError):
    """A conditional update matched more than one resource."""

    status_code = 412


class StoreError(RequestError):
    """The document store failed to complete an operation."""

    status_code = 500
