"""
Flask view functions for the resource routes.

Each handler unpacks the Flask request, calls the matching
:class:`~fhir_server.controller.ResourceController` operation and turns the
outcome, including any :class:`~fhir_server.errors.RequestError`, into a
response.
"""

import logging
from collections.abc import Callable
from functools import wraps

from flask import Response, request

from fhir_server.common.common import (
    JSON_HEADERS,
    FlaskResponse,
    json_response,
    text_response,
)
from fhir_server.context import get_request_context
from fhir_server.controller import ResourceController
from fhir_server.errors import RequestError

logger = logging.getLogger(__name__)


def handles_request_errors[**P](
    view: Callable[P, FlaskResponse],
) -> Callable[P, Response]:
    """Turn a view's :class:`FlaskResponse` or :class:`RequestError` into a Response."""

    @wraps(view)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Response:
        try:
            flask_response = view(*args, **kwargs)
        except RequestError as err:
            log = logger.error if err.status_code >= 500 else logger.info
            log(
                "%s %s failed with %s: %s",
                request.method,
                request.path,
                err.status_code,
                err,
            )
            flask_response = text_response(err.status_code, str(err))
        return flask_response.to_response()

    return wrapper


class ResourceHandler:
    """Binds one controller to the seven resource routes."""

    def __init__(self, controller: ResourceController) -> None:
        self.controller = controller

    @handles_request_errors
    def index_handler(self) -> FlaskResponse:
        bundle = self.controller.index(request.args, get_request_context())
        return json_response(200, bundle)

    @handles_request_errors
    def show_handler(self, resource_id: str) -> FlaskResponse:
        record = self.controller.show(resource_id, get_request_context())
        return json_response(200, record)

    @handles_request_errors
    def create_handler(self) -> FlaskResponse:
        location = self.controller.create(request.get_data(), get_request_context())
        return FlaskResponse(
            status_code=201, headers={**JSON_HEADERS, "Location": location}
        )

    @handles_request_errors
    def update_handler(self, resource_id: str) -> FlaskResponse:
        self.controller.update(resource_id, request.get_data(), get_request_context())
        return FlaskResponse(status_code=200)

    @handles_request_errors
    def conditional_update_handler(self) -> FlaskResponse:
        _, location = self.controller.conditional_update(
            request.args, request.get_data(), get_request_context()
        )
        if location is None:
            return FlaskResponse(status_code=200)
        return FlaskResponse(
            status_code=201, headers={**JSON_HEADERS, "Location": location}
        )

    @handles_request_errors
    def delete_handler(self, resource_id: str) -> FlaskResponse:
        self.controller.delete(resource_id, get_request_context())
        return FlaskResponse(status_code=204)

    @handles_request_errors
    def conditional_delete_handler(self) -> FlaskResponse:
        self.controller.conditional_delete(request.args, get_request_context())
        return FlaskResponse(status_code=204)
