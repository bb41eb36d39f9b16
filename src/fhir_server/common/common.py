"""
Shared lightweight types and helpers used across the record server.
"""

import json
from dataclasses import dataclass

from fhir.resource import Resource
from flask import Response

from fhir_server.errors import MalformedBody

# Request and response bodies travel through the handler layer as JSON strings.
# The alias is used to make intent clearer in function signatures.
type json_str = str

JSON_HEADERS: dict[str, str] = {
    "Content-Type": "application/json; charset=utf-8",
    "Access-Control-Allow-Origin": "*",
}
TEXT_HEADERS: dict[str, str] = {"Content-Type": "text/plain; charset=utf-8"}


@dataclass
class FlaskResponse:
    """
    Lightweight response container returned by the resource handlers.

    This mirrors the minimal set of fields used by the surrounding web framework.

    :param status_code: HTTP status code for the response (e.g., 200, 400, 404).
    :param data: Response body as text, if any.
    :param headers: Response headers, if any.
    """

    status_code: int
    data: str | None = None
    headers: dict[str, str] | None = None

    def to_response(self) -> Response:
        """
        Convert into a :class:`flask.Response`.

        :returns: A Flask response carrying the status, body and headers.
        """
        response = Response(response=self.data or "", status=self.status_code)
        for name, value in (self.headers or {}).items():
            response.headers[name] = value
        return response


def json_response(
    status_code: int, body: object, headers: dict[str, str] | None = None
) -> FlaskResponse:
    """
    Build a JSON :class:`FlaskResponse` with the default resource headers.

    :param status_code: HTTP status code.
    :param body: JSON-serialisable body.
    :param headers: Extra headers merged over :data:`JSON_HEADERS`.
    :returns: The response container.
    """
    return FlaskResponse(
        status_code=status_code,
        data=json.dumps(body),
        headers={**JSON_HEADERS, **(headers or {})},
    )


def text_response(status_code: int, message: str) -> FlaskResponse:
    return FlaskResponse(status_code=status_code, data=message, headers=TEXT_HEADERS)


def decode_resource(body: str | bytes | None) -> Resource:
    """
    Decode a request body into a resource document.

    :param body: Raw request body.
    :returns: The decoded JSON object.
    :raises MalformedBody: If the body is empty, is not valid JSON, or is not a
        JSON object.
    """
    if not body:
        raise MalformedBody("Request body is empty")

    try:
        decoded = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise MalformedBody(f"Failed to decode request body: {err}") from err

    if not isinstance(decoded, dict):
        raise MalformedBody("Request body must be a JSON object")

    return decoded
