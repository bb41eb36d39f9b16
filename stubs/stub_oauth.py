"""
Minimal in-memory stub for an OpenID Connect provider.

Implements the three back-channel endpoints the record server calls:
    - POST <op>/token: authorization code exchange
    - POST <op>/introspect: bearer token introspection (RFC 7662)
    - GET <op>/userinfo: claims of the logged in user

Install it in place of ``fhir_server.auth.oauth.post`` and ``.get``.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from requests import Response
from requests.structures import CaseInsensitiveDict


def _create_response(status_code: int, body: object, reason: str = "") -> Response:
    """
    Create a :class:`requests.Response` object for the stub.

    :param status_code: HTTP status code.
    :param body: JSON-serialisable response body.
    :param reason: HTTP reason phrase (e.g., "OK", "Unauthorized").
    :return: A :class:`requests.Response` instance.
    """
    response = Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
    response._content = json.dumps(body).encode("utf-8")  # noqa: SLF001
    response.reason = reason
    response.encoding = "utf-8"
    return response


@dataclass
class OAuthRequest:
    url: str
    data: dict[str, str] | None = None
    headers: dict[str, str] | None = None
    auth: tuple[str, str] | None = None


@dataclass
class OAuthProviderStub:
    """
    Provider with a fixed set of known codes and tokens.

    :param tokens: Active access tokens mapped to their claims.
    :param codes: Authorization codes mapped to the access token they yield.
    :param userinfo: Claims returned from the userinfo endpoint, per token.
    """

    tokens: dict[str, dict[str, Any]] = field(default_factory=dict)
    codes: dict[str, str] = field(default_factory=dict)
    userinfo: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[OAuthRequest] = field(default_factory=list)

    def post(
        self,
        url: str,
        data: dict[str, str],
        auth: tuple[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 10,  # NOQA ARG002 (unused in stub)
    ) -> Response:
        self.requests.append(
            OAuthRequest(url=url, data=data, headers=headers, auth=auth)
        )

        if url.endswith("/token"):
            token = self.codes.get(data.get("code", ""))
            if token is None:
                return _create_response(400, {"error": "invalid_grant"}, "Bad Request")
            body = {"access_token": token, "token_type": "Bearer"}
            # Tokens without a scope claim answer the way a provider granting
            # exactly the requested scopes may: with no scope at all.
            if "scope" in self.tokens.get(token, {}):
                body["scope"] = self.tokens[token]["scope"]
            return _create_response(200, body, "OK")

        if url.endswith("/introspect"):
            claims = self.tokens.get(data.get("token", ""))
            if claims is None:
                return _create_response(200, {"active": False}, "OK")
            return _create_response(200, {"active": True, **claims}, "OK")

        return _create_response(404, {"error": "not_found"}, "Not Found")

    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: int = 10,  # NOQA ARG002 (unused in stub)
    ) -> Response:
        self.requests.append(OAuthRequest(url=url, headers=headers))

        if not url.endswith("/userinfo"):
            return _create_response(404, {"error": "not_found"}, "Not Found")

        token = (headers or {}).get("Authorization", "").removeprefix("Bearer ")
        if token not in self.tokens:
            return _create_response(401, {"error": "invalid_token"}, "Unauthorized")
        return _create_response(200, self.userinfo.get(token, {"sub": "unknown"}), "OK")
