"""
Module: fhir_server.auth.oauth

OAuth 2.0 / OpenID Connect client used by the session and bearer-token flows.

The client covers the three provider calls the server makes:
    - exchanging an authorization code for tokens,
    - fetching the user's claims from the userinfo endpoint,
    - introspecting a bearer token presented by a machine client.

The client authenticates itself either with HTTP basic auth (client id and
secret) or, when an assertion signer is configured, with a signed
``private_key_jwt`` client assertion.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode, urljoin

import requests
from requests import HTTPError, RequestException, Response

TIMEOUT = 10
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"

PostCallable = Callable[..., Response]
GetCallable = Callable[..., Response]

# Looked up at call time so tests can substitute the transport.
post: PostCallable = requests.post
get: GetCallable = requests.get


class AuthenticationError(Exception):
    """
    Exception raised when a call to the OAuth provider fails or is rejected.
    """


@dataclass(frozen=True)
class OAuthEndpoints:
    authorization_url: str
    token_url: str
    introspection_url: str
    userinfo_url: str

    @classmethod
    def from_provider(cls, provider_url: str) -> "OAuthEndpoints":
        """Derive the endpoints of an OpenID provider from its base URL."""
        base = provider_url.rstrip("/") + "/"
        return cls(
            authorization_url=urljoin(base, "authorize"),
            token_url=urljoin(base, "token"),
            introspection_url=urljoin(base, "introspect"),
            userinfo_url=urljoin(base, "userinfo"),
        )


class OAuthClient:
    """
    A client for one OAuth provider registration.

    Attributes:
        client_id (str): The client id registered with the provider.
        endpoints (OAuthEndpoints): The provider's endpoints.
        scopes (str): Space separated scopes requested at login.
    """

    def __init__(
        self,
        client_id: str,
        endpoints: OAuthEndpoints,
        client_secret: str | None = None,
        assertion_signer: Callable[[str], str] | None = None,
        scopes: str = "openid",
    ) -> None:
        self.client_id = client_id
        self.endpoints = endpoints
        self.client_secret = client_secret
        self.assertion_signer = assertion_signer
        self.scopes = scopes

    def authorization_redirect(self, redirect_uri: str, state: str) -> str:
        """Build the URL a browser is sent to in order to log in."""
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.client_id,
                "redirect_uri": redirect_uri,
                "scope": self.scopes,
                "state": state,
            }
        )
        return f"{self.endpoints.authorization_url}?{query}"

    def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns:
            dict[str, Any]: The token response, including ``access_token``.

        Raises:
            AuthenticationError: If the provider rejects the code.
        """
        tokens = self._post_form(
            self.endpoints.token_url,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
        if "access_token" not in tokens:
            raise AuthenticationError("Token response did not contain an access_token")
        return tokens

    def fetch_userinfo(self, access_token: str) -> dict[str, Any]:
        try:
            response = get(
                self.endpoints.userinfo_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
                timeout=TIMEOUT,
            )
        except RequestException as err:
            raise AuthenticationError(f"Userinfo request failed: {err}") from err
        return self._json(response, "Userinfo")

    def introspect(self, token: str) -> dict[str, Any]:
        """
        Ask the provider whether a bearer token is active, and for its claims.

        Raises:
            AuthenticationError: If the introspection call itself fails.
        """
        return self._post_form(
            self.endpoints.introspection_url,
            {"token": token, "token_type_hint": "access_token"},
        )

    def _post_form(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        auth: tuple[str, str] | None = None
        form = dict(data)
        if self.assertion_signer is not None:
            form["client_id"] = self.client_id
            form["client_assertion_type"] = CLIENT_ASSERTION_TYPE
            form["client_assertion"] = self.assertion_signer(url)
        else:
            auth = (self.client_id, self.client_secret or "")

        try:
            response = post(
                url,
                data=form,
                auth=auth,
                headers={"Accept": "application/json"},
                timeout=TIMEOUT,
            )
        except RequestException as err:
            raise AuthenticationError(f"Request to {url} failed: {err}") from err
        return self._json(response, url)

    @staticmethod
    def _json(response: Response, what: str) -> dict[str, Any]:
        try:
            response.raise_for_status()
        except HTTPError as err:
            raise AuthenticationError(
                f"{what} request failed: {err.response.status_code} "
                f"{err.response.reason}"
            ) from err

        try:
            body = response.json()
        except ValueError as err:
            raise AuthenticationError(f"{what} response was not JSON") from err
        if not isinstance(body, dict):
            raise AuthenticationError(f"{what} response was not a JSON object")
        return body
