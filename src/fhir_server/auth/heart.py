"""
HEART profile setup.

HEART clients authenticate to the provider with a ``private_key_jwt`` client
assertion instead of a client secret. The signing key is a private JWK read
from disk; the provider's endpoints are derived from its base URL.
"""

import json
import logging
import uuid
from time import time

import jwt
from flask import Flask

from fhir_server.auth.oauth import OAuthClient, OAuthEndpoints
from fhir_server.auth.oidc import set_up_session_auth

logger = logging.getLogger(__name__)

ASSERTION_LIFETIME_SECONDS = 300


class ClientAssertionSigner:
    """Signs client assertions for one client id with one private JWK."""

    def __init__(self, client_id: str, jwk_data: dict[str, str]) -> None:
        self.client_id = client_id
        self.algorithm = jwk_data.get("alg", "RS256")
        self.key_id = jwk_data.get("kid")
        self._key = jwt.PyJWK(jwk_data, algorithm=self.algorithm).key

    @classmethod
    def from_jwk_file(cls, path_to_jwk: str, client_id: str) -> "ClientAssertionSigner":
        with open(path_to_jwk) as f:
            jwk_data = json.load(f)
        return cls(client_id, jwk_data)

    def __call__(self, audience: str) -> str:
        now = int(time())
        claims = {
            "sub": self.client_id,
            "iss": self.client_id,
            "jti": str(uuid.uuid4()),
            "aud": audience,
            "iat": now,
            "exp": now + ASSERTION_LIFETIME_SECONDS,
        }
        additional_headers = {"kid": self.key_id} if self.key_id else None

        return jwt.encode(
            claims, self._key, algorithm=self.algorithm, headers=additional_headers
        )


def set_up_routes(
    jwk_path: str,
    client_id: str,
    op_url: str,
    server_url: str,
    session_secret: str,
    app: Flask,
    scopes: str = "openid",
) -> OAuthClient:
    """
    Install HEART authentication on ``app``.

    :param jwk_path: Path to the client's private key, as a JSON Web Key.
    :param client_id: Client id registered with the provider.
    :param op_url: Base URL of the OpenID provider.
    :param server_url: Public root URL of this server.
    :param session_secret: Secret used to sign session cookies.
    :param app: The application to configure.
    :param scopes: Space separated scopes requested at login, including the
        resource scopes browser sessions are checked against.
    :returns: The OAuth client the installed handlers use.
    """
    client = OAuthClient(
        client_id=client_id,
        endpoints=OAuthEndpoints.from_provider(op_url),
        assertion_signer=ClientAssertionSigner.from_jwk_file(jwk_path, client_id),
        scopes=scopes,
    )
    set_up_session_auth(app, client, server_url, session_secret)
    logger.info("HEART authentication enabled against %s", op_url)
    return client
