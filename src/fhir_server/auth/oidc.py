"""
OpenID Connect session login with bearer-token introspection.

Browser clients carry no ``Authorization`` header: they are sent to the
provider to log in, come back through ``/redirect`` and are then recognised by
their session cookie. Machine clients present a bearer token, which is checked
against the provider's introspection endpoint on every request. Both kinds of
client share the same routes.
"""

import logging
import secrets

from flask import Flask, Response, redirect, request, session
from flask.typing import ResponseReturnValue

from fhir_server.auth.identity import AuthIdentity, set_identity
from fhir_server.auth.oauth import AuthenticationError, OAuthClient
from fhir_server.common.common import text_response
from fhir_server.middleware import BeforeHook

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "mysession"
SESSION_IDENTITY_KEY = "identity"
SESSION_STATE_KEY = "oauth_state"

# Endpoints reachable without logging in.
EXEMPT_ENDPOINTS = frozenset({"health_check", "oauth_redirect", "logout", "static"})


def unauthorized(message: str) -> Response:
    response = text_response(401, message).to_response()
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


def introspection_handler(client: OAuthClient) -> BeforeHook:
    """Authenticate a request from its bearer token."""

    def authenticate_bearer_token() -> ResponseReturnValue | None:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            return unauthorized("Authorization header must be 'Bearer <token>'")

        try:
            claims = client.introspect(token)
        except AuthenticationError as err:
            logger.warning("Token introspection failed: %s", err)
            return unauthorized("Token could not be verified")

        if not claims.get("active"):
            logger.warning("Rejected inactive token for %s", request.path)
            return unauthorized("Token is not active")

        set_identity(AuthIdentity.from_claims(claims, auth_type="bearer"))
        return None

    return authenticate_bearer_token


def session_authentication_handler(
    client: OAuthClient, redirect_uri: str
) -> BeforeHook:
    """Authenticate from the session, or send the browser off to log in."""

    def authenticate_session() -> ResponseReturnValue | None:
        stored = session.get(SESSION_IDENTITY_KEY)
        if stored:
            set_identity(AuthIdentity.from_claims(stored, auth_type="session"))
            return None

        state = secrets.token_urlsafe(16)
        session[SESSION_STATE_KEY] = state
        return redirect(client.authorization_redirect(redirect_uri, state))

    return authenticate_session


def authentication_handler(
    bearer_flow: BeforeHook, session_flow: BeforeHook
) -> BeforeHook:
    """
    Pick the flow per request.

    Any ``Authorization`` header selects introspection, even when a session
    cookie is also present.
    """

    def authenticate() -> ResponseReturnValue | None:
        if request.endpoint in EXEMPT_ENDPOINTS:
            return None
        if request.headers.get("Authorization"):
            return bearer_flow()
        return session_flow()

    return authenticate


def redirect_handler(client: OAuthClient, redirect_uri: str, server_url: str):
    """
    Handle the provider's authorization-code callback.

    Exchanges the code, fetches the user's claims, stores them in the session and
    sends the browser back to the server root.
    """

    def oauth_redirect() -> ResponseReturnValue:
        expected_state = session.pop(SESSION_STATE_KEY, None)
        if not expected_state or request.args.get("state") != expected_state:
            return text_response(400, "Invalid OAuth state").to_response()

        code = request.args.get("code")
        if not code:
            return text_response(400, "Missing authorization code").to_response()

        try:
            tokens = client.exchange_code(code, redirect_uri)
            userinfo = client.fetch_userinfo(tokens["access_token"])
        except AuthenticationError as err:
            logger.warning("Login callback failed: %s", err)
            return unauthorized("Login failed")

        session[SESSION_IDENTITY_KEY] = {
            **userinfo,
            "sub": userinfo.get("sub", ""),
            # An omitted scope means the requested scopes were granted.
            "scope": tokens.get("scope", client.scopes),
        }
        return redirect(server_url)

    return oauth_redirect


def logout_handler(server_url: str):
    def logout() -> ResponseReturnValue:
        session.clear()
        return redirect(server_url)

    return logout


def set_up_session_auth(
    app: Flask, client: OAuthClient, server_url: str, session_secret: str
) -> None:
    """
    Install the session store, the per-request authentication hook and the
    ``/redirect`` and ``/logout`` routes on ``app``.
    """
    app.secret_key = session_secret
    app.config["SESSION_COOKIE_NAME"] = SESSION_COOKIE_NAME

    root = server_url.rstrip("/") + "/"
    redirect_uri = f"{root}redirect"

    app.before_request(
        authentication_handler(
            introspection_handler(client),
            session_authentication_handler(client, redirect_uri),
        )
    )
    app.add_url_rule(
        "/redirect",
        endpoint="oauth_redirect",
        view_func=redirect_handler(client, redirect_uri, root),
        methods=["GET"],
    )
    app.add_url_rule(
        "/logout", endpoint="logout", view_func=logout_handler(root), methods=["GET"]
    )
