"""
Selection of the authentication strategy.

Exactly one strategy is active for the lifetime of the process. It is resolved
once, at startup, into a fixed set of app-wide hooks and routes plus the
middleware each resource group gets.
"""

import logging
from dataclasses import dataclass

from flask import Flask

from fhir_server.auth import heart
from fhir_server.auth.identity import get_identity
from fhir_server.auth.oauth import OAuthClient, OAuthEndpoints
from fhir_server.auth.oidc import set_up_session_auth
from fhir_server.auth.scopes import identity_permits, scope_check
from fhir_server.config import AuthMethod, Settings
from fhir_server.middleware import Middleware

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthStrategy:
    method: AuthMethod
    client: OAuthClient | None = None

    def resource_middleware(self, resource_name: str) -> list[Middleware]:
        """Middleware the strategy layers onto one resource's route group."""
        if self.method is AuthMethod.NONE:
            return []
        return [scope_check(resource_name)]

    def permits(self, resource_name: str, method: str) -> bool:
        """Whether the current request may run ``method`` against a resource."""
        if self.method is AuthMethod.NONE:
            return True
        return identity_permits(get_identity(), resource_name, method)


def install_auth(app: Flask, settings: Settings) -> AuthStrategy:
    """
    Install the configured authentication strategy on ``app``.

    :param app: The application being built.
    :param settings: Server settings; ``settings.auth.method`` picks the strategy.
    :returns: The installed strategy.
    """
    auth = settings.auth
    match auth.method:
        case AuthMethod.NONE:
            logger.info("Authentication disabled")
            return AuthStrategy(method=AuthMethod.NONE)
        case AuthMethod.OIDC:
            client = OAuthClient(
                client_id=auth.client_id,
                client_secret=auth.client_secret,
                endpoints=OAuthEndpoints(
                    authorization_url=auth.authorization_url,
                    token_url=auth.token_url,
                    introspection_url=auth.introspection_url,
                    userinfo_url=auth.userinfo_url,
                ),
                scopes=auth.scopes,
            )
            set_up_session_auth(app, client, settings.server_url, auth.session_secret)
            logger.info("OIDC authentication enabled")
            return AuthStrategy(method=AuthMethod.OIDC, client=client)
        case AuthMethod.HEART:
            client = heart.set_up_routes(
                auth.jwk_path,
                auth.client_id,
                auth.op_url,
                settings.server_url,
                auth.session_secret,
                app,
                scopes=auth.scopes,
            )
            return AuthStrategy(method=AuthMethod.HEART, client=client)
