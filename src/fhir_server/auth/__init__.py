"""Authentication strategies and resource-scoped authorization."""

from fhir_server.auth.dispatcher import AuthStrategy, install_auth
from fhir_server.auth.identity import AuthIdentity, get_identity
from fhir_server.auth.oauth import AuthenticationError, OAuthClient, OAuthEndpoints
from fhir_server.auth.scopes import scope_check

__all__ = [
    "AuthIdentity",
    "AuthStrategy",
    "AuthenticationError",
    "OAuthClient",
    "OAuthEndpoints",
    "get_identity",
    "install_auth",
    "scope_check",
]
