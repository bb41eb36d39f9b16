"""
Runtime configuration, read from environment variables.
"""

import os
import socket
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

DEFAULT_LOCATION_PORT = 3001


class ConfigurationError(Exception):
    """Raised at startup when the environment describes an unusable setup."""


class AuthMethod(StrEnum):
    NONE = "none"
    OIDC = "oidc"
    HEART = "heart"


# Settings each method cannot start without.
_REQUIRED_AUTH_SETTINGS: dict[AuthMethod, tuple[str, ...]] = {
    AuthMethod.NONE: (),
    AuthMethod.OIDC: (
        "client_id",
        "client_secret",
        "session_secret",
        "authorization_url",
        "token_url",
        "introspection_url",
        "userinfo_url",
    ),
    AuthMethod.HEART: ("client_id", "session_secret", "jwk_path", "op_url"),
}


@dataclass(frozen=True)
class AuthConfig:
    method: AuthMethod = AuthMethod.NONE
    client_id: str = ""
    client_secret: str = ""
    session_secret: str = ""
    authorization_url: str = ""
    token_url: str = ""
    introspection_url: str = ""
    userinfo_url: str = ""
    jwk_path: str = ""
    op_url: str = ""
    scopes: str = "openid profile email user/*.*"

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "AuthConfig":
        """
        Read the ``FHIR_AUTH_*`` variables.

        :param environ: Environment to read from.
        :returns: The validated auth configuration.
        :raises ConfigurationError: If the method is unknown or a setting it needs
            is missing.
        """
        raw_method = environ.get("FHIR_AUTH_METHOD", AuthMethod.NONE).strip().lower()
        try:
            method = AuthMethod(raw_method)
        except ValueError as err:
            raise ConfigurationError(
                f"Unknown FHIR_AUTH_METHOD {raw_method!r}, expected one of "
                f"{', '.join(AuthMethod)}"
            ) from err

        config = cls(
            method=method,
            client_id=environ.get("FHIR_AUTH_CLIENT_ID", ""),
            client_secret=environ.get("FHIR_AUTH_CLIENT_SECRET", ""),
            session_secret=environ.get("FHIR_AUTH_SESSION_SECRET", ""),
            authorization_url=environ.get("FHIR_AUTH_AUTHORIZATION_URL", ""),
            token_url=environ.get("FHIR_AUTH_TOKEN_URL", ""),
            introspection_url=environ.get("FHIR_AUTH_INTROSPECTION_URL", ""),
            userinfo_url=environ.get("FHIR_AUTH_USERINFO_URL", ""),
            jwk_path=environ.get("FHIR_AUTH_JWK_PATH", ""),
            op_url=environ.get("FHIR_AUTH_OP_URL", ""),
            scopes=environ.get("FHIR_AUTH_SCOPES", cls.scopes),
        )
        config.validate()
        return config

    def validate(self) -> None:
        missing = [
            name
            for name in _REQUIRED_AUTH_SETTINGS[self.method]
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Auth method {self.method} requires "
                + ", ".join(f"FHIR_AUTH_{name.upper()}" for name in missing)
            )


@dataclass(frozen=True)
class Settings:
    """
    Server settings.

    :param server_url: Public root URL of the server, used for OAuth redirects.
    :param location_host: Host used in ``Location`` headers; the machine's
        hostname when unset.
    :param location_port: Port used in ``Location`` headers.
    """

    server_url: str = "http://localhost:3001"
    location_host: str | None = None
    location_port: int = DEFAULT_LOCATION_PORT
    mongo_uri: str = "mongodb://localhost:27017"
    database: str = "fhir"
    log_level: str = "INFO"
    log_json: bool = False
    auth: AuthConfig = field(default_factory=AuthConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        try:
            location_port = int(
                env.get("FHIR_LOCATION_PORT", str(DEFAULT_LOCATION_PORT))
            )
        except ValueError as err:
            raise ConfigurationError("FHIR_LOCATION_PORT must be an integer") from err

        return cls(
            server_url=env.get("FHIR_SERVER_URL", cls.server_url),
            location_host=env.get("FHIR_LOCATION_HOST") or None,
            location_port=location_port,
            mongo_uri=env.get("FHIR_MONGO_URI", cls.mongo_uri),
            database=env.get("FHIR_DATABASE", cls.database),
            log_level=env.get("FHIR_LOG_LEVEL", cls.log_level),
            log_json=env.get("FHIR_LOG_JSON", "false").lower() == "true",
            auth=AuthConfig.from_env(env),
        )

    @property
    def location_base(self) -> str:
        host = self.location_host or socket.gethostname()
        return f"http://{host}:{self.location_port}"


def get_app_host() -> str:
    host = os.getenv("FLASK_HOST")
    if host is None:
        raise RuntimeError("FLASK_HOST environment variable is not set.")
    return host


def get_app_port() -> int:
    port = os.getenv("FLASK_PORT")
    if port is None:
        raise RuntimeError("FLASK_PORT environment variable is not set.")
    return int(port)
