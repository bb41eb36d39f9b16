"""Unit tests for environment-driven configuration."""

import pytest

from fhir_server.config import (
    AuthConfig,
    AuthMethod,
    ConfigurationError,
    Settings,
)

OIDC_ENV = {
    "FHIR_AUTH_METHOD": "oidc",
    "FHIR_AUTH_CLIENT_ID": "fhir-server",
    "FHIR_AUTH_CLIENT_SECRET": "secret",
    "FHIR_AUTH_SESSION_SECRET": "session",
    "FHIR_AUTH_AUTHORIZATION_URL": "https://op.example.test/authorize",
    "FHIR_AUTH_TOKEN_URL": "https://op.example.test/token",
    "FHIR_AUTH_INTROSPECTION_URL": "https://op.example.test/introspect",
    "FHIR_AUTH_USERINFO_URL": "https://op.example.test/userinfo",
}


class TestSettings:
    def test_defaults_when_environment_is_empty(self) -> None:
        settings = Settings.from_env({})

        assert settings == Settings()
        assert settings.auth.method is AuthMethod.NONE
        assert settings.location_port == 3001

    def test_reads_every_variable(self) -> None:
        settings = Settings.from_env(
            {
                "FHIR_SERVER_URL": "https://fhir.example.test",
                "FHIR_LOCATION_HOST": "fhir.internal",
                "FHIR_LOCATION_PORT": "8080",
                "FHIR_MONGO_URI": "mongodb://mongo:27017",
                "FHIR_DATABASE": "records",
                "FHIR_LOG_LEVEL": "DEBUG",
                "FHIR_LOG_JSON": "TRUE",
            }
        )

        assert settings.server_url == "https://fhir.example.test"
        assert settings.location_base == "http://fhir.internal:8080"
        assert settings.mongo_uri == "mongodb://mongo:27017"
        assert settings.database == "records"
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True

    def test_non_numeric_location_port_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings.from_env({"FHIR_LOCATION_PORT": "http"})

    def test_location_base_falls_back_to_hostname(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("fhir_server.config.socket.gethostname", lambda: "box")

        assert Settings().location_base == "http://box:3001"


class TestAuthConfig:
    def test_oidc_with_every_setting_is_accepted(self) -> None:
        config = AuthConfig.from_env(OIDC_ENV)

        assert config.method is AuthMethod.OIDC
        assert config.introspection_url == "https://op.example.test/introspect"

    def test_method_is_case_insensitive(self) -> None:
        config = AuthConfig.from_env({**OIDC_ENV, "FHIR_AUTH_METHOD": " OIDC "})

        assert config.method is AuthMethod.OIDC

    def test_unknown_method_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="saml"):
            AuthConfig.from_env({"FHIR_AUTH_METHOD": "saml"})

    def test_oidc_missing_settings_are_named(self) -> None:
        env = {
            key: value
            for key, value in OIDC_ENV.items()
            if key not in ("FHIR_AUTH_TOKEN_URL", "FHIR_AUTH_CLIENT_SECRET")
        }

        with pytest.raises(ConfigurationError) as excinfo:
            AuthConfig.from_env(env)

        assert "FHIR_AUTH_TOKEN_URL" in str(excinfo.value)
        assert "FHIR_AUTH_CLIENT_SECRET" in str(excinfo.value)

    def test_heart_requires_jwk_path(self) -> None:
        with pytest.raises(ConfigurationError, match="FHIR_AUTH_JWK_PATH"):
            AuthConfig.from_env(
                {
                    "FHIR_AUTH_METHOD": "heart",
                    "FHIR_AUTH_CLIENT_ID": "fhir-server",
                    "FHIR_AUTH_SESSION_SECRET": "session",
                    "FHIR_AUTH_OP_URL": "https://op.example.test",
                }
            )

    def test_none_needs_nothing(self) -> None:
        AuthConfig().validate()
