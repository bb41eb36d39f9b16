"""Unit tests for resource-scoped authorization."""

import pytest
from flask import Flask, request

from fhir_server.auth.identity import AuthIdentity, parse_scopes, set_identity
from fhir_server.auth.scopes import (
    identity_permits,
    required_access,
    scope_check,
    scope_grants,
)


@pytest.mark.parametrize(
    ("method", "access"),
    [
        ("GET", "read"),
        ("head", "read"),
        ("OPTIONS", "read"),
        ("POST", "write"),
        ("PUT", "write"),
        ("DELETE", "write"),
    ],
)
def test_required_access(method: str, access: str) -> None:
    assert required_access(method) == access


@pytest.mark.parametrize(
    ("scope", "resource", "access", "granted"),
    [
        ("patient/Goal.read", "Goal", "read", True),
        ("user/Goal.write", "Goal", "write", True),
        ("user/Goal.*", "Goal", "write", True),
        ("user/*.read", "Encounter", "read", True),
        ("*/*.*", "Encounter", "write", True),
        ("patient/Goal.read", "Goal", "write", False),
        ("patient/Goal.read", "Encounter", "read", False),
        ("system/Goal.read", "Goal", "read", False),
        ("openid", "Goal", "read", False),
        ("user/Goal.read.extra", "Goal", "read", False),
    ],
)
def test_scope_grants(scope: str, resource: str, access: str, granted: bool) -> None:
    assert scope_grants(scope, resource, access) is granted


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("openid user/*.read", {"openid", "user/*.read"}),
        (["a", "b"], {"a", "b"}),
        (None, set()),
        (42, set()),
    ],
)
def test_parse_scopes(raw: object, expected: set[str]) -> None:
    assert parse_scopes(raw) == expected


def test_identity_from_claims() -> None:
    identity = AuthIdentity.from_claims(
        {"sub": "alice", "scope": "openid patient/Goal.read"}, auth_type="session"
    )

    assert identity.subject == "alice"
    assert identity.scopes == {"openid", "patient/Goal.read"}
    assert identity.auth_type == "session"


GOAL_READER = AuthIdentity(subject="alice", scopes=frozenset({"user/Goal.read"}))


@pytest.mark.parametrize(
    ("identity", "method", "allowed"),
    [
        (None, "GET", False),
        (AuthIdentity(subject="alice"), "GET", False),
        (GOAL_READER, "GET", True),
        (GOAL_READER, "PUT", False),
        (AuthIdentity(subject="bob", scopes=frozenset({"patient/*.*"})), "PUT", True),
    ],
)
def test_identity_permits(
    identity: AuthIdentity | None, method: str, allowed: bool
) -> None:
    assert identity_permits(identity, "Goal", method) is allowed


class TestScopeCheck:
    @pytest.fixture
    def app(self) -> Flask:
        app = Flask(__name__)
        check = scope_check("Goal").before
        assert check is not None

        def view() -> str:
            return "ok"

        app.add_url_rule("/", "view", view, methods=["GET", "POST"])

        @app.before_request
        def authenticate() -> None:
            scopes = request.headers.get("X-Test-Scopes")
            if scopes is not None:
                set_identity(AuthIdentity(subject="alice", scopes=parse_scopes(scopes)))

        app.before_request(check)
        return app

    def test_missing_identity_is_unauthorized(self, app: Flask) -> None:
        assert app.test_client().get("/").status_code == 401

    def test_matching_scope_passes(self, app: Flask) -> None:
        response = app.test_client().get(
            "/", headers={"X-Test-Scopes": "user/Goal.read"}
        )

        assert response.status_code == 200

    def test_insufficient_scope_is_forbidden(self, app: Flask) -> None:
        response = app.test_client().post(
            "/", headers={"X-Test-Scopes": "user/Goal.read"}
        )

        assert response.status_code == 403

    def test_scope_for_other_resource_is_forbidden(self, app: Flask) -> None:
        response = app.test_client().get(
            "/", headers={"X-Test-Scopes": "user/Encounter.*"}
        )

        assert response.status_code == 403
