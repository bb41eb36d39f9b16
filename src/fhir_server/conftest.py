"""Pytest configuration and shared fixtures for record server unit tests."""

from collections.abc import Generator
from typing import Any

import pytest
from fhir.reference import Reference
from fhir.resource import Resource
from flask import Flask
from flask.testing import FlaskClient
from stubs.stub_oauth import OAuthProviderStub
from stubs.stub_store import InMemoryCollection, InMemoryDocumentStore

from fhir_server.app import create_app
from fhir_server.auth import oauth
from fhir_server.config import Settings
from fhir_server.context import RequestContext
from fhir_server.controller import ResourceController
from fhir_server.identity import new_id
from fhir_server.resources import resource_config

TEST_RESOURCES = ("Goal", "Encounter", "ProcessRequest", "Observation")


def make_goal(patient_id: str = "123", **fields: Any) -> Resource:
    """Build a stored Goal referencing ``Patient/<patient_id>``."""
    patient: Reference = {
        "reference": f"Patient/{patient_id}",
        "referenceid": patient_id,
        "type": "Patient",
    }
    return {"id": new_id(), "resourceType": "Goal", "patient": patient, **fields}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        server_url="http://fhir.example.test:3001",
        location_host="fhir.example.test",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def goals(store: InMemoryDocumentStore) -> InMemoryCollection:
    return store.collection("Goal")


@pytest.fixture
def goal_controller(
    goals: InMemoryCollection, settings: Settings
) -> ResourceController:
    return ResourceController(resource_config("Goal"), goals, settings.location_base)


@pytest.fixture
def context() -> RequestContext:
    return RequestContext()


@pytest.fixture
def app(settings: Settings, store: InMemoryDocumentStore) -> Flask:
    app = create_app(settings, store, resource_names=TEST_RESOURCES)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app: Flask) -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client


@pytest.fixture
def oauth_provider(monkeypatch: pytest.MonkeyPatch) -> OAuthProviderStub:
    """
    Route the OAuth client's HTTP calls to an in-memory provider.

    The provider knows one active token, ``good-token``, granting read access to
    every resource, and one authorization code, ``good-code``, that yields it.
    """
    provider = OAuthProviderStub(
        tokens={"good-token": {"sub": "alice", "scope": "openid user/*.read"}},
        codes={"good-code": "good-token"},
        userinfo={"good-token": {"sub": "alice", "name": "Alice"}},
    )
    monkeypatch.setattr(oauth, "post", provider.post)
    monkeypatch.setattr(oauth, "get", provider.get)
    return provider
