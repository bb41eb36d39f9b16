"""Pytest configuration and shared fixtures for record server tests."""

import socket
import threading
import time
from collections.abc import Iterator
from datetime import timedelta
from typing import Any

import pytest
import requests
from flask import Flask
from stubs.stub_store import InMemoryDocumentStore

from fhir_server.app import audited, create_app
from fhir_server.config import Settings
from fhir_server.resources import RESOURCE_NAMES

TIMEOUT = timedelta(seconds=5).total_seconds()


class Client:
    """Thin HTTP client for a running record server."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def send_health_check(self) -> requests.Response:
        return requests.get(f"{self.base_url}/health", timeout=TIMEOUT)

    def search(self, resource: str, **params: str) -> requests.Response:
        return requests.get(
            f"{self.base_url}/{resource}", params=params, timeout=TIMEOUT
        )

    def read(self, resource: str, resource_id: str) -> requests.Response:
        return requests.get(
            f"{self.base_url}/{resource}/{resource_id}", timeout=TIMEOUT
        )

    def create(self, resource: str, body: str) -> requests.Response:
        return requests.post(f"{self.base_url}/{resource}", data=body, timeout=TIMEOUT)

    def update(self, resource: str, resource_id: str, body: str) -> requests.Response:
        return requests.put(
            f"{self.base_url}/{resource}/{resource_id}", data=body, timeout=TIMEOUT
        )

    def delete(self, resource: str, resource_id: str) -> requests.Response:
        return requests.delete(
            f"{self.base_url}/{resource}/{resource_id}", timeout=TIMEOUT
        )

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        return requests.request(
            method, f"{self.base_url}{path}", timeout=TIMEOUT, **kwargs
        )


def _free_port() -> int:
    # Use port 0 to let the OS assign a free port
    sock = socket.socket()
    sock.bind(("", 0))
    port: int = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture(scope="session")
def server_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture(scope="session")
def server_port() -> int:
    return _free_port()


@pytest.fixture(scope="session")
def server_app(server_store: InMemoryDocumentStore, server_port: int) -> Flask:
    """The full record server, every catalog resource, over the stub store."""
    settings = Settings(
        server_url=f"http://localhost:{server_port}",
        location_host="localhost",
        location_port=server_port,
    )
    app = create_app(
        settings, server_store, middleware=audited([*RESOURCE_NAMES, "Batch"])
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def base_url(server_app: Flask, server_port: int) -> str:
    """Start the Flask app in a separate thread and return its URL.

    This fixture is used by tests that make real HTTP requests to the server.
    """

    def run_app() -> None:
        server_app.run(port=server_port, debug=False, use_reloader=False)

    # Daemon threads automatically terminate when the test process exits,
    # so no explicit cleanup is needed
    thread = threading.Thread(target=run_app, daemon=True)
    thread.start()

    url = f"http://localhost:{server_port}"
    max_retries = 20
    retry_delay = 0.1

    for _ in range(max_retries):
        try:
            response = requests.get(f"{url}/health", timeout=1)
            if response.status_code == 200:
                break
        except requests.exceptions.RequestException:
            # Server not ready yet, wait and retry
            time.sleep(retry_delay)
    else:
        raise RuntimeError(f"Flask server failed to start on {url}")

    return url


@pytest.fixture
def client(base_url: str, server_store: InMemoryDocumentStore) -> Iterator[Client]:
    yield Client(base_url)
    server_store.reset()
