import logging
from collections.abc import Sequence
from typing import Any, TypedDict

from flask import Flask
from werkzeug.exceptions import HTTPException

from fhir_server.common.common import json_response, text_response
from fhir_server.config import Settings, get_app_host, get_app_port
from fhir_server.logging_config import setup_logging
from fhir_server.middleware import Middleware, audit_middleware
from fhir_server.resources import RESOURCE_NAMES
from fhir_server.routing import MiddlewareConfig, register_routes
from fhir_server.store.base import DocumentStore
from fhir_server.store.mongo import MongoDocumentStore

logger = logging.getLogger(__name__)


class HealthStatus(TypedDict):
    status: str


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    middleware: MiddlewareConfig | None = None,
    resource_names: Sequence[str] = RESOURCE_NAMES,
) -> Flask:
    """
    Build the record server.

    :param settings: Server settings; read from the environment when omitted.
    :param store: Document store; a Mongo store built from the settings when
        omitted.
    :param middleware: Extra middleware per resource name (``"Batch"`` for the
        batch route).
    :param resource_names: Resource types to serve.
    :returns: The configured Flask application.
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = MongoDocumentStore(settings.mongo_uri, settings.database)

    app = Flask(__name__)
    app.config["FHIR_SETTINGS"] = settings

    app.add_url_rule("/health", "health_check", health_check, methods=["GET"])
    app.register_error_handler(Exception, handle_unexpected_error)

    register_routes(app, middleware or {}, store, settings, resource_names)
    return app


def health_check() -> Any:
    """Health check endpoint."""
    return json_response(200, HealthStatus(status="healthy")).to_response()


def handle_unexpected_error(err: Exception) -> Any:
    if isinstance(err, HTTPException):
        return err
    logger.exception("Unhandled error serving request")
    return text_response(500, f"Internal Server Error: {err}").to_response()


def audited(names: Sequence[str]) -> dict[str, list[Middleware]]:
    """Middleware configuration putting the audit log on every named route group."""
    audit = audit_middleware()
    return {name: [audit] for name in names}


def main() -> None:
    settings = Settings.from_env()
    setup_logging(use_json=settings.log_json, log_level=settings.log_level)
    app = create_app(settings, middleware=audited([*RESOURCE_NAMES, "Batch"]))
    app.run(host=get_app_host(), port=get_app_port())


if __name__ == "__main__":
    main()
