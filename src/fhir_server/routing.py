"""
Route registration for the resource catalog.
"""

import logging
from collections.abc import Mapping, Sequence

from flask import Blueprint, Flask, request

from fhir_server.auth import AuthStrategy, install_auth
from fhir_server.batch import BatchController
from fhir_server.common.common import FlaskResponse, json_response
from fhir_server.config import Settings
from fhir_server.context import get_request_context
from fhir_server.controller import ResourceController
from fhir_server.handler import ResourceHandler, handles_request_errors
from fhir_server.middleware import Middleware
from fhir_server.resources import RESOURCE_NAMES, ResourceConfig, resource_config
from fhir_server.store.base import DocumentStore

logger = logging.getLogger(__name__)

type MiddlewareConfig = Mapping[str, Sequence[Middleware]]


def register_controller(
    app: Flask,
    config: ResourceConfig,
    middleware: Sequence[Middleware],
    store: DocumentStore,
    settings: Settings,
    auth: AuthStrategy,
) -> ResourceController:
    """
    Register the CRUD routes (and middleware) for one resource type.

    :returns: The controller serving the routes.
    """
    controller = ResourceController(
        config, store.collection(config.name), settings.location_base
    )
    handler = ResourceHandler(controller)

    group = Blueprint(config.name, __name__, url_prefix=f"/{config.name}")
    for link in [*middleware, *auth.resource_middleware(config.name)]:
        link.install(group)

    group.add_url_rule("", "index", handler.index_handler, methods=["GET"])
    group.add_url_rule("", "create", handler.create_handler, methods=["POST"])
    group.add_url_rule(
        "", "conditional_update", handler.conditional_update_handler, methods=["PUT"]
    )
    group.add_url_rule(
        "", "conditional_delete", handler.conditional_delete_handler, methods=["DELETE"]
    )

    group.add_url_rule("/<resource_id>", "show", handler.show_handler, methods=["GET"])
    group.add_url_rule(
        "/<resource_id>", "update", handler.update_handler, methods=["PUT"]
    )
    group.add_url_rule(
        "/<resource_id>", "delete", handler.delete_handler, methods=["DELETE"]
    )

    app.register_blueprint(group)
    return controller


def register_batch(
    app: Flask,
    controllers: Mapping[str, ResourceController],
    middleware: Sequence[Middleware],
    auth: AuthStrategy,
) -> BatchController:
    """
    Register the batch route at ``POST /``.

    Each entry is checked against the auth strategy for its own resource.
    """
    batch = BatchController(controllers, authorize=auth.permits)

    @handles_request_errors
    def post() -> FlaskResponse:
        return json_response(200, batch.post(request.get_data(), get_request_context()))

    group = Blueprint("Batch", __name__)
    for link in middleware:
        link.install(group)
    group.add_url_rule("/", "post", post, methods=["POST"])
    app.register_blueprint(group)
    return batch


def register_routes(
    app: Flask,
    middleware_config: MiddlewareConfig,
    store: DocumentStore,
    settings: Settings,
    resource_names: Sequence[str] = RESOURCE_NAMES,
) -> dict[str, ResourceController]:
    """
    Install the auth strategy, the batch route and every resource's routes.

    :param app: The application being built.
    :param middleware_config: Extra middleware per resource name; the batch route
        uses the ``"Batch"`` key.
    :param store: Store holding the resource collections.
    :param settings: Server settings.
    :param resource_names: Resource types to serve.
    :returns: The controllers, keyed by resource name.
    """
    auth = install_auth(app, settings)

    controllers: dict[str, ResourceController] = {}
    for name in resource_names:
        controllers[name] = register_controller(
            app,
            resource_config(name),
            middleware_config.get(name, ()),
            store,
            settings,
            auth,
        )

    # Batch entries are dispatched to the controllers registered above.
    register_batch(app, controllers, middleware_config.get("Batch", ()), auth)

    logger.info("Registered %d resource types", len(controllers))
    return controllers
