from typing import Mapping, Optional

import flask
import structlog
import waitress

from token_deployer.services.blueprints import (
    admin_blueprint,
    metrics_blueprint,
    session_blueprint,
)
from token_deployer.session import OrchestrationSession

log = structlog.get_logger(__name__)


def attach_blueprints(app: flask.Flask, *blueprints: flask.Blueprint) -> flask.Flask:
    """Attach the given `blueprints` to the given `app` and return it."""
    for blueprint in blueprints:
        log.debug("Registering blueprint", blueprint=blueprint.name)
        app.register_blueprint(blueprint)
    return app


def construct_flask_app(
    session: OrchestrationSession, test_config: Optional[Mapping] = None
) -> flask.Flask:
    """Construct a flask app serving the given `session`.

    Besides the session endpoints, all constructed apps have the following endpoints:

        `/metrics`
        Exposes prometheus compatible metrics.

        `/status`
        Returns 200 OK as long as the underlying flask app is responsive and running.
    """
    app = flask.Flask(__name__)
    app.config["session"] = session
    if test_config is not None:
        app.config.from_mapping(test_config)

    return attach_blueprints(app, admin_blueprint, metrics_blueprint, session_blueprint)


def serve(session: OrchestrationSession, host: str, port: int) -> None:
    """Start fee polling and serve the session until interrupted."""
    app = construct_flask_app(session)
    session.start()
    log.info("Starting token deployer service", host=host, port=port, session=session)
    try:
        waitress.serve(app, host=host, port=port)
    finally:
        session.stop()
