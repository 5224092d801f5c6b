from token_deployer.services.blueprints.admin import admin_blueprint
from token_deployer.services.blueprints.metrics import metrics_blueprint
from token_deployer.services.blueprints.session import session_blueprint

__all__ = ["admin_blueprint", "metrics_blueprint", "session_blueprint"]
