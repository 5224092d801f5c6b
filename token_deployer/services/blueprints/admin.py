from flask import Blueprint, Response

admin_blueprint = Blueprint("admin_view", __name__)


@admin_blueprint.route("/status")
def status_view() -> Response:
    return Response(status=200)
