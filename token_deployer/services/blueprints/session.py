"""Read the session state and trigger the operator's intents.

The following endpoints are supplied by this blueprint:

    * [GET] /session
        Return the current session state.

    * [POST] /session/tier
        Change the fee tier used for the next action.

    * [POST] /session/deploy
        Start deploying the token contract.

    * [POST] /session/mint
        Start minting tokens on the deployed contract.

"""
import structlog
from flask import Blueprint, abort, current_app, jsonify, request

from token_deployer.exceptions import ActionInProgress
from token_deployer.services.schemas import (
    ChangeTierRequest,
    DeployRequest,
    MintRequest,
    SessionStateSchema,
)
from token_deployer.session import OrchestrationSession
from token_deployer.utils.metrics import track_request

log = structlog.get_logger(__name__)

session_blueprint = Blueprint("session_view", __name__)

change_tier_schema = ChangeTierRequest()
deploy_schema = DeployRequest()
mint_schema = MintRequest()
session_state_schema = SessionStateSchema()


def current_session() -> OrchestrationSession:
    return current_app.config["session"]


def state_response(status=200):
    return jsonify(session_state_schema.dump(current_session().state)), status


def request_data() -> dict:
    return request.get_json(silent=True) or {}


@session_blueprint.route("/session", methods=["GET"])
@track_request("GET", "/session")
def session_view():
    return state_response()


@session_blueprint.route("/session/tier", methods=["POST"])
@track_request("POST", "/session/tier")
def change_tier_view():
    data = change_tier_schema.validate_and_deserialize(request_data())
    current_session().change_tier(data["tier"])
    return state_response()


@session_blueprint.route("/session/deploy", methods=["POST"])
@track_request("POST", "/session/deploy")
def deploy_view():
    data = deploy_schema.validate_and_deserialize(request_data())
    log.info("Processing deployment request", owner_address=data["owner_address"])
    try:
        current_session().start_deploy(owner_address=data["owner_address"])
    except ActionInProgress as e:
        abort(409, str(e))
    return state_response(202)


@session_blueprint.route("/session/mint", methods=["POST"])
@track_request("POST", "/session/mint")
def mint_view():
    data = mint_schema.validate_and_deserialize(request_data())
    log.info("Processing mint request", amount=data["amount"], recipient=data["recipient"])
    try:
        current_session().start_mint(data["amount"], recipient=data["recipient"])
    except ActionInProgress as e:
        abort(409, str(e))
    return state_response(202)
