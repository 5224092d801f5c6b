import functools
import os
import sys
from typing import Optional

import click
import structlog
from web3 import HTTPProvider, Web3

from token_deployer import __version__
from token_deployer.constants import DEFAULT_FEE_TIER, FEE_TIERS
from token_deployer.exceptions import ConfigurationError, TokenDeployerError
from token_deployer.fees.oracle import FeeOracleClient
from token_deployer.session import OrchestrationSession, SlotStatus
from token_deployer.transactions.metrics import format_operation_result
from token_deployer.transactions.submitter import TransactionSubmitter
from token_deployer.transactions.tracker import ConfirmationTracker
from token_deployer.types import ACTION_DEPLOY, ACTION_MINT, FeeSnapshot
from token_deployer.utils.configuration import EngineConfig
from token_deployer.utils.contracts import load_contract_artifact
from token_deployer.utils.logs import configure_logging

log = structlog.get_logger(__name__)

CONFIGURATION_ERROR_EXIT_CODE = 10

TIER_LABELS = {"fast": "Fast", "standard": "Standard", "safeLow": "Safe Low"}

RESULT_LABELS = {
    "contract_address": "Contract Address",
    "transaction_hash": "Transaction Hash",
    "gas_used": "Gas Used",
    "gas_price": "Gas Price",
    "total_fee": "Total Fee",
    "duration": "Time",
}


def construct_session(config: EngineConfig) -> OrchestrationSession:
    """Wire up an :class:`OrchestrationSession` from the given `config`.

    :raises ConfigurationError: if the credential or the contract artifact cannot be loaded.
    """
    credential = config.load_credential()
    artifact = load_contract_artifact(config.artifact_path)

    web3 = Web3(HTTPProvider(config.rpc_url, request_kwargs={"timeout": config.request_timeout}))
    oracle = FeeOracleClient(config.gas_station_url, timeout=config.request_timeout)
    submitter = TransactionSubmitter(web3, chain_id=config.chain_id)
    tracker = ConfirmationTracker(
        web3,
        confirmations=config.confirmations,
        poll_interval=config.receipt_poll_interval,
        drop_after=config.drop_after,
    )
    log.info("Using account", account=credential.address)
    return OrchestrationSession(
        oracle,
        submitter,
        tracker,
        credential,
        artifact=artifact,
        poll_interval_ms=config.poll_interval_ms,
    )


def handle_errors(func):
    """Decorator turning engine errors into a message and the error's exit code."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            click.secho(f"Configuration error: {e}", fg="red", err=True)
            sys.exit(CONFIGURATION_ERROR_EXIT_CODE)
        except TokenDeployerError as e:
            click.secho(str(e), fg="red", err=True)
            sys.exit(e.exit_code)

    return wrapper


def echo_fees(snapshot: FeeSnapshot) -> None:
    click.secho("Polygon Gas Prices", bold=True)
    for tier in FEE_TIERS:
        fees = snapshot.get(tier)
        if fees is None:
            continue
        click.echo(
            f"  {TIER_LABELS[tier]:<9} Max Fee: {fees.max_fee} Gwei, "
            f"Max Priority Fee: {fees.max_priority_fee} Gwei"
        )


def echo_slot(session: OrchestrationSession, kind: str) -> bool:
    """Print the outcome of the `kind` action. Returns whether it succeeded."""
    slot = getattr(session.state, kind)
    if slot.status is not SlotStatus.SUCCEEDED:
        click.secho(f"{kind.capitalize()} failed: {slot.error}", fg="red", err=True)
        return False

    click.secho(f"{kind.capitalize()} succeeded", fg="green")
    for key, value in format_operation_result(slot.result).items():
        if value:
            click.echo(f"  {RESULT_LABELS[key]}: {value}")
    return True


@click.group(invoke_without_command=True, context_settings={"max_content_width": 120})
@click.option("--log-level", default="INFO", show_default=True)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None)
@click.option(
    "--settings-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file overriding the default engine settings.",
)
@click.version_option(__version__)
@click.pass_context
def main(ctx, log_level, log_file, settings_file):
    configure_logging(log_level, log_file)
    ctx.ensure_object(dict)
    ctx.obj["settings_file"] = settings_file


@main.command(name="fees")
@click.pass_context
@handle_errors
def fees(ctx):
    """Fetch and print the current fee tiers once."""
    config = EngineConfig.from_environ(os.environ, ctx.obj["settings_file"], require_secrets=False)
    oracle = FeeOracleClient(config.gas_station_url, timeout=config.request_timeout)
    echo_fees(oracle.refresh())


@main.command(name="run")
@click.option(
    "--tier",
    type=click.Choice(FEE_TIERS),
    default=DEFAULT_FEE_TIER,
    show_default=True,
    help="Fee tier to use for all transactions.",
)
@click.option("--owner", default=None, help="Token owner. Defaults to the signing account.")
@click.option(
    "--mint-amount",
    type=click.IntRange(min=1),
    default=None,
    help="If given, mint this many tokens (smallest unit) after deploying.",
)
@click.option("--recipient", default=None, help="Mint recipient. Defaults to the signing account.")
@click.pass_context
@handle_errors
def run(ctx, tier: str, owner: Optional[str], mint_amount: Optional[int], recipient):
    """Deploy the token contract and optionally mint tokens."""
    config = EngineConfig.from_environ(os.environ, ctx.obj["settings_file"])
    session = construct_session(config)

    snapshot = session.refresh_fees()
    if snapshot is not None:
        echo_fees(snapshot)
    session.change_tier(tier)

    actions = [(ACTION_DEPLOY, lambda: session.start_deploy(owner_address=owner))]
    if mint_amount is not None:
        actions.append(
            (ACTION_MINT, lambda: session.start_mint(mint_amount, recipient=recipient))
        )

    for kind, start in actions:
        click.echo(f"Starting {kind}...")
        start()
        session.join()
        if not echo_slot(session, kind):
            sys.exit(1)


@main.command(name="serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5100, type=int, show_default=True)
@click.pass_context
@handle_errors
def serve(ctx, host: str, port: int):
    """Poll fee data and serve the session over HTTP."""
    from token_deployer.services.app import serve as serve_session

    config = EngineConfig.from_environ(os.environ, ctx.obj["settings_file"])
    serve_session(construct_session(config), host, port)
