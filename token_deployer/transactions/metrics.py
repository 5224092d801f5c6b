from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from web3 import Web3

from token_deployer.types import OperationResult, TransactionReceipt

TWO_PLACES = Decimal("0.01")


def derive_metrics(receipt: TransactionReceipt, started_at: int, ended_at: int) -> OperationResult:
    """Compute the duration and total fee of a confirmed action.

    `started_at` and `ended_at` are millisecond timestamps. All arithmetic is
    exact; the fee stays in integer wei.

    :raises ValueError: if `ended_at` lies before `started_at`.
    """
    if ended_at < started_at:
        raise ValueError(f"ended_at ({ended_at}) lies before started_at ({started_at})")

    return OperationResult(
        receipt=receipt,
        duration_seconds=Decimal(ended_at - started_at) / 1000,
        total_fee=receipt.gas_used * receipt.gas_price,
    )


def format_operation_result(result: OperationResult) -> Dict[str, str]:
    """Render `result` in display units: gas price in gwei, fee in ether, seconds."""
    receipt = result.receipt
    return {
        "contract_address": receipt.contract_address or "",
        "transaction_hash": receipt.transaction_hash,
        "gas_used": str(receipt.gas_used),
        "gas_price": f"{Web3.from_wei(receipt.gas_price, 'gwei')} Gwei",
        "total_fee": f"{Web3.from_wei(result.total_fee, 'ether')} POL",
        "duration": f"{result.duration_seconds.quantize(TWO_PLACES, ROUND_HALF_UP)} sec",
    }
