from token_deployer.transactions.metrics import derive_metrics, format_operation_result
from token_deployer.transactions.submitter import TransactionSubmitter
from token_deployer.transactions.tracker import ConfirmationTracker

__all__ = [
    "ConfirmationTracker",
    "TransactionSubmitter",
    "derive_metrics",
    "format_operation_result",
]
