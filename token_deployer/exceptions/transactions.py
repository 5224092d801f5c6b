from typing import Optional

from token_deployer.exceptions.base import TokenDeployerError


class TransactionError(TokenDeployerError):
    exit_code = 21


class SubmissionError(TransactionError):
    """The transaction could not be built, signed or broadcast.

    Typically the node rejected it: insufficient funds, a nonce conflict or
    a fee below the network minimum.
    """

    exit_code = 22


class PreconditionError(SubmissionError):
    """A submission was requested before its inputs were available."""

    exit_code = 23


class ConfirmationError(TransactionError):
    """The network resolved the transaction without including it successfully.

    `reverted` is set if the transaction was mined but failed, `dropped` if
    the node stopped knowing about it before it was mined.
    """

    exit_code = 24

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        reverted: bool = False,
        dropped: bool = False,
    ):
        super(ConfirmationError, self).__init__(message)
        self.tx_hash = tx_hash
        self.reverted = reverted
        self.dropped = dropped
