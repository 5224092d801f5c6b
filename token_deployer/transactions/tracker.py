from typing import Any, Mapping, Optional

import gevent
import requests
import structlog
from eth_utils import encode_hex, to_checksum_address
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from token_deployer.constants import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_DROP_AFTER,
    DEFAULT_RECEIPT_POLL_INTERVAL,
)
from token_deployer.exceptions import ConfirmationError
from token_deployer.types import PendingTransaction, TransactionReceipt

log = structlog.get_logger(__name__)


def _to_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    return str(value)


class ConfirmationTracker:
    """Wait for pending transactions to be included in a block.

    There is no timeout: :meth:`.wait` returns once the network resolved the
    transaction, one way or the other. Transport errors while polling are
    logged and polling goes on.
    """

    def __init__(
        self,
        web3: Web3,
        confirmations: int = DEFAULT_CONFIRMATIONS,
        poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
        drop_after: Optional[int] = DEFAULT_DROP_AFTER,
    ):
        if confirmations < 1:
            raise ValueError("confirmations must be at least 1")
        self.web3 = web3
        self.confirmations = confirmations
        self.poll_interval = poll_interval
        self.drop_after = drop_after

    def wait(self, pending: PendingTransaction) -> TransactionReceipt:
        """Block the current greenlet until `pending` is confirmed.

        :raises ConfirmationError:
            if the transaction was reverted, or dropped by the node before being mined.
        """
        unknown_polls = 0
        log.debug("Waiting for transaction confirmation", tx_hash=pending.hash)

        while True:
            try:
                raw = self._get_receipt(pending.hash)
                if raw is None:
                    if self._is_known(pending.hash):
                        unknown_polls = 0
                    else:
                        unknown_polls += 1
                        if self.drop_after and unknown_polls >= self.drop_after:
                            log.error("Transaction dropped", tx_hash=pending.hash)
                            raise ConfirmationError(
                                f"Transaction {pending.hash} was dropped by the network.",
                                tx_hash=pending.hash,
                                dropped=True,
                            )
                else:
                    if raw.get("status") == 0:
                        log.error(
                            "Transaction reverted",
                            tx_hash=pending.hash,
                            block=raw["blockNumber"],
                        )
                        raise ConfirmationError(
                            f"Transaction {pending.hash} was reverted.",
                            tx_hash=pending.hash,
                            reverted=True,
                        )
                    confirmations = self.web3.eth.block_number - raw["blockNumber"] + 1
                    if confirmations >= self.confirmations:
                        return self._to_receipt(raw)
                    log.debug(
                        "Waiting for more confirmations",
                        tx_hash=pending.hash,
                        confirmations=confirmations,
                        required=self.confirmations,
                    )
            except (requests.RequestException, Web3Exception) as e:
                log.warning("Error while polling for receipt", tx_hash=pending.hash, error=str(e))

            gevent.sleep(self.poll_interval)

    def _get_receipt(self, tx_hash: str) -> Optional[Mapping]:
        try:
            receipt = self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        if receipt is None or receipt.get("blockNumber") is None:
            return None
        return receipt

    def _is_known(self, tx_hash: str) -> bool:
        try:
            self.web3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return False
        return True

    def _to_receipt(self, raw: Mapping) -> TransactionReceipt:
        tx_hash = _to_hex(raw["transactionHash"])
        gas_price = raw.get("effectiveGasPrice")
        if gas_price is None:
            gas_price = self.web3.eth.get_transaction(tx_hash)["gasPrice"]

        contract_address = raw.get("contractAddress")
        return TransactionReceipt(
            transaction_hash=tx_hash,
            block_number=int(raw["blockNumber"]),
            gas_used=int(raw["gasUsed"]),
            gas_price=int(gas_price),
            contract_address=to_checksum_address(contract_address) if contract_address else None,
        )
