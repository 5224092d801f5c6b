from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
import structlog
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, is_address, to_checksum_address
from gevent.lock import Semaphore
from web3 import Web3
from web3.exceptions import Web3Exception

from token_deployer.constants import MINT_FUNCTION
from token_deployer.exceptions import PreconditionError, SubmissionError
from token_deployer.types import (
    ACTION_DEPLOY,
    ContractArtifact,
    FeeParams,
    PendingTransaction,
    SigningCredential,
)
from token_deployer.utils.clock import current_time_ms

log = structlog.get_logger(__name__)

#: One lock per sending address, shared by every submitter in the process.
#: Building, signing and broadcasting happen while holding it, so two
#: submissions from the same account never read the same nonce.
NONCE_LOCKS: Dict[ChecksumAddress, Semaphore] = defaultdict(Semaphore)

#: Errors raised by web3 and its transport when the node refuses a transaction.
SUBMISSION_ERRORS = (Web3Exception, ValueError, requests.RequestException)


class TransactionSubmitter:
    """Build, sign and broadcast transactions via JSONRPC.

    Each submission consumes exactly one nonce of the signing account.
    """

    def __init__(
        self,
        web3: Web3,
        chain_id: Optional[int] = None,
        clock: Callable[[], int] = current_time_ms,
    ):
        self.web3 = web3
        self._chain_id = chain_id
        self.clock = clock

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self.web3.eth.chain_id
        return self._chain_id

    def submit_deployment(
        self,
        artifact: Optional[ContractArtifact],
        owner_address: str,
        fee_params: FeeParams,
        credential: SigningCredential,
    ) -> PendingTransaction:
        """Create the token contract, passing `owner_address` to its constructor.

        :raises PreconditionError: if no contract artifact was loaded.
        :raises SubmissionError: if the node rejects the transaction.
        """
        if artifact is None:
            raise PreconditionError("Contract data is not loaded.")
        if not is_address(owner_address):
            raise PreconditionError(f"Invalid owner address: {owner_address!r}")

        contract = self.web3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)

        def build(params):
            return contract.constructor(to_checksum_address(owner_address)).build_transaction(
                params
            )

        log.info(
            "Deploying token contract",
            owner=to_checksum_address(owner_address),
            sender=credential.address,
            fee_params=fee_params,
        )
        return self._submit(ACTION_DEPLOY, build, fee_params, credential)

    def submit_call(
        self,
        contract_address: Optional[str],
        fee_params: FeeParams,
        credential: SigningCredential,
        abi: List[Dict[str, Any]],
        function_name: str = MINT_FUNCTION,
        args: Sequence[Any] = (),
    ) -> PendingTransaction:
        """Call `function_name` with `args` on the contract at `contract_address`.

        :raises PreconditionError: if no contract address is known yet.
        :raises SubmissionError:
            if the ABI has no such function, or the node rejects the transaction.
        """
        if not contract_address:
            raise PreconditionError("No deployed contract known yet; deploy the contract first.")

        contract = self.web3.eth.contract(address=to_checksum_address(contract_address), abi=abi)
        try:
            function = contract.functions[function_name](*args)
        except (Web3Exception, AttributeError, KeyError, TypeError, ValueError) as e:
            raise SubmissionError(f"Cannot call '{function_name}': {e}") from e

        log.info(
            "Calling contract",
            contract_address=to_checksum_address(contract_address),
            function=function_name,
            args=args,
            sender=credential.address,
            fee_params=fee_params,
        )
        return self._submit(function_name, function.build_transaction, fee_params, credential)

    def _submit(
        self,
        kind: str,
        build: Callable[[Dict[str, Any]], Dict[str, Any]],
        fee_params: FeeParams,
        credential: SigningCredential,
    ) -> PendingTransaction:
        with NONCE_LOCKS[credential.address]:
            try:
                nonce = self.web3.eth.get_transaction_count(credential.address, "pending")
                params = {
                    "from": credential.address,
                    "nonce": nonce,
                    "chainId": self.chain_id,
                    **fee_params.as_transaction_params(),
                }
                transaction = build(params)
                signed = credential.sign_transaction(transaction)
                submitted_at = self.clock()
                tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
            except SUBMISSION_ERRORS as e:
                log.error("Transaction rejected", kind=kind, error=str(e))
                raise SubmissionError(f"Transaction rejected: {e}") from e

        pending = PendingTransaction(
            hash=encode_hex(tx_hash), submitted_at=submitted_at, nonce=nonce, kind=kind
        )
        log.info("Transaction sent", kind=kind, tx_hash=pending.hash, nonce=nonce)
        return pending
