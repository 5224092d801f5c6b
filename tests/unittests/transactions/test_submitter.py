from unittest import mock

import pytest
import requests
from hexbytes import HexBytes
from tests.unittests.constants import (
    TEST_ACCOUNT_ADDRESS,
    TEST_CONTRACT_ADDRESS,
    TEST_OWNER_ADDRESS,
    TEST_TX_HASH,
)

from token_deployer.exceptions import PreconditionError, SubmissionError
from token_deployer.transactions.submitter import NONCE_LOCKS, TransactionSubmitter
from token_deployer.types import FeeParams

FEE_PARAMS = FeeParams(max_fee=50_000_000_000, max_priority_fee=30_000_000_000)
BUILT_TRANSACTION = {"data": "0x6080", "gas": 1_500_000, "nonce": 7}


@pytest.fixture
def web3():
    web3 = mock.MagicMock()
    web3.eth.get_transaction_count.return_value = 7
    web3.eth.send_raw_transaction.return_value = HexBytes(TEST_TX_HASH)
    contract = web3.eth.contract.return_value
    contract.constructor.return_value.build_transaction.return_value = BUILT_TRANSACTION
    contract.functions.__getitem__.return_value.return_value.build_transaction.return_value = (
        BUILT_TRANSACTION
    )
    return web3


@pytest.fixture
def submitter(web3):
    return TransactionSubmitter(web3, chain_id=80002, clock=lambda: 42)


class TestSubmitDeployment:
    def test_passes_owner_to_constructor_and_broadcasts(
        self, submitter, web3, artifact, credential
    ):
        pending = submitter.submit_deployment(artifact, TEST_OWNER_ADDRESS, FEE_PARAMS, credential)

        web3.eth.contract.assert_called_once_with(abi=artifact.abi, bytecode=artifact.bytecode)
        contract = web3.eth.contract.return_value
        contract.constructor.assert_called_once_with(TEST_OWNER_ADDRESS)
        contract.constructor.return_value.build_transaction.assert_called_once_with(
            {
                "from": TEST_ACCOUNT_ADDRESS,
                "nonce": 7,
                "chainId": 80002,
                "maxFeePerGas": 50_000_000_000,
                "maxPriorityFeePerGas": 30_000_000_000,
            }
        )
        credential.sign_transaction.assert_called_once_with(BUILT_TRANSACTION)
        web3.eth.send_raw_transaction.assert_called_once_with(b"\x02\xf8signed")

        assert pending.hash == TEST_TX_HASH
        assert pending.nonce == 7
        assert pending.submitted_at == 42
        assert pending.kind == "deploy"

    def test_uses_pending_nonce(self, submitter, web3, artifact, credential):
        submitter.submit_deployment(artifact, TEST_OWNER_ADDRESS, FEE_PARAMS, credential)
        web3.eth.get_transaction_count.assert_called_once_with(TEST_ACCOUNT_ADDRESS, "pending")

    def test_missing_artifact_raises_precondition_error(self, submitter, web3, credential):
        with pytest.raises(PreconditionError):
            submitter.submit_deployment(None, TEST_OWNER_ADDRESS, FEE_PARAMS, credential)
        web3.eth.send_raw_transaction.assert_not_called()

    def test_invalid_owner_raises_precondition_error(self, submitter, artifact, credential):
        with pytest.raises(PreconditionError):
            submitter.submit_deployment(artifact, "not-an-address", FEE_PARAMS, credential)

    @pytest.mark.parametrize(
        "error",
        argvalues=[
            ValueError({"code": -32000, "message": "insufficient funds for gas * price + value"}),
            requests.ConnectionError("node unreachable"),
        ],
        ids=["rejected by node", "transport error"],
    )
    def test_node_errors_raise_submission_error(
        self, error, submitter, web3, artifact, credential
    ):
        web3.eth.send_raw_transaction.side_effect = error

        with pytest.raises(SubmissionError) as exc_info:
            submitter.submit_deployment(artifact, TEST_OWNER_ADDRESS, FEE_PARAMS, credential)

        assert not isinstance(exc_info.value, PreconditionError)
        assert not NONCE_LOCKS[TEST_ACCOUNT_ADDRESS].locked()

    def test_chain_id_is_fetched_from_node_if_not_configured(self, web3, artifact, credential):
        web3.eth.chain_id = 1337
        submitter = TransactionSubmitter(web3)

        submitter.submit_deployment(artifact, TEST_OWNER_ADDRESS, FEE_PARAMS, credential)

        build = web3.eth.contract.return_value.constructor.return_value.build_transaction
        assert build.call_args[0][0]["chainId"] == 1337


class TestSubmitCall:
    def test_calls_function_with_args(self, submitter, web3, artifact, credential):
        pending = submitter.submit_call(
            TEST_CONTRACT_ADDRESS,
            FEE_PARAMS,
            credential,
            artifact.abi,
            args=(TEST_OWNER_ADDRESS, 1000),
        )

        web3.eth.contract.assert_called_once_with(address=TEST_CONTRACT_ADDRESS, abi=artifact.abi)
        functions = web3.eth.contract.return_value.functions
        functions.__getitem__.assert_called_once_with("mint")
        functions.__getitem__.return_value.assert_called_once_with(TEST_OWNER_ADDRESS, 1000)
        assert pending.kind == "mint"
        assert pending.hash == TEST_TX_HASH

    @pytest.mark.parametrize("contract_address", [None, ""])
    def test_unknown_contract_raises_precondition_error(
        self, contract_address, submitter, web3, artifact, credential
    ):
        with pytest.raises(PreconditionError):
            submitter.submit_call(contract_address, FEE_PARAMS, credential, artifact.abi)

        web3.eth.contract.assert_not_called()
        web3.eth.send_raw_transaction.assert_not_called()

    def test_unknown_function_raises_submission_error(self, submitter, web3, artifact, credential):
        web3.eth.contract.return_value.functions.__getitem__.side_effect = KeyError("burn")

        with pytest.raises(SubmissionError):
            submitter.submit_call(
                TEST_CONTRACT_ADDRESS, FEE_PARAMS, credential, artifact.abi, function_name="burn"
            )

        web3.eth.send_raw_transaction.assert_not_called()
