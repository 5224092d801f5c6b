from decimal import Decimal
from itertools import count
from unittest import mock

import pytest
import responses
from tests.unittests.constants import (
    CONSTRUCTOR_ABI,
    MINT_ABI,
    TEST_ACCOUNT_ADDRESS,
    TEST_CONTRACT_ADDRESS,
    TEST_TX_HASH,
)

from token_deployer.types import (
    ContractArtifact,
    FeeSnapshot,
    PendingTransaction,
    SigningCredential,
    TierFees,
    TransactionReceipt,
)


@pytest.fixture
def gas_station_response():
    """A gas station response body, as served for the amoy test network."""
    return {
        "safeLow": {"maxPriorityFee": 10, "maxFee": 20},
        "standard": {"maxPriorityFee": 20, "maxFee": 30},
        "fast": {"maxPriorityFee": 30, "maxFee": 50},
        "estimatedBaseFee": 1.5e-08,
        "blockTime": 2,
        "blockNumber": 12345678,
    }


@pytest.fixture
def fee_snapshot():
    return FeeSnapshot(
        {
            "fast": TierFees(max_fee=Decimal("50"), max_priority_fee=Decimal("30")),
            "standard": TierFees(max_fee=Decimal("30"), max_priority_fee=Decimal("20")),
            "safeLow": TierFees(max_fee=Decimal("20"), max_priority_fee=Decimal("10")),
        }
    )


@pytest.fixture
def artifact():
    return ContractArtifact(abi=[CONSTRUCTOR_ABI, MINT_ABI], bytecode="0x6080604052")


@pytest.fixture
def credential():
    credential = mock.Mock(spec=SigningCredential, address=TEST_ACCOUNT_ADDRESS)
    credential.sign_transaction.return_value = mock.Mock(raw_transaction=b"\x02\xf8signed")
    return credential


@pytest.fixture
def pending_transaction():
    return PendingTransaction(hash=TEST_TX_HASH, submitted_at=1_000, nonce=0, kind="deploy")


@pytest.fixture
def deployment_receipt():
    return TransactionReceipt(
        transaction_hash=TEST_TX_HASH,
        block_number=100,
        gas_used=1_200_000,
        gas_price=30_000_000_000,
        contract_address=TEST_CONTRACT_ADDRESS,
    )


@pytest.fixture
def mint_receipt():
    return TransactionReceipt(
        transaction_hash="0x" + "cd" * 32,
        block_number=105,
        gas_used=51_000,
        gas_price=30_000_000_000,
    )


@pytest.fixture
def fake_clock():
    """A clock advancing by 1.5 seconds every time it is read."""
    ticks = count(start=1_000_000, step=1_500)
    return lambda: next(ticks)


@pytest.fixture
def mocked_responses():
    with responses.RequestsMock() as requests_mock:
        yield requests_mock
