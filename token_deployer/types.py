from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress

from token_deployer.constants import FEE_TIERS

#: Kinds of actions a session can run. Each kind owns one action slot.
ACTION_DEPLOY = "deploy"
ACTION_MINT = "mint"


@dataclass(frozen=True)
class TierFees:
    """Suggested fees of a single tier, in gwei."""

    max_fee: Decimal
    max_priority_fee: Decimal


class FeeSnapshot(Mapping):
    """Read-only mapping of fee tier names to their :class:`TierFees`.

    A snapshot is never updated; the oracle replaces it as a whole. Tiers
    missing from the mapping are treated as not yet available.
    """

    def __init__(self, tiers: Dict[str, TierFees], fetched_at: Optional[int] = None):
        self.dict = dict(tiers)
        self.fetched_at = fetched_at

    def __getitem__(self, item: str) -> TierFees:
        return self.dict[item]

    def __iter__(self):
        return iter(self.dict)

    def __len__(self):
        return len(self.dict)

    def __eq__(self, other):
        if isinstance(other, FeeSnapshot):
            return self.dict == other.dict
        return NotImplemented

    def __hash__(self):
        return hash(tuple(sorted(self.dict.items())))

    def __repr__(self):
        return f"{self.__class__.__qualname__}({self.dict})"

    @property
    def complete(self) -> bool:
        return all(tier in self.dict for tier in FEE_TIERS)


@dataclass(frozen=True)
class FeeParams:
    """EIP-1559 fee parameters, in wei."""

    max_fee: int
    max_priority_fee: int

    def as_transaction_params(self) -> Dict[str, int]:
        return {"maxFeePerGas": self.max_fee, "maxPriorityFeePerGas": self.max_priority_fee}


@dataclass(frozen=True)
class ContractArtifact:
    abi: List[Dict[str, Any]]
    bytecode: str


class SigningCredential:
    """An account able to sign transactions.

    Only the derived address is ever exposed. The key stays inside the
    wrapped :class:`LocalAccount` and is never part of the repr.
    """

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> "SigningCredential":
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> ChecksumAddress:
        return self._account.address

    def sign_transaction(self, transaction: Dict[str, Any]):
        return self._account.sign_transaction(transaction)

    def __repr__(self):
        return f"<{self.__class__.__qualname__} address={self.address}>"

    __str__ = __repr__


@dataclass(frozen=True)
class PendingTransaction:
    hash: str
    submitted_at: int  # milliseconds since the epoch
    nonce: int
    kind: str


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    block_number: int
    gas_used: int
    gas_price: int  # effective gas price, in wei
    contract_address: Optional[ChecksumAddress] = None

    @property
    def total_fee(self) -> int:
        return self.gas_used * self.gas_price


@dataclass(frozen=True)
class OperationResult:
    receipt: TransactionReceipt
    duration_seconds: Decimal
    total_fee: int

    @property
    def contract_address(self) -> Optional[ChecksumAddress]:
        return self.receipt.contract_address
