"""Orchestration of deploy and mint actions.

A session owns the state shown to the operator and sequences the fee
oracle, submitter and confirmation tracker for every action. Deploy and mint
each have their own action slot, moving through::

    IDLE -> IN_FLIGHT -> SUCCEEDED | FAILED

Starting an action again from SUCCEEDED or FAILED first clears the slot's
previous result and error. A failed precondition moves the slot straight to
FAILED without touching the network. The slots are independent: a failed
mint leaves the last deployment in place.

Actions run on greenlets. The fee parameters of an action are captured when
it starts, so fee refreshes arriving while it is in flight only change the
displayed snapshot.
"""
import itertools
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

import gevent
import structlog
from gevent import Greenlet

from token_deployer.constants import (
    DEFAULT_FEE_TIER,
    DEFAULT_POLL_INTERVAL_MS,
    FEE_TIERS,
    MINT_FUNCTION,
)
from token_deployer.exceptions import (
    ActionInProgress,
    FeeDataUnavailable,
    NetworkError,
    PreconditionError,
    TokenDeployerError,
)
from token_deployer.fees.oracle import FeeOracleClient, PollingHandle
from token_deployer.fees.selector import select_fee_params
from token_deployer.transactions.metrics import derive_metrics, format_operation_result
from token_deployer.transactions.submitter import TransactionSubmitter
from token_deployer.transactions.tracker import ConfirmationTracker
from token_deployer.types import (
    ACTION_DEPLOY,
    ACTION_MINT,
    ContractArtifact,
    FeeSnapshot,
    OperationResult,
    PendingTransaction,
    SigningCredential,
)
from token_deployer.utils.clock import current_time_ms
from token_deployer.utils.metrics import record_action, record_fee_refresh

log = structlog.get_logger(__name__)

#: Shown if an action fails with an error we did not expect.
GENERIC_FAILURE_MESSAGES = {
    ACTION_DEPLOY: "Contract deployment failed. Please try again.",
    ACTION_MINT: "Minting tokens failed. Please try again.",
}


class SlotStatus(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionSlot:
    status: SlotStatus = SlotStatus.IDLE
    result: Optional[OperationResult] = None
    error: Optional[str] = None
    reverted: bool = False
    #: Orders errors across slots, higher is more recent.
    error_seq: int = 0


@dataclass
class SessionState:
    fee_tier: str = DEFAULT_FEE_TIER
    fee_snapshot: Optional[FeeSnapshot] = None
    fee_error: Optional[str] = None
    deploy: ActionSlot = field(default_factory=ActionSlot)
    mint: ActionSlot = field(default_factory=ActionSlot)

    @property
    def deploying(self) -> bool:
        return self.deploy.status is SlotStatus.IN_FLIGHT

    @property
    def minting(self) -> bool:
        return self.mint.status is SlotStatus.IN_FLIGHT

    @property
    def last_error(self) -> Optional[str]:
        """The most recent error of either action slot."""
        failed = [slot for slot in (self.deploy, self.mint) if slot.error is not None]
        if not failed:
            return None
        return max(failed, key=lambda slot: slot.error_seq).error

    def copy(self) -> "SessionState":
        return replace(self)


Listener = Callable[[SessionState], None]


class OrchestrationSession:
    def __init__(
        self,
        oracle: FeeOracleClient,
        submitter: TransactionSubmitter,
        tracker: ConfirmationTracker,
        credential: SigningCredential,
        artifact: Optional[ContractArtifact] = None,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        clock: Callable[[], int] = current_time_ms,
    ):
        self.oracle = oracle
        self.submitter = submitter
        self.tracker = tracker
        self.credential = credential
        self.artifact = artifact
        self.poll_interval_ms = poll_interval_ms
        self.clock = clock

        self._state = SessionState(fee_snapshot=oracle.snapshot)
        self._listeners: List[Listener] = []
        self._greenlets: Dict[str, Greenlet] = {}
        self._poller: Optional[PollingHandle] = None
        self._error_seq = itertools.count(1)

    def __repr__(self):
        return f"<{self.__class__.__qualname__} account={self.credential.address}>"

    @property
    def state(self) -> SessionState:
        """A copy of the current state. Mutating it has no effect on the session."""
        return self._state.copy()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with the new state after every state change.

        Returns a callable removing the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    # Fee data

    def start(self) -> PollingHandle:
        """Start polling the fee oracle, if not already polling."""
        if self._poller is None or self._poller.cancelled:
            self._poller = self.oracle.start_polling(
                self.poll_interval_ms,
                on_success=self._fee_snapshot_updated,
                on_failure=self._fee_refresh_failed,
            )
        return self._poller

    def stop(self) -> None:
        """Stop polling the fee oracle. In-flight actions keep running."""
        if self._poller is not None:
            self._poller.cancel()

    def refresh_fees(self) -> Optional[FeeSnapshot]:
        """Refresh fee data once, outside of the poll loop."""
        try:
            snapshot = self.oracle.refresh()
        except NetworkError as e:
            self._fee_refresh_failed(e)
            return None
        self._fee_snapshot_updated(snapshot)
        return snapshot

    def _fee_snapshot_updated(self, snapshot: FeeSnapshot) -> None:
        record_fee_refresh("succeeded")
        self._state.fee_snapshot = snapshot
        self._state.fee_error = None
        self._notify()

    def _fee_refresh_failed(self, error: NetworkError) -> None:
        record_fee_refresh("failed")
        self._state.fee_error = str(error)
        self._notify()

    def change_tier(self, tier: str) -> None:
        if tier not in FEE_TIERS:
            raise ValueError(f"Unknown fee tier '{tier}', must be one of {', '.join(FEE_TIERS)}")
        self._state.fee_tier = tier
        log.debug("Fee tier changed", tier=tier)
        self._notify()

    # Actions

    def start_deploy(self, owner_address: Optional[str] = None) -> Optional[Greenlet]:
        """Deploy the token contract, owned by `owner_address`.

        The owner defaults to the signing account. Returns the greenlet running
        the deployment, or None if a precondition failed.

        :raises ActionInProgress: if a deployment is already in flight.
        """

        def prepare():
            if self.artifact is None:
                raise PreconditionError("Contract data is not loaded.")
            fee_params = select_fee_params(self._state.fee_tier, self._state.fee_snapshot)
            owner = owner_address or self.credential.address
            artifact, credential = self.artifact, self.credential

            def submit() -> PendingTransaction:
                return self.submitter.submit_deployment(artifact, owner, fee_params, credential)

            return submit

        return self._start_action(ACTION_DEPLOY, prepare)

    def start_mint(self, amount: int, recipient: Optional[str] = None) -> Optional[Greenlet]:
        """Mint `amount` tokens for `recipient` on the last deployed contract.

        The recipient defaults to the signing account. Returns the greenlet
        running the mint, or None if a precondition failed.

        :raises ActionInProgress: if a mint is already in flight.
        """

        def prepare():
            deployment = self._state.deploy.result
            if deployment is None or deployment.contract_address is None:
                raise PreconditionError("No deployed contract yet. Deploy the contract first.")
            if self.artifact is None:
                raise PreconditionError("Contract data is not loaded.")
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise PreconditionError(f"Mint amount must be a positive integer, got {amount!r}")
            fee_params = select_fee_params(self._state.fee_tier, self._state.fee_snapshot)
            contract_address = deployment.contract_address
            args = (recipient or self.credential.address, amount)
            abi, credential = self.artifact.abi, self.credential

            def submit() -> PendingTransaction:
                return self.submitter.submit_call(
                    contract_address, fee_params, credential, abi, MINT_FUNCTION, args
                )

            return submit

        return self._start_action(ACTION_MINT, prepare)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for all in-flight actions to finish."""
        gevent.joinall(list(self._greenlets.values()), timeout=timeout)

    def _slot(self, kind: str) -> ActionSlot:
        return getattr(self._state, kind)

    def _set_slot(self, kind: str, slot: ActionSlot, notify: bool = True) -> None:
        setattr(self._state, kind, slot)
        if notify:
            self._notify()

    def _start_action(self, kind: str, prepare: Callable) -> Optional[Greenlet]:
        if self._slot(kind).status is SlotStatus.IN_FLIGHT:
            log.info("Rejected action, already in flight", kind=kind)
            raise ActionInProgress(f"A {kind} action is already in flight.")

        # Clear the previous attempt before checking preconditions, so a stale
        # result is never shown next to a new attempt.
        self._set_slot(kind, ActionSlot(), notify=False)

        try:
            submit = prepare()
        except (PreconditionError, FeeDataUnavailable) as e:
            log.warning("Action precondition failed", kind=kind, error=str(e))
            self._fail(kind, e)
            return None

        self._set_slot(kind, ActionSlot(status=SlotStatus.IN_FLIGHT))
        greenlet = gevent.spawn(self._submit_and_track, kind, submit)
        self._greenlets[kind] = greenlet
        return greenlet

    def _submit_and_track(self, kind: str, submit: Callable[[], PendingTransaction]) -> None:
        started_at = self.clock()
        try:
            pending = submit()
            receipt = self.tracker.wait(pending)
            result = derive_metrics(receipt, started_at, max(self.clock(), started_at))
        except TokenDeployerError as e:
            self._fail(kind, e)
        except Exception as e:
            log.exception("Action failed unexpectedly", kind=kind)
            self._fail(kind, e, message=GENERIC_FAILURE_MESSAGES[kind])
        else:
            log.info("Action succeeded", kind=kind, **format_operation_result(result))
            record_action(kind, "succeeded", result.duration_seconds)
            self._set_slot(kind, ActionSlot(status=SlotStatus.SUCCEEDED, result=result))

    def _fail(self, kind: str, error: Exception, message: Optional[str] = None) -> None:
        log.error("Action failed", kind=kind, error=str(error))
        record_action(kind, _failure_outcome(error))
        self._set_slot(
            kind,
            ActionSlot(
                status=SlotStatus.FAILED,
                error=message or str(error),
                reverted=getattr(error, "reverted", False),
                error_seq=next(self._error_seq),
            ),
        )


def _failure_outcome(error: Exception) -> str:
    if getattr(error, "reverted", False):
        return "reverted"
    if getattr(error, "dropped", False):
        return "dropped"
    return "failed"
