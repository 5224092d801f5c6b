"""Gas station client.

The gas station answers a plain GET with the suggested fees per tier, in gwei::

    {
        "safeLow": {"maxPriorityFee": 25.1, "maxFee": 25.1},
        "standard": {"maxPriorityFee": 27.3, "maxFee": 27.3},
        "fast": {"maxPriorityFee": 30.6, "maxFee": 30.6},
        "estimatedBaseFee": 1.5e-08,
        "blockTime": 2,
        "blockNumber": 12345678
    }

Keys other than the three tiers are ignored.
"""
from decimal import Decimal, InvalidOperation
from json import JSONDecodeError
from typing import Any, Callable, Mapping, Optional

import gevent
import requests
import structlog
from gevent import Greenlet
from gevent.event import Event

from token_deployer.constants import DEFAULT_REQUEST_TIMEOUT, FEE_TIERS
from token_deployer.exceptions import NetworkError
from token_deployer.types import FeeSnapshot, TierFees
from token_deployer.utils.clock import current_time_ms
from token_deployer.utils.http import TimeoutSession

log = structlog.get_logger(__name__)


def _parse_gwei(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, str, Decimal, float)):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{field_name} must be a number, got {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"{field_name} must be a finite, non-negative number, got {value!r}")
    return amount


def parse_fee_snapshot(data: Any, fetched_at: Optional[int] = None) -> FeeSnapshot:
    """Build a :class:`FeeSnapshot` from a decoded gas station response.

    :raises ValueError: if any tier is missing or holds an invalid value.
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    tiers = {}
    for tier in FEE_TIERS:
        entry = data.get(tier)
        if not isinstance(entry, Mapping):
            raise ValueError(f"Fee tier '{tier}' missing from response")
        try:
            max_fee, max_priority_fee = entry["maxFee"], entry["maxPriorityFee"]
        except KeyError as e:
            raise ValueError(f"Fee tier '{tier}' is missing key {e}") from e
        tiers[tier] = TierFees(
            max_fee=_parse_gwei(max_fee, f"{tier}.maxFee"),
            max_priority_fee=_parse_gwei(max_priority_fee, f"{tier}.maxPriorityFee"),
        )
    return FeeSnapshot(tiers, fetched_at=fetched_at)


class PollingHandle:
    """Cancellation handle of a running poll loop.

    Cancelling stops future ticks. A fetch already in progress is allowed to
    finish.
    """

    def __init__(self):
        self._stopped = Event()
        self.greenlet: Optional[Greenlet] = None

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def cancel(self) -> None:
        self._stopped.set()

    def wait(self, timeout: float) -> bool:
        """Sleep for up to `timeout` seconds, returning early if cancelled."""
        return self._stopped.wait(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self.greenlet is not None:
            self.greenlet.join(timeout)


class FeeOracleClient:
    """Fetches fee tiers from the gas station and holds the latest snapshot."""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], int] = current_time_ms,
    ):
        self.url = url
        self.clock = clock
        self.session = session or TimeoutSession(timeout)
        self.snapshot: Optional[FeeSnapshot] = None

    def refresh(self) -> FeeSnapshot:
        """Fetch the current fee tiers and replace the held snapshot.

        On failure the previous snapshot is kept.

        :raises NetworkError:
            if the request fails, or the response is not a valid fee tier document.
        """
        try:
            resp = self.session.get(self.url)
            resp.raise_for_status()
            snapshot = parse_fee_snapshot(
                resp.json(parse_float=Decimal), fetched_at=self.clock()
            )
        except requests.RequestException as e:
            log.warning("Fetching fee data failed", url=self.url, error=str(e))
            raise NetworkError(e, url=self.url) from e
        except (JSONDecodeError, ValueError) as e:
            log.warning("Received malformed fee data", url=self.url, error=str(e))
            raise NetworkError(e, url=self.url) from e

        self.snapshot = snapshot
        log.debug("Fee data refreshed", snapshot=snapshot)
        return snapshot

    def start_polling(
        self,
        interval_ms: int,
        on_success: Optional[Callable[[FeeSnapshot], None]] = None,
        on_failure: Optional[Callable[[NetworkError], None]] = None,
    ) -> PollingHandle:
        """Refresh now and then every `interval_ms` milliseconds, on a greenlet.

        A failed tick is handed to `on_failure` and the loop waits for the
        next tick. There is no further retry.
        """
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        handle = PollingHandle()
        handle.greenlet = gevent.spawn(
            self._poll, handle, interval_ms / 1000, on_success, on_failure
        )
        log.info("Started fee polling", url=self.url, interval_ms=interval_ms)
        return handle

    def _poll(self, handle, interval, on_success, on_failure):
        while not handle.cancelled:
            try:
                self._tick(on_success, on_failure)
            except Exception:
                # A failing callback must not end polling.
                log.exception("Fee poll tick failed", url=self.url)
            handle.wait(interval)
        log.info("Stopped fee polling", url=self.url)

    def _tick(self, on_success, on_failure):
        try:
            snapshot = self.refresh()
        except NetworkError as e:
            if on_failure is not None:
                on_failure(e)
        else:
            if on_success is not None:
                on_success(snapshot)
