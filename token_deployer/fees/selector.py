from decimal import ROUND_DOWN, Decimal
from typing import Optional

import structlog

from token_deployer.constants import FEE_TIER_STANDARD, WEI_PER_GWEI
from token_deployer.exceptions import FeeDataUnavailable
from token_deployer.types import FeeParams, FeeSnapshot

log = structlog.get_logger(__name__)


def gwei_to_wei(amount: Decimal) -> int:
    """Convert a gwei amount to integer wei.

    The conversion is exact; fractions of a wei are truncated toward zero.
    """
    return int((Decimal(amount) * WEI_PER_GWEI).to_integral_value(rounding=ROUND_DOWN))


def select_fee_params(tier: str, snapshot: Optional[FeeSnapshot]) -> FeeParams:
    """Return the fee parameters of `tier` in the given `snapshot`.

    Unknown tiers, and tiers missing from the snapshot, fall back to the
    `standard` tier.

    :raises FeeDataUnavailable:
        if there is no snapshot, or neither `tier` nor `standard` is present in it.
    """
    if snapshot is None:
        raise FeeDataUnavailable("No fee data has been fetched yet.")

    fees = snapshot.get(tier)
    if fees is None:
        if tier != FEE_TIER_STANDARD:
            log.debug(
                "Fee tier not available, using fallback", tier=tier, fallback=FEE_TIER_STANDARD
            )
        fees = snapshot.get(FEE_TIER_STANDARD)
    if fees is None:
        raise FeeDataUnavailable(
            f"No fee data for tier '{tier}' and no '{FEE_TIER_STANDARD}' fallback available."
        )

    return FeeParams(
        max_fee=gwei_to_wei(fees.max_fee), max_priority_fee=gwei_to_wei(fees.max_priority_fee)
    )
