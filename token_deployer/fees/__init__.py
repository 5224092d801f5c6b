from token_deployer.fees.oracle import FeeOracleClient, PollingHandle, parse_fee_snapshot
from token_deployer.fees.selector import gwei_to_wei, select_fee_params

__all__ = [
    "FeeOracleClient",
    "PollingHandle",
    "gwei_to_wei",
    "parse_fee_snapshot",
    "select_fee_params",
]
