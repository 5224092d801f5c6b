from decimal import Decimal

#: Polygon Gas Station endpoint for the Amoy test network.
GAS_STATION_URL = "https://gasstation.polygon.technology/amoy"
RPC_URL_TEMPLATE = "https://polygon-amoy.infura.io/v3/{api_key}"
DEFAULT_ARTIFACT_PATH = "contracts/MyToken.json"

FEE_TIER_FAST = "fast"
FEE_TIER_STANDARD = "standard"
FEE_TIER_SAFE_LOW = "safeLow"

#: Fee tiers offered by the gas station, fastest first.
FEE_TIERS = (FEE_TIER_FAST, FEE_TIER_STANDARD, FEE_TIER_SAFE_LOW)
DEFAULT_FEE_TIER = FEE_TIER_STANDARD

WEI_PER_GWEI = Decimal(10) ** 9

DEFAULT_POLL_INTERVAL_MS = 30_000
DEFAULT_CONFIRMATIONS = 1
DEFAULT_RECEIPT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_DROP_AFTER = 60  # receipt polls
DEFAULT_REQUEST_TIMEOUT = 10  # seconds

MINT_FUNCTION = "mint"

ENV_INFURA_API_KEY = "INFURA_API_KEY"
ENV_PRIVATE_KEY = "ACCOUNT_PRIVATE_KEY"
