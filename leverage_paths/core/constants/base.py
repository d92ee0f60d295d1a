GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

BPS_DENOMINATOR = 10_000
DEFAULT_SLIPPAGE_BPS = 50

# Swap payload deadline, measured from the moment the payload is built.
DEFAULT_DEADLINE_BUFFER_SECONDS = 20 * 60

# 12 second slots on mainnet.
DEFAULT_BLOCKS_PER_MINUTE = 5

# Timeout constants (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_TRANSACTION_TIMEOUT = 180

MAX_UINT24 = 2**24 - 1
