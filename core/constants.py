"""
core/constants.py - Enums, defaults, and constants.

Only truly constant values here. Config values go to config/*.yaml
and the environment (see config/settings.py).
"""

from decimal import Decimal
from enum import Enum


# =============================================================================
# PROTOCOL TYPES
# =============================================================================

class DexProtocol(str, Enum):
    """
    Router call layout of a venue.

    UNISWAP_STYLE: SwapRouter02, structured params without deadline.
    PANCAKE_STYLE: V3 SwapRouter, params carry an explicit deadline.
    """
    UNISWAP_STYLE = "uniswap_style"
    PANCAKE_STYLE = "pancake_style"


class TradeSide(str, Enum):
    """Leg of a two-leg arbitrage."""
    BUY = "BUY"
    SELL = "SELL"


class ErrorCode(str, Enum):
    """Error codes carried by every BotError."""
    # Infrastructure
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_DECODE_ERROR = "INFRA_DECODE_ERROR"

    # Venues
    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"

    # Validation
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    UNKNOWN_VENUE = "UNKNOWN_VENUE"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # Execution
    EXEC_APPROVAL_FAILED = "EXEC_APPROVAL_FAILED"
    EXEC_REVERT = "EXEC_REVERT"
    EXEC_NO_RECEIPT = "EXEC_NO_RECEIPT"
    EXEC_NO_TOKENS_RECEIVED = "EXEC_NO_TOKENS_RECEIVED"
    EXEC_SUBMIT_FAILED = "EXEC_SUBMIT_FAILED"
    EXEC_NO_SIGNER = "EXEC_NO_SIGNER"

    # Configuration / startup
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"
    STARTUP_INSUFFICIENT_GAS = "STARTUP_INSUFFICIENT_GAS"

    UNKNOWN = "UNKNOWN"


# =============================================================================
# V3 CONSTANTS (HARDCODED - TRUST ANCHORS)
# =============================================================================

# Fee tiers in hundredths of a bip (1/1_000_000), probed in this order
UNISWAP_V3_FEE_TIERS: list[int] = [100, 500, 3000, 10000]
PANCAKE_V3_FEE_TIERS: list[int] = [100, 500, 2500, 10000]

# Used by the executor when no tier resolves a pool
UNISWAP_V3_DEFAULT_FEE_TIER = 3000
PANCAKE_V3_DEFAULT_FEE_TIER = 500

# sqrtPriceX96 fixed point
Q96 = 2**96
Q192 = 2**192

MAX_UINT256 = 2**256 - 1


# =============================================================================
# NUMERIC CONSTANTS
# =============================================================================

WEI_PER_ETH = 10**18
WEI_PER_GWEI = 10**9

MAX_TOKEN_DECIMALS = 18

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# =============================================================================
# QUOTING / SCANNING DEFAULTS
# =============================================================================

DEFAULT_QUOTE_CACHE_TTL_MS = 3000  # 3 seconds

# Gas units assumed per single-hop V3 swap when quoting from pool state
DEFAULT_SWAP_GAS_ESTIMATE = 150_000

# Add 20% to estimated gas cost
DEFAULT_GAS_BUFFER_PERCENT = 20

# Opportunities at or above this net profit percent are not trusted
PROFIT_SANITY_CEILING_PCT = Decimal("10")

DEFAULT_SCAN_INTERVAL_MS = 2000
STATUS_LOG_EVERY_CYCLES = 20


# =============================================================================
# EXECUTION DEFAULTS
# =============================================================================

BUY_SLIPPAGE_BPS = 200   # 2%
SELL_SLIPPAGE_BPS = 500  # 5%

# Sell leg uses 99% of the tokens actually received
SETTLEMENT_MARGIN_BPS = 100

SETTLEMENT_DELAY_SECONDS = 1.0

# Logged, not enforced, by the executor
HIGH_PROFIT_WARNING_PCT = Decimal("10")

SWAP_GAS_LIMIT = 400_000
APPROVE_GAS_LIMIT = 100_000
SWAP_DEADLINE_SECONDS = 300


# =============================================================================
# INFRASTRUCTURE DEFAULTS
# =============================================================================

DEFAULT_CHAIN_ID = 8453  # Base

CHAIN_KEYS: dict[int, str] = {
    8453: "base",
}

# Gas is paid in the native asset, so profit is measured in its wrapped token
WRAPPED_NATIVE: dict[str, str] = {
    "base": "0x4200000000000000000000000000000000000006",
}

DEFAULT_RPC_TIMEOUT_SECONDS = 10
DEFAULT_RECEIPT_TIMEOUT_SECONDS = 120
DEFAULT_RECEIPT_POLL_SECONDS = 1.0

# Native balance required at startup to pay for gas
MIN_NATIVE_BALANCE_WEI = 10**16  # 0.01 ETH

# Startup approval warm-up re-approves below this many whole tokens
APPROVAL_WARMUP_MIN_TOKENS = 1_000_000
