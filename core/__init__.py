"""
core - Core utilities and models for ZERO-BOT.

This package contains:
- models.py: Data models (Token, Venue, PriceQuote, ArbitrageOpportunity, TradeResult)
- constants.py: Enums, fee tiers, execution defaults
- exceptions.py: Typed exceptions with error codes
- math.py: Integer/Decimal math, sqrtPriceX96 conversions (no float)
- cache.py: Fixed-TTL cache
- time.py: Freshness and deadline helpers
- logging.py: Structured logging
"""

from core.cache import TTLCache
from core.constants import (
    DexProtocol,
    ErrorCode,
    TradeSide,
    PANCAKE_V3_FEE_TIERS,
    UNISWAP_V3_FEE_TIERS,
)
from core.exceptions import (
    BotError,
    ConfigError,
    ExecutionError,
    InfraError,
    RPCError,
    TransactionError,
    ValidationError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    ApprovalRecord,
    ArbitrageOpportunity,
    PriceQuote,
    Token,
    TradeResult,
    Venue,
)

__all__ = [
    # Constants
    "DexProtocol",
    "ErrorCode",
    "TradeSide",
    "PANCAKE_V3_FEE_TIERS",
    "UNISWAP_V3_FEE_TIERS",
    # Exceptions
    "BotError",
    "ConfigError",
    "ExecutionError",
    "InfraError",
    "RPCError",
    "TransactionError",
    "ValidationError",
    # Models
    "ApprovalRecord",
    "ArbitrageOpportunity",
    "PriceQuote",
    "Token",
    "TradeResult",
    "Venue",
    # Cache
    "TTLCache",
    # Logging
    "get_logger",
    "setup_logging",
]
