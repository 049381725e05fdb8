"""
Core data models for ZERO-BOT.

Reference data (Token, Venue) is immutable and loaded once at startup.
PriceQuote and ArbitrageOpportunity are produced fresh every scan cycle
and handed over by value. TradeResult is the terminal outcome of one
execution attempt.

AMOUNT CONTRACT:
  - All amounts are int in the token's raw units (wei for 18-decimal tokens)
  - Prices and percentages are Decimal, never float
  - net_profit / profit are in the base asset's raw units and may be negative
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.constants import DEFAULT_SWAP_GAS_ESTIMATE, DexProtocol
from core.time import now_ms, now_utc


@dataclass(frozen=True, eq=False)
class Token:
    """ERC-20 asset. Identity is the (case-insensitive) address."""
    address: str
    symbol: str
    decimals: int
    name: str = ""

    def __hash__(self) -> int:
        return hash(self.address.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return False
        return self.address.lower() == other.address.lower()

    def sorts_before(self, other: "Token") -> bool:
        """True if this token is token0 in a pool with `other`."""
        return self.address.lower() < other.address.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "name": self.name,
        }


@dataclass(frozen=True)
class Venue:
    """A DEX deployment: router + factory (+ optional quoter)."""
    key: str
    name: str
    router: str
    factory: str
    protocol: DexProtocol
    quoter: Optional[str] = None
    version: str = "V3"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "router": self.router,
            "factory": self.factory,
            "quoter": self.quoter,
            "protocol": self.protocol.value,
            "version": self.version,
        }


@dataclass
class PriceQuote:
    """Executable output for one venue, derived from pool state."""
    dex: str
    amount_in: int
    amount_out: int
    price: Decimal
    price_impact: Decimal = Decimal("0")
    route: List[str] = field(default_factory=list)
    gas_estimate: int = DEFAULT_SWAP_GAS_ESTIMATE
    fee_tier: int = 0
    pool_address: Optional[str] = None
    timestamp_ms: int = 0

    def __post_init__(self):
        if self.timestamp_ms == 0:
            self.timestamp_ms = now_ms()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dex": self.dex,
            "amount_in": str(self.amount_in),
            "amount_out": str(self.amount_out),
            "price": str(self.price),
            "price_impact": str(self.price_impact),
            "route": list(self.route),
            "gas_estimate": self.gas_estimate,
            "fee_tier": self.fee_tier,
            "pool_address": self.pool_address,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass
class ArbitrageOpportunity:
    """
    Round trip token_a -> token_b on buy_dex, token_b -> token_a on sell_dex.

    net_profit and profit_percent are computed after estimated gas.
    """
    token_a: Token
    token_b: Token
    buy_dex: str
    sell_dex: str
    buy_price: Decimal
    sell_price: Decimal
    profit_percent: Decimal
    profit_amount: int
    buy_quote: PriceQuote
    sell_quote: PriceQuote
    estimated_gas_cost: int
    net_profit: int
    opportunity_id: str = ""
    flagged: bool = False
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = now_utc()

    @property
    def pair(self) -> str:
        return f"{self.token_a.symbol}/{self.token_b.symbol}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opportunity_id": self.opportunity_id,
            "pair": self.pair,
            "buy_dex": self.buy_dex,
            "sell_dex": self.sell_dex,
            "buy_price": str(self.buy_price),
            "sell_price": str(self.sell_price),
            "profit_percent": str(self.profit_percent),
            "profit_amount": str(self.profit_amount),
            "estimated_gas_cost": str(self.estimated_gas_cost),
            "net_profit": str(self.net_profit),
            "flagged": self.flagged,
            "buy_quote": self.buy_quote.to_dict(),
            "sell_quote": self.sell_quote.to_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ApprovalRecord:
    """Unlimited allowance already confirmed for (token, spender)."""
    token: str
    spender: str

    @classmethod
    def of(cls, token: str, spender: str) -> "ApprovalRecord":
        return cls(token=token.lower(), spender=spender.lower())


@dataclass
class TradeResult:
    """Outcome of one two-leg execution attempt."""
    success: bool
    tx_hash: Optional[str] = None
    profit: Optional[int] = None
    gas_used: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    buy_tx_hash: Optional[str] = None
    state: Optional[str] = None
    opportunity_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "tx_hash": self.tx_hash,
            "buy_tx_hash": self.buy_tx_hash,
            "profit": str(self.profit) if self.profit is not None else None,
            "gas_used": str(self.gas_used) if self.gas_used is not None else None,
            "error": self.error,
            "error_code": self.error_code,
            "state": self.state,
            "opportunity_id": self.opportunity_id,
        }
