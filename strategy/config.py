"""
strategy/config.py - Strategy configuration.

Trading pairs, trade size, thresholds and the execution constants, built
from config/strategy.yaml plus the environment-driven BotSettings.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from core.constants import (
    BUY_SLIPPAGE_BPS,
    DEFAULT_GAS_BUFFER_PERCENT,
    DEFAULT_SCAN_INTERVAL_MS,
    HIGH_PROFIT_WARNING_PCT,
    PROFIT_SANITY_CEILING_PCT,
    SELL_SLIPPAGE_BPS,
    SETTLEMENT_DELAY_SECONDS,
    SETTLEMENT_MARGIN_BPS,
    STATUS_LOG_EVERY_CYCLES,
    ErrorCode,
)
from core.exceptions import ConfigError
from core.models import Token, Venue


@dataclass(frozen=True)
class TradingPair:
    """token_a is traded out and back; token_b is the intermediate asset."""
    token_a: Token
    token_b: Token

    @property
    def symbol(self) -> str:
        return f"{self.token_a.symbol}/{self.token_b.symbol}"


@dataclass
class ScannerConfig:
    """Scanner parameters."""

    pairs: list[TradingPair]
    venues: list[Venue]
    base_token: Token
    conversion_venue: Venue

    # Trade size in token_a human units (scaled by token_a.decimals)
    trade_amount: Decimal = Decimal("0.1")

    # Fraction: 0.005 means 0.5%
    min_profit_threshold: Decimal = Decimal("0.005")
    max_gas_price_gwei: Decimal = Decimal("1")

    scan_interval_ms: int = DEFAULT_SCAN_INTERVAL_MS
    gas_buffer_percent: int = DEFAULT_GAS_BUFFER_PERCENT
    profit_ceiling_pct: Decimal = PROFIT_SANITY_CEILING_PCT
    status_log_every_cycles: int = STATUS_LOG_EVERY_CYCLES

    @property
    def min_profit_percent(self) -> Decimal:
        return self.min_profit_threshold * 100


@dataclass
class ExecutionParams:
    """Executor constants (slippage, settlement)."""
    buy_slippage_bps: int = BUY_SLIPPAGE_BPS
    sell_slippage_bps: int = SELL_SLIPPAGE_BPS
    settlement_margin_bps: int = SETTLEMENT_MARGIN_BPS
    settlement_delay_seconds: float = SETTLEMENT_DELAY_SECONDS
    high_profit_warning_pct: Decimal = HIGH_PROFIT_WARNING_PCT


@dataclass
class StrategyConfig:
    """Full strategy configuration."""
    scanner: ScannerConfig
    execution: ExecutionParams = field(default_factory=ExecutionParams)


def _lookup(registry: dict[str, Any], key: str, kind: str) -> Any:
    if key not in registry:
        raise ConfigError(
            f"Unknown {kind} in strategy config: {key}",
            code=ErrorCode.CONFIG_INVALID,
            details={"known": sorted(registry)},
        )
    return registry[key]


def build_strategy_config(
    data: dict[str, Any],
    tokens: dict[str, Token],
    venues: dict[str, Venue],
    trade_amount: Decimal,
    min_profit_threshold: Decimal,
    max_gas_price_gwei: Decimal,
    scan_interval_ms: int = DEFAULT_SCAN_INTERVAL_MS,
    wrapped_native: Optional[str] = None,
) -> StrategyConfig:
    """
    Resolve strategy.yaml against the token/venue registries.

    Args:
        data: Parsed strategy.yaml
        tokens: Symbol -> Token
        venues: Venue key -> Venue
        trade_amount, min_profit_threshold, max_gas_price_gwei,
        scan_interval_ms: Runtime parameters from the environment
        wrapped_native: Wrapped native token address of the chain; when
            given, base_token must be that token

    Raises:
        ConfigError: Unknown symbols/venues, no pairs configured, or a
            base_token that cannot absorb gas costs measured in wei
    """
    pairs = [
        TradingPair(
            token_a=_lookup(tokens, entry.get("token_a"), "token"),
            token_b=_lookup(tokens, entry.get("token_b"), "token"),
        )
        for entry in data.get("pairs", [])
    ]
    if not pairs:
        raise ConfigError("No trading pairs configured", code=ErrorCode.CONFIG_INVALID)

    enabled = data.get("venues") or list(venues)
    venue_list = [_lookup(venues, key, "venue") for key in enabled]

    # Net profit subtracts gas (wei) from base-asset raw units
    base_token = _lookup(tokens, data.get("base_token", "WETH"), "token")
    if base_token.decimals != 18 or (
        wrapped_native is not None and base_token.address.lower() != wrapped_native.lower()
    ):
        raise ConfigError(
            f"base_token must be the chain's wrapped native token, got {base_token.symbol}",
            code=ErrorCode.CONFIG_INVALID,
            details={"base_token": base_token.address, "wrapped_native": wrapped_native},
        )

    scanner = ScannerConfig(
        pairs=pairs,
        venues=venue_list,
        base_token=base_token,
        conversion_venue=_lookup(venues, data.get("conversion_venue", "UNISWAP_V3"), "venue"),
        trade_amount=trade_amount,
        min_profit_threshold=min_profit_threshold,
        max_gas_price_gwei=max_gas_price_gwei,
        scan_interval_ms=scan_interval_ms,
        gas_buffer_percent=data.get("gas_buffer_percent", DEFAULT_GAS_BUFFER_PERCENT),
        profit_ceiling_pct=Decimal(str(data.get("profit_ceiling_pct", PROFIT_SANITY_CEILING_PCT))),
    )

    execution_data = data.get("execution", {})
    execution = ExecutionParams(
        buy_slippage_bps=execution_data.get("buy_slippage_bps", BUY_SLIPPAGE_BPS),
        sell_slippage_bps=execution_data.get("sell_slippage_bps", SELL_SLIPPAGE_BPS),
        settlement_margin_bps=execution_data.get("settlement_margin_bps", SETTLEMENT_MARGIN_BPS),
        settlement_delay_seconds=execution_data.get("settlement_delay_seconds", SETTLEMENT_DELAY_SECONDS),
        high_profit_warning_pct=Decimal(
            str(execution_data.get("high_profit_warning_pct", HIGH_PROFIT_WARNING_PCT))
        ),
    )

    return StrategyConfig(scanner=scanner, execution=execution)
