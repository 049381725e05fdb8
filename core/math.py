"""
core/math.py - Mathematical utilities.

CRITICAL: No float allowed in quoting/price/PnL.
All monetary values use int (raw units / wei) or Decimal.

sqrtPriceX96 NOTES:
  A V3 pool stores sqrt(price) * 2**96 where price is token1 per token0
  in RAW units. Raw-unit amounts therefore convert without any decimal
  adjustment; decimals only matter when expressing a human price
  (see normalize_price).
"""

from decimal import Decimal, ROUND_DOWN

from core.constants import (
    MAX_TOKEN_DECIMALS,
    Q96,
    Q192,
    WEI_PER_ETH,
    WEI_PER_GWEI,
    ErrorCode,
)
from core.exceptions import ValidationError


# =============================================================================
# BASIS POINTS
# =============================================================================

def apply_slippage(amount: int, slippage_bps: int) -> int:
    """
    Minimum acceptable output for a quoted amount.

    Example: apply_slippage(1000, 200) -> 980
    """
    if slippage_bps < 0 or slippage_bps > 10_000:
        raise ValidationError(
            ErrorCode.INVALID_AMOUNT,
            f"Invalid slippage: {slippage_bps} bps",
        )
    return amount - (amount * slippage_bps) // 10_000


def apply_buffer_percent(amount: int, buffer_percent: int) -> int:
    """Add a percentage buffer: apply_buffer_percent(100, 20) -> 120."""
    return (amount * (100 + buffer_percent)) // 100


def percent_of(part: int, whole: int) -> Decimal:
    """part / whole as a percentage (Decimal). Zero when whole is zero."""
    if whole == 0:
        return Decimal("0")
    return Decimal(part) * 100 / Decimal(whole)


# =============================================================================
# WEI CONVERSIONS
# =============================================================================

def wei_to_eth(wei: int) -> Decimal:
    """Convert wei to ETH as Decimal."""
    return Decimal(wei) / Decimal(WEI_PER_ETH)


def gwei_to_wei(gwei: Decimal | str | int) -> int:
    """Convert gwei to wei as int."""
    return int(Decimal(gwei) * WEI_PER_GWEI)


def human_to_wei(amount: Decimal | str, decimals: int) -> int:
    """
    Convert human-readable amount to raw units.

    Example: human_to_wei('1.0', 6) -> 1000000  # 1 USDC
    """
    if decimals < 0 or decimals > MAX_TOKEN_DECIMALS:
        raise ValidationError(ErrorCode.INVALID_AMOUNT, f"Invalid decimals: {decimals}")
    return int(Decimal(amount) * Decimal(10**decimals))


def format_units(amount: int, decimals: int, places: int = 6) -> str:
    """
    Format a raw amount for logs, truncated to `places` decimals.

    Example: format_units(1234567, 6, places=2) -> '1.23'
    """
    value = Decimal(amount) / Decimal(10**decimals)
    quantizer = Decimal(10) ** (-places) if places > 0 else Decimal("1")
    return f"{value.quantize(quantizer, rounding=ROUND_DOWN):.{places}f}"


# =============================================================================
# PRICE CALCULATIONS
# =============================================================================

def normalize_price(
    amount_in: int,
    amount_out: int,
    decimals_in: int,
    decimals_out: int,
) -> Decimal:
    """
    Calculate normalized price (amount_out / amount_in adjusted for decimals).

    Used for comparison and display only, not for PnL calculation.
    """
    if amount_in == 0:
        return Decimal("0")

    normalized_in = Decimal(amount_in) / Decimal(10**decimals_in)
    normalized_out = Decimal(amount_out) / Decimal(10**decimals_out)

    return normalized_out / normalized_in


def amount_out_from_sqrt_price(
    amount_in: int,
    sqrt_price_x96: int,
    zero_for_one: bool,
) -> int:
    """
    Spot-price output for a raw input amount, floored to an integer.

    zero_for_one: token_in is the pool's token0 (lower address), so the
    output is amount_in * price; otherwise amount_in / price.

    Exact integer math: linear in amount_in up to one unit of rounding.
    Returns 0 for non-positive input or a zero price.
    """
    if amount_in <= 0 or sqrt_price_x96 <= 0:
        return 0

    price_x192 = sqrt_price_x96 * sqrt_price_x96
    if zero_for_one:
        return (amount_in * price_x192) // Q192
    return (amount_in * Q192) // price_x192


def estimate_price_impact(
    amount_in: int,
    sqrt_price_x96: int,
    liquidity: int,
    zero_for_one: bool,
) -> Decimal:
    """
    Price impact (fraction) of a swap that stays inside the current tick range.

    Uses the V3 single-range swap step:
      token0 in: sqrtP' = L * sqrtP / (L + amount_in * sqrtP / 2**96)
      token1 in: sqrtP' = sqrtP + amount_in * 2**96 / L
    Tick crossings are ignored, so the estimate is a lower bound for large sizes.
    """
    if amount_in <= 0 or sqrt_price_x96 <= 0:
        return Decimal("0")
    if liquidity <= 0:
        return Decimal("1")

    if zero_for_one:
        numerator = liquidity * Q96 * sqrt_price_x96
        denominator = liquidity * Q96 + amount_in * sqrt_price_x96
        next_sqrt = numerator // denominator
    else:
        next_sqrt = sqrt_price_x96 + (amount_in * Q96) // liquidity

    ratio = (Decimal(next_sqrt) / Decimal(sqrt_price_x96)) ** 2
    return abs(Decimal("1") - ratio)
