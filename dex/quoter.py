"""
dex/quoter.py - Per-venue price quoting from V3 pool state.

Quotes are derived from slot0.sqrtPriceX96 instead of a quoter contract
simulation: two reads per fee tier (slot0 + liquidity) and exact integer
math. Spot price ignores the swap curve, so outputs are slightly optimistic
for sizes that move the price; price_impact reports the single-range
estimate of that gap.

Negative pool lookups (no pool / zero liquidity) are remembered for the
process lifetime. Successful quotes are cached for a few seconds.
"""

import asyncio
from typing import Iterable, Optional

from chains.client import ChainClient
from core.cache import TTLCache
from core.constants import DEFAULT_QUOTE_CACHE_TTL_MS, DEFAULT_SWAP_GAS_ESTIMATE
from core.logging import get_logger
from core.math import (
    amount_out_from_sqrt_price,
    estimate_price_impact,
    normalize_price,
)
from core.models import PriceQuote, Token, Venue
from dex.adapters import get_adapter

logger = get_logger(__name__)

# (venue key, token_in addr, token_out addr, fee)
PoolKey = tuple[str, str, str, int]
# (venue key, token_in symbol, token_out symbol, amount_in)
QuoteKey = tuple[str, str, str, int]


class PriceQuoter:
    """
    Best-tier quote for one venue.

    Usage:
        quoter = PriceQuoter(client)
        quote = await quoter.quote(venue, weth, usdc, 10**17)
        if quote is None:
            ...  # no usable pool on this venue
    """

    def __init__(
        self,
        client: ChainClient,
        cache_ttl_ms: int = DEFAULT_QUOTE_CACHE_TTL_MS,
        gas_estimate: int = DEFAULT_SWAP_GAS_ESTIMATE,
    ):
        self.client = client
        self.gas_estimate = gas_estimate
        self._cache: TTLCache[QuoteKey, PriceQuote] = TTLCache(cache_ttl_ms)
        self._missing_pools: set[PoolKey] = set()
        self._pool_addresses: dict[PoolKey, str] = {}

    @staticmethod
    def _pool_key(venue: Venue, token_in: Token, token_out: Token, fee: int) -> PoolKey:
        return (venue.key, token_in.address.lower(), token_out.address.lower(), fee)

    async def quote(
        self,
        venue: Venue,
        token_in: Token,
        token_out: Token,
        amount_in: int,
    ) -> Optional[PriceQuote]:
        """
        Best output across the venue's fee tiers.

        Returns:
            PriceQuote, or None if no tier yields a non-zero output.
            Never raises.
        """
        if amount_in <= 0 or token_in == token_out:
            return None

        cache_key = (venue.key, token_in.symbol, token_out.symbol, amount_in)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            best = await self._best_tier_quote(venue, token_in, token_out, amount_in)
        except Exception as e:
            logger.error(
                f"Quote failed on {venue.key} {token_in.symbol}->{token_out.symbol}: {e}",
                extra={"context": {"venue": venue.key, "amount_in": amount_in}},
            )
            return None

        if best is None:
            logger.debug(f"No usable pool on {venue.key} for {token_in.symbol}/{token_out.symbol}")
            return None

        self._cache.set(cache_key, best)
        return best

    async def best_quote(
        self,
        venues: Iterable[Venue],
        token_in: Token,
        token_out: Token,
        amount_in: int,
    ) -> Optional[PriceQuote]:
        """Highest-output quote across venues (None if none quote)."""
        venue_list = list(venues)
        quotes = await asyncio.gather(
            *(self.quote(v, token_in, token_out, amount_in) for v in venue_list)
        )
        best: Optional[PriceQuote] = None
        for q in quotes:
            if q is not None and (best is None or q.amount_out > best.amount_out):
                best = q
        return best

    async def _best_tier_quote(
        self,
        venue: Venue,
        token_in: Token,
        token_out: Token,
        amount_in: int,
    ) -> Optional[PriceQuote]:
        best: Optional[PriceQuote] = None

        for fee in get_adapter(venue.protocol).fee_tiers:
            pool_key = self._pool_key(venue, token_in, token_out, fee)
            if pool_key in self._missing_pools:
                continue

            try:
                quote = await self._quote_tier(venue, token_in, token_out, amount_in, fee, pool_key)
            except Exception as e:  # one bad tier never hides the others
                logger.debug(
                    f"Tier {fee} unavailable on {venue.key}: {e}",
                    extra={"context": {"venue": venue.key, "fee": fee, "error_type": type(e).__name__}},
                )
                continue

            # Strictly greater: first-seen maximum wins ties
            if quote is not None and (best is None or quote.amount_out > best.amount_out):
                best = quote

        return best

    async def _quote_tier(
        self,
        venue: Venue,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        fee: int,
        pool_key: PoolKey,
    ) -> Optional[PriceQuote]:
        pool = self._pool_addresses.get(pool_key)
        if pool is None:
            pool = await self.client.get_pool(venue.factory, token_in.address, token_out.address, fee)
            if pool is None:
                self._missing_pools.add(pool_key)
                return None
            self._pool_addresses[pool_key] = pool

        sqrt_price_x96, liquidity = await asyncio.gather(
            self.client.get_slot0(pool),
            self.client.get_liquidity(pool),
        )
        if liquidity == 0 or sqrt_price_x96 == 0:
            self._missing_pools.add(pool_key)
            return None

        zero_for_one = token_in.sorts_before(token_out)
        amount_out = amount_out_from_sqrt_price(amount_in, sqrt_price_x96, zero_for_one)
        if amount_out == 0:
            return None

        return PriceQuote(
            dex=venue.key,
            amount_in=amount_in,
            amount_out=amount_out,
            price=normalize_price(amount_in, amount_out, token_in.decimals, token_out.decimals),
            price_impact=estimate_price_impact(amount_in, sqrt_price_x96, liquidity, zero_for_one),
            route=[token_in.symbol, token_out.symbol],
            gas_estimate=self.gas_estimate,
            fee_tier=fee,
            pool_address=pool,
        )

    def clear_cache(self) -> None:
        """Drop cached quotes (pool memoization is kept)."""
        self._cache.clear()
