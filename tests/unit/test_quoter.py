"""
tests/unit/test_quoter.py - PriceQuoter tests.

The chain client is mocked at the pool-read level (getPool / slot0 /
liquidity); outputs are checked against the raw sqrtPriceX96 formula.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.constants import Q96
from core.exceptions import RPCError
from core.math import amount_out_from_sqrt_price
from dex.quoter import PriceQuoter

AMOUNT_IN = 10**17
# ~2500 USDC per WETH in raw units (WETH is token0 by address)
SQRT_LOW = Q96 // 20_000
SQRT_HIGH = Q96 // 19_900


def pool_address(fee: int) -> str:
    return "0x" + f"{fee:x}".zfill(40)


def make_client(prices: dict[int, int], liquidity: int = 10**20) -> MagicMock:
    """Client whose venue deploys one pool per fee tier in `prices`."""
    client = MagicMock()
    by_pool = {pool_address(fee): sqrt for fee, sqrt in prices.items()}

    async def get_pool(factory, token_a, token_b, fee):
        return pool_address(fee) if fee in prices else None

    async def get_slot0(pool):
        return by_pool[pool]

    client.get_pool = AsyncMock(side_effect=get_pool)
    client.get_slot0 = AsyncMock(side_effect=get_slot0)
    client.get_liquidity = AsyncMock(return_value=liquidity)
    return client


class TestTierSelection:
    """Best output across fee tiers."""

    @pytest.mark.asyncio
    async def test_highest_output_tier_wins(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({500: SQRT_LOW, 3000: SQRT_HIGH}))

        quote = await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert quote is not None
        assert quote.fee_tier == 3000
        assert quote.amount_out == amount_out_from_sqrt_price(AMOUNT_IN, SQRT_HIGH, zero_for_one=True)
        assert quote.pool_address == pool_address(3000)
        assert quote.dex == "UNISWAP_V3"
        assert quote.route == ["WETH", "USDC"]

    @pytest.mark.asyncio
    async def test_tie_keeps_first_tier(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({500: SQRT_LOW, 3000: SQRT_LOW}))

        quote = await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert quote.fee_tier == 500

    @pytest.mark.asyncio
    async def test_reverse_direction(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({500: SQRT_LOW}))

        quote = await quoter.quote(uni_venue, usdc, weth, 250_000_000)

        assert quote.amount_out == amount_out_from_sqrt_price(250_000_000, SQRT_LOW, zero_for_one=False)
        assert quote.amount_out > 0

    @pytest.mark.asyncio
    async def test_protocol_tiers_probed(self, pancake_venue, weth, usdc):
        client = make_client({2500: SQRT_LOW})
        quoter = PriceQuoter(client)

        quote = await quoter.quote(pancake_venue, weth, usdc, AMOUNT_IN)

        assert quote.fee_tier == 2500
        probed = [c.args[3] for c in client.get_pool.await_args_list]
        assert probed == [100, 500, 2500, 10000]

    @pytest.mark.asyncio
    async def test_failing_tier_skipped(self, uni_venue, weth, usdc):
        client = make_client({500: SQRT_HIGH, 3000: SQRT_LOW})
        slot0 = client.get_slot0.side_effect

        async def flaky_slot0(pool):
            if pool == pool_address(500):
                raise RPCError("execution reverted")
            return await slot0(pool)

        client.get_slot0 = AsyncMock(side_effect=flaky_slot0)
        quote = await PriceQuoter(client).quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert quote.fee_tier == 3000

    @pytest.mark.asyncio
    async def test_unexpected_tier_error_skipped(self, uni_venue, weth, usdc):
        client = make_client({500: SQRT_HIGH, 3000: SQRT_LOW})
        slot0 = client.get_slot0.side_effect

        async def broken_slot0(pool):
            if pool == pool_address(500):
                raise TypeError("argument of type 'NoneType' is not iterable")
            return await slot0(pool)

        client.get_slot0 = AsyncMock(side_effect=broken_slot0)
        quote = await PriceQuoter(client).quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert quote is not None
        assert quote.fee_tier == 3000
        assert quote.amount_out == amount_out_from_sqrt_price(AMOUNT_IN, SQRT_LOW, zero_for_one=True)


class TestNoQuote:
    """Cases that yield None instead of raising."""

    @pytest.mark.asyncio
    async def test_no_pools(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({}))
        assert await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN) is None

    @pytest.mark.asyncio
    async def test_zero_liquidity(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({500: SQRT_LOW}, liquidity=0))
        assert await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN) is None

    @pytest.mark.asyncio
    async def test_same_token(self, uni_venue, weth):
        client = make_client({500: SQRT_LOW})
        assert await PriceQuoter(client).quote(uni_venue, weth, weth, AMOUNT_IN) is None
        client.get_pool.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, uni_venue, weth, usdc):
        quoter = PriceQuoter(make_client({500: SQRT_LOW}))
        assert await quoter.quote(uni_venue, weth, usdc, 0) is None
        assert await quoter.quote(uni_venue, weth, usdc, -5) is None

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_none(self, uni_venue, weth, usdc):
        client = make_client({500: SQRT_LOW})
        client.get_pool = AsyncMock(side_effect=RuntimeError("boom"))
        assert await PriceQuoter(client).quote(uni_venue, weth, usdc, AMOUNT_IN) is None


class TestMemoization:
    """Pool lookups and quote cache."""

    @pytest.mark.asyncio
    async def test_quote_cached(self, uni_venue, weth, usdc):
        client = make_client({500: SQRT_LOW})
        quoter = PriceQuoter(client)

        first = await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)
        second = await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert second is first
        assert client.get_slot0.await_count == 1

    @pytest.mark.asyncio
    async def test_pool_address_memoized(self, uni_venue, weth, usdc):
        client = make_client({500: SQRT_LOW})
        quoter = PriceQuoter(client)

        await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)
        lookups = client.get_pool.await_count
        quoter.clear_cache()
        await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert client.get_pool.await_count == lookups
        assert client.get_slot0.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_pool_not_retried(self, uni_venue, weth, usdc):
        client = make_client({})
        quoter = PriceQuoter(client)

        await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)
        await quoter.quote(uni_venue, weth, usdc, AMOUNT_IN)

        assert client.get_pool.await_count == 4


class TestBestQuote:
    """Across venues."""

    @pytest.mark.asyncio
    async def test_best_across_venues(self, uni_venue, pancake_venue, weth, usdc):
        client = make_client({500: SQRT_LOW})

        async def get_pool(factory, token_a, token_b, fee):
            if fee != 500:
                return None
            return pool_address(500) if factory == uni_venue.factory else pool_address(501)

        prices = {pool_address(500): SQRT_LOW, pool_address(501): SQRT_HIGH}
        client.get_pool = AsyncMock(side_effect=get_pool)
        client.get_slot0 = AsyncMock(side_effect=lambda pool: prices[pool])

        best = await PriceQuoter(client).best_quote([uni_venue, pancake_venue], weth, usdc, AMOUNT_IN)

        assert best.dex == "PANCAKESWAP_V3"
