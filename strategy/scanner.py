"""
strategy/scanner.py - Cross-venue opportunity scanner.

Per cycle, for each trading pair (A, B):
1. Quote A->B for the trade size on every venue (concurrently)
2. For every ordered venue pair (i, j), i != j: quote B->A on venue j with
   exactly the output of venue i as input
3. profit = reverse_out - amount_in, priced in the base asset
4. net = profit - gas(both legs) at the cycle's gas price
5. Emit if net > 0, threshold <= net% < ceiling, both outputs > 0

A failing pair or combination is logged and skipped. The loop ends only
on stop().
"""

import asyncio
import itertools
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from chains.client import ChainClient
from core.exceptions import BotError
from core.logging import get_logger, log_opportunity
from core.math import apply_buffer_percent, gwei_to_wei, human_to_wei, percent_of
from core.models import ArbitrageOpportunity, PriceQuote, Token, Venue
from core.time import now_ms
from dex.quoter import PriceQuoter
from strategy.config import ScannerConfig, TradingPair

logger = get_logger(__name__)

OpportunityHandler = Callable[[ArbitrageOpportunity], Awaitable[None]]


@dataclass
class GasPrice:
    """Gas price used for one cycle."""
    wei: int
    live: bool

    def cost(self, gas_units: int, buffer_percent: int) -> int:
        """Cost in wei. The buffer only applies to a live price."""
        cost = gas_units * self.wei
        if self.live:
            return apply_buffer_percent(cost, buffer_percent)
        return cost


@dataclass
class ScanStats:
    cycles: int = 0
    opportunities_found: int = 0
    pair_failures: int = 0
    last_cycle_ms: int = 0


class OpportunityScanner:
    """
    Polling scanner producing ArbitrageOpportunity records.

    Usage:
        scanner = OpportunityScanner(quoter, client, config)
        opportunities = await scanner.scan_cycle()
        # or
        await scanner.run(coordinator.offer)
    """

    def __init__(
        self,
        quoter: PriceQuoter,
        client: ChainClient,
        config: ScannerConfig,
    ):
        self.quoter = quoter
        self.client = client
        self.config = config
        self.stats = ScanStats()
        self._stop_event = asyncio.Event()

    # =========================================================================
    # LOOP
    # =========================================================================

    async def run(self, on_opportunity: OpportunityHandler) -> None:
        """Scan until stop() is called."""
        self._stop_event.clear()
        interval = self.config.scan_interval_ms / 1000

        logger.info(
            f"Scanner started: {len(self.config.pairs)} pairs, "
            f"{len(self.config.venues)} venues, every {self.config.scan_interval_ms}ms"
        )

        while not self._stop_event.is_set():
            try:
                opportunities = await self.scan_cycle()
            except Exception as e:
                logger.error(f"Scan cycle failed: {e}", exc_info=True)
                opportunities = []

            for opportunity in opportunities:
                log_opportunity(logger, opportunity)
                try:
                    await on_opportunity(opportunity)
                except Exception as e:
                    logger.error(
                        f"Opportunity handler failed: {e}",
                        extra={"context": {"opportunity_id": opportunity.opportunity_id}},
                        exc_info=True,
                    )

            self._log_status(len(opportunities))

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Scanner stopped after {self.stats.cycles} cycles")

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def _log_status(self, found: int) -> None:
        cycles = self.stats.cycles
        if cycles % 10 == 0:
            logger.debug(f"Completed {cycles} scan cycles")
        if found == 0 and cycles % self.config.status_log_every_cycles == 0:
            logger.info(
                "Still scanning, no profitable opportunities yet",
                extra={"context": {
                    "cycles": cycles,
                    "opportunities_found": self.stats.opportunities_found,
                }},
            )

    # =========================================================================
    # CYCLE
    # =========================================================================

    async def scan_cycle(self) -> list[ArbitrageOpportunity]:
        """One pass over all pairs. Never raises for a single pair."""
        self.stats.cycles += 1
        cycle = self.stats.cycles
        started_ms = now_ms()
        gas_price = await self._current_gas_price()

        opportunities: list[ArbitrageOpportunity] = []
        for pair in self.config.pairs:
            try:
                opportunities.extend(await self.scan_pair(pair, gas_price, cycle))
            except Exception as e:
                self.stats.pair_failures += 1
                logger.warning(
                    f"Scan failed for {pair.symbol}: {e}",
                    extra={"context": {"pair": pair.symbol, "cycle": cycle}},
                )

        self.stats.opportunities_found += len(opportunities)
        self.stats.last_cycle_ms = now_ms() - started_ms
        return opportunities

    async def scan_pair(
        self,
        pair: TradingPair,
        gas_price: GasPrice,
        cycle: int = 0,
    ) -> list[ArbitrageOpportunity]:
        token_a, token_b = pair.token_a, pair.token_b
        amount_in = human_to_wei(self.config.trade_amount, token_a.decimals)

        forward = await asyncio.gather(
            *(self.quoter.quote(v, token_a, token_b, amount_in) for v in self.config.venues)
        )
        quotes = [q for q in forward if q is not None and q.amount_out > 0]
        if len(quotes) < 2:
            logger.debug(f"{pair.symbol}: only {len(quotes)} venue(s) quoted, skipping")
            return []

        amount_in_base = await self._to_base(amount_in, token_a)
        if not amount_in_base:
            logger.debug(f"{pair.symbol}: cannot price trade size in {self.config.base_token.symbol}")
            return []

        combos = [
            (quotes[i], quotes[j].dex)
            for i, j in itertools.permutations(range(len(quotes)), 2)
        ]
        results = await asyncio.gather(
            *(
                self._evaluate_combination(pair, buy, sell_dex, amount_in, amount_in_base, gas_price, cycle)
                for buy, sell_dex in combos
            )
        )
        return [r for r in results if r is not None]

    async def _evaluate_combination(
        self,
        pair: TradingPair,
        buy_quote: PriceQuote,
        sell_dex: str,
        amount_in: int,
        amount_in_base: int,
        gas_price: GasPrice,
        cycle: int,
    ) -> Optional[ArbitrageOpportunity]:
        try:
            return await self._evaluate(pair, buy_quote, sell_dex, amount_in, amount_in_base, gas_price, cycle)
        except Exception as e:
            logger.warning(
                f"{pair.symbol} {buy_quote.dex}->{sell_dex} failed: {e}",
                extra={"context": {"pair": pair.symbol, "cycle": cycle}},
            )
            return None

    async def _evaluate(
        self,
        pair: TradingPair,
        buy_quote: PriceQuote,
        sell_dex: str,
        amount_in: int,
        amount_in_base: int,
        gas_price: GasPrice,
        cycle: int,
    ) -> Optional[ArbitrageOpportunity]:
        token_a, token_b = pair.token_a, pair.token_b
        sell_venue = self._venue(sell_dex)

        sell_quote = await self.quoter.quote(sell_venue, token_b, token_a, buy_quote.amount_out)
        if sell_quote is None or sell_quote.amount_out <= 0:
            return None

        profit_amount = max(0, sell_quote.amount_out - amount_in)
        if profit_amount == 0:
            return None

        profit_base = await self._to_base(profit_amount, token_a)
        if not profit_base:
            logger.debug(f"{pair.symbol}: profit conversion failed, discarding")
            return None

        gas_cost = gas_price.cost(
            buy_quote.gas_estimate + sell_quote.gas_estimate,
            self.config.gas_buffer_percent,
        )
        net_profit = profit_base - gas_cost
        if net_profit <= 0:
            return None

        profit_percent = percent_of(net_profit, amount_in_base)
        if profit_percent < self.config.min_profit_percent:
            return None
        if profit_percent >= self.config.profit_ceiling_pct:
            logger.warning(
                f"Rejecting implausible {pair.symbol} spread: {profit_percent:.2f}%",
                extra={"context": {"buy_dex": buy_quote.dex, "sell_dex": sell_dex}},
            )
            return None

        sell_price = Decimal("1") / sell_quote.price if sell_quote.price > 0 else Decimal("0")

        return ArbitrageOpportunity(
            token_a=token_a,
            token_b=token_b,
            buy_dex=buy_quote.dex,
            sell_dex=sell_dex,
            buy_price=buy_quote.price,
            sell_price=sell_price,
            profit_percent=profit_percent,
            profit_amount=profit_amount,
            buy_quote=buy_quote,
            sell_quote=sell_quote,
            estimated_gas_cost=gas_cost,
            net_profit=net_profit,
            opportunity_id=f"opp_{cycle}_{token_a.symbol}_{token_b.symbol}_{buy_quote.dex}_{sell_dex}",
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _venue(self, key: str) -> Venue:
        for venue in self.config.venues:
            if venue.key == key:
                return venue
        raise KeyError(f"Unknown venue: {key}")

    async def _current_gas_price(self) -> GasPrice:
        """Live gas price, or the configured maximum if the lookup fails."""
        try:
            return GasPrice(wei=await self.client.get_gas_price(), live=True)
        except BotError as e:
            logger.warning(f"Gas price lookup failed, using configured max: {e}")
            return GasPrice(wei=gwei_to_wei(self.config.max_gas_price_gwei), live=False)

    async def _to_base(self, amount: int, token: Token) -> Optional[int]:
        """Value of `amount` of `token` in base-asset raw units."""
        if token == self.config.base_token:
            return amount

        quote = await self.quoter.quote(self.config.conversion_venue, token, self.config.base_token, amount)
        if quote is None:
            return None
        return quote.amount_out
