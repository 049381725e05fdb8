"""
execution/executor.py - Two-leg trade execution.

Flow for one opportunity (A -> B on buy venue, B -> A on sell venue):

    VALIDATING           balance of A covers the quoted input
    BUY_PENDING          approve A for the buy router, swap A -> B
    AWAITING_SETTLEMENT  received = balance(B) after - before, minus 1%
    SELL_PENDING         approve B for the sell router, swap B -> A
    COMPLETE             profit = estimated net profit - actual gas

Any failure moves the machine to FAILED and returns a failed TradeResult.
A failed sell leg after a confirmed buy leaves token B in the wallet; no
unwind transaction is attempted.

Reported profit is the scanner's estimate minus the gas actually paid, not
the realized proceeds of the sell leg.
"""

import asyncio
from dataclasses import dataclass
from typing import Mapping, Optional

from chains.abi import encode_approve
from chains.client import ChainClient
from core.constants import (
    APPROVE_GAS_LIMIT,
    MAX_UINT256,
    SWAP_DEADLINE_SECONDS,
    SWAP_GAS_LIMIT,
    ErrorCode,
    TradeSide,
)
from core.exceptions import BotError, ExecutionError, ValidationError
from core.logging import get_logger, log_trade
from core.math import apply_slippage, format_units, wei_to_eth
from core.models import ArbitrageOpportunity, Token, TradeResult, Venue
from core.time import deadline_from_now
from dex.adapters import SwapParams, build_swap_call, get_adapter
from execution.context import ExecutionContext
from execution.state_machine import TradeState, TradeStateMachine
from strategy.config import ExecutionParams

logger = get_logger(__name__)


@dataclass
class LegResult:
    """Confirmed swap leg."""
    tx_hash: str
    gas_used: int
    gas_cost: int
    balance_before: int
    fee_tier: int


class TradeExecutor:
    """
    Executes one ArbitrageOpportunity at a time.

    The caller guarantees there is never more than one execute() in flight;
    approvals and counters in the context rely on that.
    """

    def __init__(
        self,
        client: ChainClient,
        venues: Mapping[str, Venue],
        context: Optional[ExecutionContext] = None,
        params: Optional[ExecutionParams] = None,
    ):
        self.client = client
        self.venues = dict(venues)
        self.context = context or ExecutionContext()
        self.params = params or ExecutionParams()

    async def execute(self, opportunity: ArbitrageOpportunity) -> TradeResult:
        """Run both legs. Always returns a TradeResult."""
        machine = TradeStateMachine(trade_id=opportunity.opportunity_id)
        buy_tx_hash: Optional[str] = None

        logger.info(
            f"Executing {opportunity.pair}: buy@{opportunity.buy_dex} sell@{opportunity.sell_dex}",
            extra={"context": {"opportunity_id": opportunity.opportunity_id}},
        )

        try:
            machine.transition_to(TradeState.VALIDATING)
            buy_venue = self._venue(opportunity.buy_dex)
            sell_venue = self._venue(opportunity.sell_dex)
            await self.validate(opportunity)

            machine.transition_to(TradeState.BUY_PENDING)
            try:
                buy = await self.execute_leg(
                    TradeSide.BUY,
                    buy_venue,
                    opportunity.token_a,
                    opportunity.token_b,
                    opportunity.buy_quote.amount_in,
                    opportunity.buy_quote.amount_out,
                    self.params.buy_slippage_bps,
                )
            except BotError as e:
                raise ExecutionError(e.code, f"Buy trade failed: {e.message}", e.details) from e
            buy_tx_hash = buy.tx_hash

            machine.transition_to(TradeState.AWAITING_SETTLEMENT, metadata={"tx_hash": buy.tx_hash})
            await asyncio.sleep(self.params.settlement_delay_seconds)
            sell_amount = await self.measure_received(opportunity.token_b, buy.balance_before)

            machine.transition_to(TradeState.SELL_PENDING)
            try:
                sell = await self.execute_leg(
                    TradeSide.SELL,
                    sell_venue,
                    opportunity.token_b,
                    opportunity.token_a,
                    sell_amount,
                    opportunity.sell_quote.amount_out,
                    self.params.sell_slippage_bps,
                )
            except BotError as e:
                logger.warning(
                    f"Sell leg failed after confirmed buy; holding "
                    f"{format_units(sell_amount, opportunity.token_b.decimals)} {opportunity.token_b.symbol}",
                    extra={"context": {"buy_tx_hash": buy_tx_hash, "token": opportunity.token_b.address}},
                )
                raise ExecutionError(e.code, f"Sell trade failed: {e.message}", e.details) from e

        except BotError as e:
            machine.fail(e.message)
            result = TradeResult(
                success=False,
                error=e.message,
                error_code=e.code.value,
                buy_tx_hash=buy_tx_hash,
                state=machine.state.value,
                opportunity_id=opportunity.opportunity_id,
            )
            log_trade(logger, result)
            return result
        except Exception as e:
            machine.fail(str(e))
            logger.error(f"Unexpected execution error: {e}", exc_info=True)
            return TradeResult(
                success=False,
                error=str(e) or type(e).__name__,
                error_code=ErrorCode.UNKNOWN.value,
                buy_tx_hash=buy_tx_hash,
                state=machine.state.value,
                opportunity_id=opportunity.opportunity_id,
            )

        gas_cost = buy.gas_cost + sell.gas_cost
        profit = opportunity.net_profit - gas_cost
        machine.transition_to(TradeState.COMPLETE)
        self.context.record_success(profit)

        result = TradeResult(
            success=True,
            tx_hash=sell.tx_hash,
            profit=profit,
            gas_used=gas_cost,
            buy_tx_hash=buy.tx_hash,
            state=machine.state.value,
            opportunity_id=opportunity.opportunity_id,
        )
        log_trade(
            logger,
            result,
            expected_profit_eth=str(wei_to_eth(opportunity.net_profit)),
            gas_cost_eth=str(wei_to_eth(gas_cost)),
            total_trades=self.context.trade_count,
            total_profit_eth=str(wei_to_eth(self.context.total_profit)),
        )
        return result

    # =========================================================================
    # STEPS
    # =========================================================================

    async def validate(self, opportunity: ArbitrageOpportunity) -> None:
        """
        Re-check the input balance; warn on implausible profit.

        Raises:
            ValidationError: INSUFFICIENT_BALANCE
        """
        token = opportunity.token_a
        required = opportunity.buy_quote.amount_in
        balance = await self.client.balance_of(token.address)

        if balance < required:
            raise ValidationError(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"Insufficient {token.symbol}. Have: {format_units(balance, token.decimals)}, "
                f"Need: {format_units(required, token.decimals)}",
                {"balance": str(balance), "required": str(required)},
            )

        if opportunity.profit_percent > self.params.high_profit_warning_pct:
            opportunity.flagged = True
            logger.warning(
                f"Unusually high profit: {opportunity.profit_percent:.2f}%. Proceeding with caution.",
                extra={"context": {"opportunity_id": opportunity.opportunity_id}},
            )

    async def ensure_approval(self, token: str, spender: str, amount: int) -> bool:
        """
        Make sure `spender` may pull `amount` of `token`.

        Returns:
            True if an approval transaction was sent

        Raises:
            ExecutionError: EXEC_APPROVAL_FAILED
        """
        if self.context.has_approval(token, spender):
            return False

        allowance = await self.client.allowance(token, self.client.address, spender)
        if allowance >= amount:
            # Only an unlimited allowance is remembered; a finite one can run out
            if allowance == MAX_UINT256:
                self.context.record_approval(token, spender)
            return False

        logger.info(f"Approving {token} for {spender}")
        try:
            pending = await self.client.send_transaction(
                token, encode_approve(spender, MAX_UINT256), APPROVE_GAS_LIMIT
            )
        except BotError as e:
            raise ExecutionError(
                ErrorCode.EXEC_APPROVAL_FAILED,
                f"Approval failed: {e.message}",
                {"token": token, "spender": spender},
            ) from e

        receipt = await self.client.wait_for_receipt(pending.tx_hash)
        if receipt is None or not receipt.succeeded:
            raise ExecutionError(
                ErrorCode.EXEC_APPROVAL_FAILED,
                f"Approval not confirmed: {pending.tx_hash}",
                {"token": token, "spender": spender, "tx_hash": pending.tx_hash},
            )
        logger.info(f"Approval confirmed: {pending.tx_hash}")

        self.context.record_approval(token, spender)
        return True

    async def find_best_fee_tier(self, venue: Venue, token_in: Token, token_out: Token) -> int:
        """First tier with a deployed pool, else the venue protocol's default."""
        adapter = get_adapter(venue.protocol)
        for fee in adapter.fee_tiers:
            try:
                pool = await self.client.get_pool(venue.factory, token_in.address, token_out.address, fee)
            except BotError as e:
                logger.debug(f"getPool failed for tier {fee} on {venue.key}: {e}")
                continue
            if pool is not None:
                return fee
        return adapter.default_fee_tier

    async def execute_leg(
        self,
        side: TradeSide,
        venue: Venue,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        expected_out: int,
        slippage_bps: int,
    ) -> LegResult:
        """
        Approve, swap and confirm one leg.

        Raises:
            ExecutionError: EXEC_NO_RECEIPT / EXEC_REVERT (or approval/submit codes)
        """
        balance_before = await self.client.balance_of(token_out.address)
        await self.ensure_approval(token_in.address, venue.router, amount_in)

        min_out = apply_slippage(expected_out, slippage_bps)
        fee = await self.find_best_fee_tier(venue, token_in, token_out)

        logger.info(
            f"{side.value} on {venue.name}: "
            f"{format_units(amount_in, token_in.decimals)} {token_in.symbol} -> "
            f"min {format_units(min_out, token_out.decimals)} {token_out.symbol}",
            extra={"context": {"venue": venue.key, "fee_tier": fee}},
        )

        data = build_swap_call(
            venue,
            SwapParams(
                token_in=token_in.address,
                token_out=token_out.address,
                fee=fee,
                recipient=self.client.address,
                amount_in=amount_in,
                amount_out_minimum=min_out,
                deadline=deadline_from_now(SWAP_DEADLINE_SECONDS),
            ),
        )
        pending = await self.client.send_transaction(venue.router, data, SWAP_GAS_LIMIT)
        receipt = await self.client.wait_for_receipt(pending.tx_hash)

        if receipt is None:
            raise ExecutionError(
                ErrorCode.EXEC_NO_RECEIPT,
                f"No receipt for {pending.tx_hash}",
                {"tx_hash": pending.tx_hash},
            )
        if not receipt.succeeded:
            raise ExecutionError(
                ErrorCode.EXEC_REVERT,
                "Transaction failed",
                {"tx_hash": pending.tx_hash, "gas_used": receipt.gas_used},
            )

        logger.info(
            f"{side.value} confirmed: {receipt.tx_hash or pending.tx_hash} "
            f"gas={wei_to_eth(receipt.gas_cost)} ETH"
        )

        return LegResult(
            tx_hash=receipt.tx_hash or pending.tx_hash,
            gas_used=receipt.gas_used,
            gas_cost=receipt.gas_cost,
            balance_before=balance_before,
            fee_tier=fee,
        )

    async def measure_received(self, token: Token, balance_before: int) -> int:
        """
        Margin-adjusted amount actually received from the buy leg.

        Raises:
            ExecutionError: EXEC_NO_TOKENS_RECEIVED
        """
        balance_after = await self.client.balance_of(token.address)
        received = balance_after - balance_before
        if received <= 0:
            raise ExecutionError(
                ErrorCode.EXEC_NO_TOKENS_RECEIVED,
                "No tokens received from buy trade",
                {"balance_before": str(balance_before), "balance_after": str(balance_after)},
            )

        logger.info(f"Buy settled: received {format_units(received, token.decimals)} {token.symbol}")
        return received * (10_000 - self.params.settlement_margin_bps) // 10_000

    def _venue(self, key: str) -> Venue:
        venue = self.venues.get(key)
        if venue is None:
            raise ValidationError(ErrorCode.UNKNOWN_VENUE, f"Unknown venue: {key}")
        return venue
