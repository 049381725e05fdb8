#!/usr/bin/env python3
"""
run_bot.py - CLI entrypoint for ZERO-BOT.

Usage:
    python run_bot.py                      # scan and execute
    python run_bot.py --scan-only          # detect and log, never trade
    python run_bot.py --once --log-level DEBUG

Startup (fatal on failure): settings + registries, gas balance >= 0.01 ETH,
base-asset balance >= trade size, approvals warmed for every
(pair token, router). Then the scanner and the executor worker run until
SIGINT/SIGTERM; the session summary is printed on exit.
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Dict, Optional

import click

from chains.client import ChainClient
from chains.providers import RPCProvider
from config.settings import BotSettings, load_settings, load_strategy, load_tokens, load_venues
from core.constants import APPROVAL_WARMUP_MIN_TOKENS, MIN_NATIVE_BALANCE_WEI, WRAPPED_NATIVE, ErrorCode
from core.exceptions import BotError, ConfigError
from core.logging import get_logger, set_global_context, setup_logging
from core.math import format_units, human_to_wei, wei_to_eth
from core.models import Token, Venue
from dex.quoter import PriceQuoter
from execution.context import ExecutionContext
from execution.coordinator import ArbitrageCoordinator
from execution.executor import TradeExecutor
from monitoring.monitor import BotMonitor
from strategy.config import StrategyConfig, build_strategy_config
from strategy.scanner import OpportunityScanner

logger = get_logger("zerobot")

VERSION = "0.1.0"


class ZeroBot:
    """Wires the components together and owns the process lifecycle."""

    def __init__(
        self,
        settings: BotSettings,
        strategy: StrategyConfig,
        tokens: Dict[str, Token],
        venues: Dict[str, Venue],
        client: ChainClient,
        execute: bool = True,
    ):
        self.settings = settings
        self.strategy = strategy
        self.tokens = tokens
        self.venues = venues
        self.client = client

        self.monitor = BotMonitor()
        self.context = ExecutionContext()
        self.quoter = PriceQuoter(client)
        self.scanner = OpportunityScanner(self.quoter, client, strategy.scanner)
        self.executor = TradeExecutor(client, venues, self.context, strategy.execution)
        self.coordinator = ArbitrageCoordinator(self.scanner, self.executor, self.monitor, execute=execute)

    @classmethod
    def from_settings(cls, settings: BotSettings, execute: bool = True) -> "ZeroBot":
        tokens = load_tokens(settings.chain_key)
        venues = load_venues(settings.chain_key)
        strategy = build_strategy_config(
            load_strategy(),
            tokens,
            venues,
            trade_amount=settings.trade_amount,
            min_profit_threshold=settings.min_profit_threshold,
            max_gas_price_gwei=settings.max_gas_price_gwei,
            scan_interval_ms=settings.scan_interval_ms,
            wrapped_native=WRAPPED_NATIVE.get(settings.chain_key),
        )
        provider = RPCProvider(settings.chain_id, settings.rpc_urls)
        if not provider.rpc_urls:
            raise ConfigError("No usable RPC_URL after variable expansion", code=ErrorCode.CONFIG_INVALID)
        client = ChainClient.from_private_key(provider, settings.private_key)
        return cls(settings, strategy, tokens, venues, client, execute=execute)

    @property
    def base_token(self) -> Token:
        return self.strategy.scanner.base_token

    # =========================================================================
    # STARTUP
    # =========================================================================

    async def check_balances(self) -> None:
        """
        Gas and trade-size balances.

        Raises:
            ConfigError: STARTUP_INSUFFICIENT_GAS / INSUFFICIENT_BALANCE
        """
        native = await self.client.get_native_balance()
        logger.info(f"ETH balance: {wei_to_eth(native)} ETH")
        if native < MIN_NATIVE_BALANCE_WEI:
            raise ConfigError(
                f"Insufficient ETH balance for gas. Need at least {wei_to_eth(MIN_NATIVE_BALANCE_WEI)} ETH, "
                f"have {wei_to_eth(native)} ETH",
                code=ErrorCode.STARTUP_INSUFFICIENT_GAS,
            )

        base = self.base_token
        required = human_to_wei(self.settings.trade_amount, base.decimals)
        balance = await self.client.balance_of(base.address)
        if balance < required:
            raise ConfigError(
                f"Insufficient {base.symbol} balance for trading. Need {self.settings.trade_amount} "
                f"{base.symbol}, have {format_units(balance, base.decimals)} {base.symbol}",
                code=ErrorCode.INSUFFICIENT_BALANCE,
            )

        for symbol, token in self.tokens.items():
            try:
                amount = await self.client.balance_of(token.address)
            except BotError as e:
                logger.debug(f"Balance read failed for {symbol}: {e}")
                continue
            if amount > 0:
                logger.info(f"{symbol} balance: {format_units(amount, token.decimals)}")

    async def initialize_approvals(self) -> None:
        """Approve every pair token for every router up front."""
        logger.info("Initializing token approvals")

        tokens: Dict[str, Token] = {}
        for pair in self.strategy.scanner.pairs:
            tokens[pair.token_a.symbol] = pair.token_a
            tokens[pair.token_b.symbol] = pair.token_b

        for token in tokens.values():
            minimum = APPROVAL_WARMUP_MIN_TOKENS * 10 ** token.decimals
            for venue in self.strategy.scanner.venues:
                try:
                    sent = await self.executor.ensure_approval(token.address, venue.router, minimum)
                except BotError as e:
                    logger.warning(f"Failed to approve {token.symbol} for {venue.name}: {e}")
                    continue
                state = "approved" if sent else "already approved"
                logger.info(f"{token.symbol} {state} for {venue.name}")

    # =========================================================================
    # RUN
    # =========================================================================

    async def run_once(self) -> int:
        """Single scan cycle; returns the number of opportunities."""
        try:
            opportunities = await self.scanner.scan_cycle()
        finally:
            await self.client.provider.close()
        for opportunity in opportunities:
            click.echo(
                f"{opportunity.pair} buy@{opportunity.buy_dex} sell@{opportunity.sell_dex} "
                f"net={opportunity.profit_percent:.3f}% ({wei_to_eth(opportunity.net_profit)} ETH)"
            )
        return len(opportunities)

    async def run(self) -> None:
        if self.coordinator.execute:
            await self.check_balances()
            await self.initialize_approvals()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.shutdown, sig)
            except NotImplementedError:
                signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(self.shutdown, signum))

        report_task = asyncio.create_task(self.monitor.report_loop(), name="monitor")
        try:
            await self.coordinator.run()
        finally:
            report_task.cancel()
            await asyncio.gather(report_task, return_exceptions=True)
            logger.info(
                "RPC endpoint stats",
                extra={"context": {"endpoints": self.client.provider.get_stats_summary()}},
            )
            await self.client.provider.close()

    def shutdown(self, signum: Optional[int] = None) -> None:
        logger.info("Shutting down ZERO-BOT", extra={"context": {"signal": signum}})
        self.coordinator.stop()


@click.command()
@click.option(
    "--env-file",
    "-e",
    default=None,
    type=click.Path(dir_okay=False),
    help=".env file to load (default: search from cwd)",
)
@click.option(
    "--log-level",
    "-l",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level (overrides LOG_LEVEL)",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON log format on the console",
)
@click.option(
    "--log-file",
    default=None,
    help="Write JSON logs to this file",
)
@click.option(
    "--scan-only",
    is_flag=True,
    default=False,
    help="Detect and log opportunities without trading",
)
@click.option(
    "--once",
    is_flag=True,
    default=False,
    help="Run a single scan cycle and exit",
)
def main(
    env_file: Optional[str],
    log_level: Optional[str],
    json_logs: bool,
    log_file: Optional[str],
    scan_only: bool,
    once: bool,
) -> None:
    """
    ZERO-BOT cross-venue DEX arbitrage.
    """
    try:
        settings = load_settings(env_file=env_file)
    except ConfigError as e:
        setup_logging(level=log_level or "INFO", json_output=json_logs)
        logger.error(f"Configuration error: {e}", extra={"context": e.to_dict()})
        sys.exit(1)

    error_log = str(Path(log_file).with_suffix(".errors.jsonl")) if log_file else None
    setup_logging(
        level=log_level or settings.log_level,
        json_output=json_logs,
        log_file=log_file,
        error_log_file=error_log,
    )
    set_global_context(service="zero-bot", version=VERSION, chain_id=settings.chain_id)

    try:
        bot = ZeroBot.from_settings(settings, execute=not (scan_only or once))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}", extra={"context": e.to_dict()})
        sys.exit(1)

    logger.info(
        "Starting ZERO-BOT",
        extra={
            "context": {
                "wallet": bot.client.address,
                "chain": settings.chain_key,
                "trade_amount": str(settings.trade_amount),
                "min_profit_pct": str(settings.min_profit_threshold * 100),
                "mode": "scan-only" if scan_only else "live",
            }
        },
    )

    try:
        if once:
            asyncio.run(bot.run_once())
            return
        asyncio.run(bot.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except ConfigError as e:
        logger.error(f"Startup check failed: {e}", extra={"context": e.to_dict()})
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    click.echo("\n" + bot.monitor.render())
    stats = bot.coordinator.stats
    click.echo(
        f"Opportunities accepted: {stats.accepted} | dropped while busy: {stats.dropped} | "
        f"scan cycles: {bot.scanner.stats.cycles}"
    )


if __name__ == "__main__":
    main()
