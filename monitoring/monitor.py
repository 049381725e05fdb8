"""
monitoring/monitor.py - Trade metrics and textual summary.

Consumes TradeResult events only; nothing in the scanner or executor
depends on it.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from core.logging import get_logger
from core.math import wei_to_eth
from core.models import TradeResult
from core.time import now_utc

logger = get_logger(__name__)


@dataclass
class BestTrade:
    profit: int
    pair: str
    timestamp: datetime


@dataclass
class BotMetrics:
    """Cumulative counters since startup."""
    start_time: datetime = field(default_factory=now_utc)
    total_trades: int = 0
    successful_trades: int = 0
    failed_trades: int = 0
    total_profit: int = 0
    total_gas_spent: int = 0
    average_profit: int = 0
    best_trade: Optional[BestTrade] = None
    current_streak: int = 0
    max_streak: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.successful_trades / self.total_trades

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "total_trades": self.total_trades,
            "successful_trades": self.successful_trades,
            "failed_trades": self.failed_trades,
            "success_rate": round(self.success_rate, 3),
            "total_profit": str(self.total_profit),
            "total_gas_spent": str(self.total_gas_spent),
            "average_profit": str(self.average_profit),
            "current_streak": self.current_streak,
            "max_streak": self.max_streak,
            "best_trade": {
                "profit": str(self.best_trade.profit),
                "pair": self.best_trade.pair,
                "timestamp": self.best_trade.timestamp.isoformat(),
            } if self.best_trade else None,
        }


class BotMonitor:
    """
    Records trade outcomes and renders a summary.

    Usage:
        monitor = BotMonitor()
        monitor.record_trade(result, "WETH/USDC")
        print(monitor.render())
    """

    def __init__(self):
        self.metrics = BotMetrics()
        self.last_error: Optional[str] = None

    def record_trade(self, result: TradeResult, pair: str) -> None:
        m = self.metrics
        m.total_trades += 1

        if result.success:
            profit = result.profit or 0
            m.successful_trades += 1
            m.total_profit += profit
            m.current_streak += 1
            m.max_streak = max(m.max_streak, m.current_streak)

            if m.best_trade is None or profit > m.best_trade.profit:
                m.best_trade = BestTrade(profit=profit, pair=pair, timestamp=now_utc())
        else:
            m.failed_trades += 1
            m.current_streak = 0
            self.last_error = result.error

        m.total_gas_spent += result.gas_used or 0

        if m.successful_trades > 0:
            m.average_profit = m.total_profit // m.successful_trades

    def runtime(self, now: Optional[datetime] = None) -> str:
        current = now or now_utc()
        seconds = int((current - self.metrics.start_time).total_seconds())
        hours, rest = divmod(seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        return f"{hours}h {minutes}m {seconds}s"

    def render(self) -> str:
        """Textual dashboard."""
        m = self.metrics
        lines = [
            "=" * 60,
            "ZERO-BOT SUMMARY",
            "=" * 60,
            f"Runtime:          {self.runtime()}",
            f"Total Trades:     {m.total_trades}",
            f"Successful:       {m.successful_trades} ({m.success_rate * 100:.1f}%)",
            f"Failed:           {m.failed_trades}",
            f"Current Streak:   {m.current_streak}",
            f"Best Streak:      {m.max_streak}",
            "",
            "--- FINANCIAL ---",
            f"Net Profit:       {wei_to_eth(m.total_profit)} ETH (after gas)",
            f"Total Gas Spent:  {wei_to_eth(m.total_gas_spent)} ETH",
            f"Avg Profit/Trade: {wei_to_eth(m.average_profit)} ETH",
        ]

        if m.best_trade is not None:
            lines += [
                "",
                "--- BEST TRADE ---",
                f"Pair:     {m.best_trade.pair}",
                f"Profit:   {wei_to_eth(m.best_trade.profit)} ETH",
                f"Time:     {m.best_trade.timestamp.strftime('%H:%M:%S')}",
            ]

        if self.last_error:
            lines += ["", f"Last error: {self.last_error}"]

        lines.append("=" * 60)
        return "\n".join(lines)

    async def report_loop(self, interval_seconds: float = 60.0) -> None:
        """Log the summary periodically until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            logger.info("\n" + self.render(), extra={"context": self.metrics.to_dict()})
