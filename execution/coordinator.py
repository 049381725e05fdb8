"""
execution/coordinator.py - Scanner/executor handoff.

Two tasks share one single-slot queue:

    scanner task  --offer()-->  [slot]  -->  executor worker

offer() never blocks: if an execution is in flight (or the slot is taken)
the opportunity is dropped, not queued. Exactly one TradeResult is produced
per accepted opportunity.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from core.constants import ErrorCode
from core.logging import get_logger
from core.models import ArbitrageOpportunity, TradeResult
from execution.executor import TradeExecutor
from monitoring.monitor import BotMonitor
from strategy.scanner import OpportunityScanner

logger = get_logger(__name__)


@dataclass
class CoordinatorStats:
    accepted: int = 0
    dropped: int = 0
    completed: int = 0


class ArbitrageCoordinator:
    """
    Enforces at most one concurrent execution.

    Usage:
        coordinator = ArbitrageCoordinator(scanner, executor, monitor)
        await coordinator.run()      # until stop()
    """

    def __init__(
        self,
        scanner: Optional[OpportunityScanner],
        executor: TradeExecutor,
        monitor: Optional[BotMonitor] = None,
        execute: bool = True,
    ):
        self.scanner = scanner
        self.executor = executor
        self.monitor = monitor
        self.execute = execute
        self.stats = CoordinatorStats()
        self.results: list[TradeResult] = []
        self._slot: asyncio.Queue[Optional[ArbitrageOpportunity]] = asyncio.Queue(maxsize=1)
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def offer(self, opportunity: ArbitrageOpportunity) -> bool:
        """
        Hand an opportunity to the executor if it is idle.

        Returns:
            True if accepted, False if dropped
        """
        if not self.execute:
            return False

        # No await between the check and the set
        if self._busy or self._slot.full():
            self.stats.dropped += 1
            logger.info(
                f"Execution in progress, dropping {opportunity.opportunity_id}",
                extra={"context": {"dropped": self.stats.dropped}},
            )
            return False

        self._busy = True
        self._slot.put_nowait(opportunity)
        self.stats.accepted += 1
        return True

    async def worker(self) -> None:
        """Execute accepted opportunities until a None sentinel arrives."""
        while True:
            opportunity = await self._slot.get()
            if opportunity is None:
                break

            try:
                result = await self.executor.execute(opportunity)
            except Exception as e:
                logger.error(f"Executor raised: {e}", exc_info=True)
                result = TradeResult(
                    success=False,
                    error=str(e) or type(e).__name__,
                    error_code=ErrorCode.UNKNOWN.value,
                    opportunity_id=opportunity.opportunity_id,
                )
            finally:
                self._busy = False

            self.stats.completed += 1
            self.results.append(result)
            if self.monitor is not None:
                self.monitor.record_trade(result, opportunity.pair)

    async def run(self) -> None:
        """Run scanner and worker until stop()."""
        if self.scanner is None:
            raise ValueError("Coordinator has no scanner to run")

        worker_task = asyncio.create_task(self.worker(), name="executor")
        try:
            await self.scanner.run(self.offer)
        finally:
            # Let an in-flight execution finish before the worker exits
            await self._slot.put(None)
            await worker_task

    def stop(self) -> None:
        """Stop scanning; an in-flight execution still completes."""
        if self.scanner is not None:
            self.scanner.stop()
