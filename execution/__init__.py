"""
execution - Trade execution.

- state_machine.py: TradeState / TradeStateMachine
- context.py: ExecutionContext (approvals, counters)
- executor.py: TradeExecutor (two-leg execution)
- coordinator.py: ArbitrageCoordinator (single in-flight execution)
"""

from execution.context import ExecutionContext
from execution.coordinator import ArbitrageCoordinator
from execution.executor import LegResult, TradeExecutor
from execution.state_machine import (
    InvalidTransitionError,
    TradeState,
    TradeStateMachine,
)

__all__ = [
    "ArbitrageCoordinator",
    "ExecutionContext",
    "InvalidTransitionError",
    "LegResult",
    "TradeExecutor",
    "TradeState",
    "TradeStateMachine",
]
