"""
execution/context.py - Per-process execution state.

Owned by one coordinator and passed to the executor by reference, so
independent contexts can coexist (tests, dry runs). Nothing here is
persisted: approvals are rebuilt from on-chain allowances on restart.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Set

from core.models import ApprovalRecord


@dataclass
class ExecutionContext:
    """Approval records and running counters."""
    approvals: Set[ApprovalRecord] = field(default_factory=set)
    trade_count: int = 0
    total_profit: int = 0

    def has_approval(self, token: str, spender: str) -> bool:
        return ApprovalRecord.of(token, spender) in self.approvals

    def record_approval(self, token: str, spender: str) -> None:
        """Append-only: there is no revocation path."""
        self.approvals.add(ApprovalRecord.of(token, spender))

    def record_success(self, profit: int) -> None:
        self.trade_count += 1
        self.total_profit += profit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_count": self.trade_count,
            "total_profit": str(self.total_profit),
            "approvals": len(self.approvals),
        }
