"""
Execution state machine for one two-leg trade.

EXECUTION STATE CONTRACT:
=========================

States (TradeState):
  IDLE                 -> created, nothing checked yet
  VALIDATING           -> balance and sanity checks
  BUY_PENDING          -> buy leg approved/submitted, waiting for receipt
  AWAITING_SETTLEMENT  -> buy confirmed, measuring received amount
  SELL_PENDING         -> sell leg approved/submitted, waiting for receipt
  COMPLETE             -> both legs confirmed
  FAILED               -> aborted at the current step

Transitions:
  IDLE                -> VALIDATING
  VALIDATING          -> BUY_PENDING
  BUY_PENDING         -> AWAITING_SETTLEMENT
  AWAITING_SETTLEMENT -> SELL_PENDING
  SELL_PENDING        -> COMPLETE
  any active state    -> FAILED

Legs are strictly sequential: the sell leg can only be entered after the
buy leg's settlement read.
=========================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.time import now_iso


class TradeState(str, Enum):
    """Trade execution states."""
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    BUY_PENDING = "BUY_PENDING"
    AWAITING_SETTLEMENT = "AWAITING_SETTLEMENT"
    SELL_PENDING = "SELL_PENDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


# Valid state transitions
VALID_TRANSITIONS: Dict[TradeState, List[TradeState]] = {
    TradeState.IDLE: [TradeState.VALIDATING],
    TradeState.VALIDATING: [TradeState.BUY_PENDING, TradeState.FAILED],
    TradeState.BUY_PENDING: [TradeState.AWAITING_SETTLEMENT, TradeState.FAILED],
    TradeState.AWAITING_SETTLEMENT: [TradeState.SELL_PENDING, TradeState.FAILED],
    TradeState.SELL_PENDING: [TradeState.COMPLETE, TradeState.FAILED],
    TradeState.COMPLETE: [],  # Terminal state
    TradeState.FAILED: [],  # Terminal state
}


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: TradeState
    to_state: TradeState
    timestamp: str = ""
    reason: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = now_iso()


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


@dataclass
class TradeStateMachine:
    """
    State machine for one execution attempt.

    Tracks current state and transition history.
    """
    trade_id: str
    state: TradeState = TradeState.IDLE
    history: List[StateTransition] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = now_iso()

    def can_transition_to(self, new_state: TradeState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in VALID_TRANSITIONS.get(self.state, [])

    def transition_to(
        self,
        new_state: TradeState,
        reason: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> StateTransition:
        """
        Transition to a new state.

        Raises InvalidTransitionError if transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidTransitionError(
                f"Cannot transition from {self.state.value} to {new_state.value}. "
                f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(self.state, [])]}"
            )

        transition = StateTransition(
            from_state=self.state,
            to_state=new_state,
            reason=reason,
            metadata=metadata or {},
        )

        self.history.append(transition)
        self.state = new_state

        return transition

    def fail(self, reason: str = "") -> StateTransition:
        """
        Abort from the current state.

        IDLE is not active yet, so it goes through VALIDATING first.
        """
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Cannot fail trade in terminal state {self.state.value}"
            )
        if self.state == TradeState.IDLE:
            self.transition_to(TradeState.VALIDATING)
        return self.transition_to(TradeState.FAILED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return len(VALID_TRANSITIONS.get(self.state, [])) == 0

    @property
    def is_success(self) -> bool:
        return self.state == TradeState.COMPLETE

    @property
    def is_failed(self) -> bool:
        return self.state == TradeState.FAILED

    @property
    def buy_confirmed(self) -> bool:
        """True once the buy leg has been confirmed on-chain."""
        return any(t.to_state == TradeState.AWAITING_SETTLEMENT for t in self.history)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "trade_id": self.trade_id,
            "state": self.state.value,
            "is_terminal": self.is_terminal,
            "is_success": self.is_success,
            "is_failed": self.is_failed,
            "created_at": self.created_at,
            "history": [
                {
                    "from_state": t.from_state.value,
                    "to_state": t.to_state.value,
                    "timestamp": t.timestamp,
                    "reason": t.reason,
                    "metadata": t.metadata,
                }
                for t in self.history
            ],
            "metadata": self.metadata,
        }
