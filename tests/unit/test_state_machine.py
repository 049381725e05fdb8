# PATH: tests/unit/test_state_machine.py
"""
Unit tests for the trade execution state machine.
"""

import unittest

from execution.state_machine import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    TradeState,
    TradeStateMachine,
)

HAPPY_PATH = [
    TradeState.VALIDATING,
    TradeState.BUY_PENDING,
    TradeState.AWAITING_SETTLEMENT,
    TradeState.SELL_PENDING,
    TradeState.COMPLETE,
]


class TestTransitions(unittest.TestCase):
    """Allowed and forbidden transitions."""

    def test_happy_path(self):
        machine = TradeStateMachine(trade_id="t1")
        for state in HAPPY_PATH:
            machine.transition_to(state)
        self.assertTrue(machine.is_success)
        self.assertTrue(machine.is_terminal)
        self.assertEqual(len(machine.history), 5)

    def test_cannot_skip_buy(self):
        machine = TradeStateMachine(trade_id="t1")
        machine.transition_to(TradeState.VALIDATING)
        with self.assertRaises(InvalidTransitionError):
            machine.transition_to(TradeState.SELL_PENDING)

    def test_every_active_state_can_fail(self):
        for steps in range(1, 5):
            machine = TradeStateMachine(trade_id=f"t{steps}")
            for state in HAPPY_PATH[:steps]:
                machine.transition_to(state)
            machine.fail("boom")
            self.assertTrue(machine.is_failed)
            self.assertEqual(machine.history[-1].reason, "boom")

    def test_terminal_states_have_no_exits(self):
        self.assertEqual(VALID_TRANSITIONS[TradeState.COMPLETE], [])
        self.assertEqual(VALID_TRANSITIONS[TradeState.FAILED], [])


class TestFail(unittest.TestCase):
    """fail() helper."""

    def test_fail_from_idle_goes_through_validating(self):
        machine = TradeStateMachine(trade_id="t1")
        machine.fail("early")
        self.assertEqual(
            [t.to_state for t in machine.history],
            [TradeState.VALIDATING, TradeState.FAILED],
        )

    def test_fail_after_complete_raises(self):
        machine = TradeStateMachine(trade_id="t1")
        for state in HAPPY_PATH:
            machine.transition_to(state)
        with self.assertRaises(InvalidTransitionError):
            machine.fail("late")


class TestBuyConfirmed(unittest.TestCase):
    """buy_confirmed tracks the settlement step."""

    def test_not_confirmed_while_pending(self):
        machine = TradeStateMachine(trade_id="t1")
        machine.transition_to(TradeState.VALIDATING)
        machine.transition_to(TradeState.BUY_PENDING)
        self.assertFalse(machine.buy_confirmed)

    def test_confirmed_survives_failure(self):
        machine = TradeStateMachine(trade_id="t1")
        for state in HAPPY_PATH[:4]:
            machine.transition_to(state)
        machine.fail("sell reverted")
        self.assertTrue(machine.buy_confirmed)

    def test_to_dict(self):
        machine = TradeStateMachine(trade_id="t1")
        machine.transition_to(TradeState.VALIDATING, metadata={"k": "v"})
        data = machine.to_dict()
        self.assertEqual(data["state"], "VALIDATING")
        self.assertEqual(data["history"][0]["metadata"], {"k": "v"})


if __name__ == "__main__":
    unittest.main()
