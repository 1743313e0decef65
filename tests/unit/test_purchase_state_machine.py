"""Tests for the purchase status state machine."""

import pytest

from src.cl_common.enums import PurchaseStatus
from src.cl_common.errors import InvalidPurchaseTransitionError
from src.cl_purchase.domain.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    ensure_transition,
)

_HAPPY_PATH = ["pending", "approved", "shipped", "delivered", "completed"]


class TestTransitions:
    def test_every_status_has_an_entry(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == {s.value for s in PurchaseStatus}

    def test_happy_path(self) -> None:
        for current, target in zip(_HAPPY_PATH, _HAPPY_PATH[1:]):
            assert can_transition(current, target)

    @pytest.mark.parametrize("current", ["pending", "approved"])
    @pytest.mark.parametrize("target", ["rejected", "cancelled"])
    def test_side_branch(self, current: str, target: str) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("pending", "shipped"),
            ("shipped", "rejected"),
            ("shipped", "cancelled"),
            ("delivered", "approved"),
            ("completed", "rejected"),
            ("rejected", "approved"),
            ("cancelled", "pending"),
        ],
    )
    def test_illegal(self, current: str, target: str) -> None:
        assert not can_transition(current, target)
        with pytest.raises(InvalidPurchaseTransitionError):
            ensure_transition("p1", current, target)

    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == {"completed", "rejected", "cancelled"}

    def test_unknown_status(self) -> None:
        assert not can_transition("lost", "approved")
