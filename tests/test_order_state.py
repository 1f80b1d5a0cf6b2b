from types import SimpleNamespace

import pytest

from kairopay.constants import OrderStatus
from kairopay.errors import APIError, ErrorCode
from kairopay.services.order_state import TERMINAL_STATUSES, can_transition, transition


def test_forward_transitions_allowed():
    assert can_transition("created", "pending")
    assert can_transition("pending", "pending")
    assert can_transition("pending", "verified")
    assert can_transition("completed", "verified")
    assert can_transition("created", "failed")


def test_backward_and_terminal_transitions_rejected():
    assert not can_transition("pending", "created")
    assert not can_transition("verified", "pending")
    assert not can_transition("verified", "verified")
    assert not can_transition("failed", "pending")
    assert not can_transition("created", "verified")


def test_unknown_status_rejected():
    assert not can_transition("bogus", "pending")
    assert not can_transition("created", "bogus")


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {OrderStatus.VERIFIED, OrderStatus.FAILED}


def test_transition_updates_status():
    order = SimpleNamespace(status="created")
    transition(order, OrderStatus.PENDING)
    assert order.status == "pending"


def test_transition_raises_and_leaves_status():
    order = SimpleNamespace(status="verified")
    with pytest.raises(APIError) as excinfo:
        transition(order, OrderStatus.PENDING)
    assert excinfo.value.code is ErrorCode.INVALID_ORDER_STATUS
    assert excinfo.value.status_code == 400
    assert order.status == "verified"
