"""Tests for board status classification."""

from decimal import Decimal

import pytest

from apps.board.state import BoardState, to_dict
from apps.painel.status import (
    COMPLETE, IN_PROGRESS, PENDING_RENEWAL, RECURRING, STATUS_META,
    classify_status, status_payload,
)


@pytest.mark.parametrize('upcoming, received, total, annual, esperado', [
    (100, 0, 0, 0, PENDING_RENEWAL),
    (100, 500, 500, 240, PENDING_RENEWAL),
    (0, 0, 1000, 0, IN_PROGRESS),
    (0, 0, 1000, 240, IN_PROGRESS),
    (0, 400, 1000, 0, IN_PROGRESS),
    (0, 1000, 1000, 240, RECURRING),
    (0, 0, 0, 120, RECURRING),
    (0, 1000, 1000, 0, COMPLETE),
    (0, 0, 0, 0, None),
])
def test_classify_status(upcoming, received, total, annual, esperado):
    assert classify_status(upcoming, received, total, annual) == esperado


def test_rules_are_evaluated_in_order():
    # upcoming > 0 vence qualquer outra combinação
    assert classify_status(Decimal('1'), Decimal('0'), Decimal('1000'), Decimal('0')) == PENDING_RENEWAL


def test_none_values_count_as_zero():
    assert classify_status(None, None, None, None) is None
    assert classify_status(None, None, '500', None) == IN_PROGRESS


def test_status_payload():
    assert status_payload(None) is None
    assert status_payload(RECURRING) == {'key': RECURRING, **STATUS_META[RECURRING]}


def test_board_state_serializes_status():
    board = BoardState(
        id='b1', title='Loja', color='bg-blue-500',
        received_value=Decimal('1000'), total_value=Decimal('1000'),
    )

    dados = to_dict(board)

    assert board.status == COMPLETE
    assert dados['status']['key'] == COMPLETE
    assert dados['total_value'] == '1000'
