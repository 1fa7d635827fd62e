"""Tests for the drag-and-drop reorder engine."""

import pytest

from apps.board.ordering import (
    MoveCommand, OrderUpdate, apply_move, is_noop, renumber,
    resolve_flat_reorder, resolve_task_drop,
)
from apps.core.exceptions import ReorderError


@pytest.fixture
def containers():
    return {
        'col-a': ['a', 'b', 'c', 'd'],
        'col-b': ['x', 'y'],
        'col-c': [],
    }


class TestResolveTaskDrop:
    def test_drop_outside_is_noop(self, containers):
        assert resolve_task_drop(containers, 'a', None) is None

    def test_drop_on_itself_is_noop(self, containers):
        assert resolve_task_drop(containers, 'b', 'b') is None

    def test_unknown_active_is_noop(self, containers):
        assert resolve_task_drop(containers, 'zzz', 'col-b') is None

    def test_unknown_over_is_noop(self, containers):
        assert resolve_task_drop(containers, 'a', 'zzz') is None

    def test_drop_on_own_column_is_noop(self, containers):
        assert resolve_task_drop(containers, 'a', 'col-a') is None

    def test_drop_on_other_column_appends(self, containers):
        assert resolve_task_drop(containers, 'a', 'col-b') == MoveCommand('a', 'col-b', 2)

    def test_drop_on_empty_column(self, containers):
        assert resolve_task_drop(containers, 'x', 'col-c') == MoveCommand('x', 'col-c', 0)

    def test_drop_on_task_in_other_column_takes_its_index(self, containers):
        assert resolve_task_drop(containers, 'c', 'y') == MoveCommand('c', 'col-b', 1)

    def test_moving_down_inserts_after_target(self, containers):
        assert resolve_task_drop(containers, 'a', 'c') == MoveCommand('a', 'col-a', 3)

    def test_moving_up_inserts_at_target(self, containers):
        assert resolve_task_drop(containers, 'd', 'b') == MoveCommand('d', 'col-a', 1)


class TestApplyMove:
    def test_moving_down_within_column(self, containers):
        comando = resolve_task_drop(containers, 'a', 'c')
        assert apply_move(containers, comando)['col-a'] == ['b', 'c', 'a', 'd']

    def test_moving_up_within_column(self, containers):
        comando = resolve_task_drop(containers, 'd', 'b')
        assert apply_move(containers, comando)['col-a'] == ['a', 'd', 'b', 'c']

    def test_cross_column_move_to_end(self, containers):
        resultado = apply_move(containers, resolve_task_drop(containers, 'b', 'col-b'))

        assert resultado['col-b'] == ['x', 'y', 'b']
        assert resultado['col-b'].index('b') == len(containers['col-b'])
        assert resultado['col-a'] == ['a', 'c', 'd']

    def test_input_is_not_mutated(self, containers):
        antes = {k: list(v) for k, v in containers.items()}
        apply_move(containers, MoveCommand('a', 'col-b', 0))
        assert containers == antes

    def test_ids_are_a_permutation(self, containers):
        resultado = apply_move(containers, MoveCommand('c', 'col-c', 0))
        antes = sorted(i for ids in containers.values() for i in ids)
        depois = sorted(i for ids in resultado.values() for i in ids)
        assert antes == depois

    def test_index_is_clamped(self, containers):
        resultado = apply_move(containers, MoveCommand('a', 'col-b', 99))
        assert resultado['col-b'] == ['x', 'y', 'a']

    def test_unknown_item_raises(self, containers):
        with pytest.raises(ReorderError):
            apply_move(containers, MoveCommand('zzz', 'col-a', 0))

    def test_unknown_column_raises(self, containers):
        with pytest.raises(ReorderError):
            apply_move(containers, MoveCommand('a', 'col-zzz', 0))

    def test_is_noop_for_same_position(self, containers):
        assert is_noop(containers, MoveCommand('b', 'col-a', 1))
        assert not is_noop(containers, MoveCommand('b', 'col-a', 0))


class TestFlatReorder:
    def test_renumber_is_contiguous(self):
        assert renumber(['x', 'y', 'z']) == [
            OrderUpdate('x', 0), OrderUpdate('y', 1), OrderUpdate('z', 2),
        ]

    def test_move_down(self):
        updates = resolve_flat_reorder(['a', 'b', 'c', 'd'], 'a', 'c')
        assert [u.id for u in updates] == ['b', 'c', 'a', 'd']
        assert [u.sort_order for u in updates] == [0, 1, 2, 3]

    def test_move_up(self):
        updates = resolve_flat_reorder(['a', 'b', 'c', 'd'], 'd', 'b')
        assert [u.id for u in updates] == ['a', 'd', 'b', 'c']

    @pytest.mark.parametrize('active_id, over_id', [
        ('a', None),
        ('a', 'a'),
        ('zzz', 'a'),
        ('a', 'zzz'),
    ])
    def test_noop_cases(self, active_id, over_id):
        assert resolve_flat_reorder(['a', 'b', 'c'], active_id, over_id) is None
