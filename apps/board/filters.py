# apps/board/filters.py

"""
Filtros de tarefas e boards

Predicados puros aplicados sobre a coleção em memória. O resultado é
sempre uma nova coleção; a original nunca é alterada.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import FrozenSet, Iterable, List, Optional

from django.utils import timezone


def _dia(valor) -> Optional[date]:
    """Dia no fuso local (TIME_ZONE) - datetimes aware vêm em UTC do banco"""
    if valor is None:
        return None
    if isinstance(valor, str):
        if len(valor) <= 10:
            return date.fromisoformat(valor)
        valor = datetime.fromisoformat(valor)
    if isinstance(valor, datetime):
        if timezone.is_aware(valor):
            valor = timezone.localtime(valor)
        return valor.date()
    return valor


@dataclass(frozen=True)
class TaskFilter:
    priorities: FrozenSet[str] = field(default_factory=frozenset)
    due_date: Optional[date] = None
    assignees: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def active_count(self) -> int:
        """Quantidade de critérios ativos (badge do botão de filtro)"""
        return sum([
            bool(self.priorities),
            self.due_date is not None,
            bool(self.assignees),
        ])

    def matches(self, task) -> bool:
        if self.priorities and task.priority not in self.priorities:
            return False
        if self.due_date is not None and _dia(task.due_date) != self.due_date:
            return False
        if self.assignees and (task.assignee or '') not in self.assignees:
            return False
        return True


@dataclass(frozen=True)
class BoardFilter:
    start: Optional[date] = None
    end: Optional[date] = None
    min_tasks: Optional[int] = None
    max_tasks: Optional[int] = None

    @property
    def active_count(self) -> int:
        return sum(v is not None for v in (self.start, self.end, self.min_tasks, self.max_tasks))

    def matches(self, board) -> bool:
        criado = _dia(board.created_at)
        if self.start is not None and (criado is None or criado < self.start):
            return False
        if self.end is not None and (criado is None or criado > self.end):
            return False
        total = board.total_tasks or 0
        if self.min_tasks is not None and total < self.min_tasks:
            return False
        if self.max_tasks is not None and total > self.max_tasks:
            return False
        return True


def filter_tasks(columns: Iterable, task_filter: TaskFilter) -> List:
    """
    Colunas com apenas as tarefas que passam no filtro
    Colunas vazias continuam presentes (destino de drop)
    """
    return [
        replace(col, tasks=[t for t in col.tasks if task_filter.matches(t)])
        for col in columns
    ]


def filter_boards(boards: Iterable, board_filter: BoardFilter) -> List:
    return [b for b in boards if board_filter.matches(b)]
