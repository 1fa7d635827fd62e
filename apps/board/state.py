# apps/board/state.py

"""
Snapshots em memória usados pelos stores e pelo WebSocket

Espelham os models de apps.core, mas sem ORM: podem ser alterados
localmente (atualização otimista) e serializados para o cliente.
"""

from dataclasses import dataclass, field, asdict, replace
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from apps.painel.status import classify_status, status_payload


def _serializar(valor):
    if isinstance(valor, Decimal):
        return str(valor)
    if isinstance(valor, (date, datetime)):
        return valor.isoformat()
    if isinstance(valor, dict):
        return {k: _serializar(v) for k, v in valor.items()}
    if isinstance(valor, list):
        return [_serializar(v) for v in valor]
    return valor


@dataclass
class TaskState:
    id: str
    column_id: str
    title: str
    description: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    priority: str = 'medium'
    sort_order: int = 0


@dataclass
class ColumnState:
    id: str
    board_id: str
    title: str
    sort_order: int = 0
    tasks: List[TaskState] = field(default_factory=list)


@dataclass
class LabelState:
    id: str
    text: str
    color: str


@dataclass
class ProductState:
    id: str
    name: str
    started_date: date
    period: Decimal
    price: Decimal
    cost: Decimal = Decimal('0')
    sort_order: int = 0


@dataclass
class BoardState:
    id: str
    title: str
    color: str
    sort_order: int = 0
    total_value: Decimal = Decimal('0')
    upcoming_value: Decimal = Decimal('0')
    received_value: Decimal = Decimal('0')
    annual: Decimal = Decimal('0')
    started_date: Optional[date] = None
    ending_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    total_tasks: int = 0
    labels: List[LabelState] = field(default_factory=list)
    products: List[ProductState] = field(default_factory=list)

    @property
    def status(self) -> Optional[str]:
        return classify_status(
            upcoming=self.upcoming_value,
            received=self.received_value,
            total=self.total_value,
            annual=self.annual,
        )


def to_dict(snapshot) -> dict:
    """Serializa um snapshot (dataclass) em dict compatível com JSON"""
    dados = _serializar(asdict(snapshot))
    if isinstance(snapshot, BoardState):
        dados['status'] = status_payload(snapshot.status)
    return dados


def copy_columns(columns: List[ColumnState]) -> List[ColumnState]:
    """Cópia profunda o bastante para mutação otimista"""
    return [
        replace(col, tasks=[replace(t) for t in col.tasks])
        for col in columns
    ]


def copy_boards(boards: List[BoardState]) -> List[BoardState]:
    return [
        replace(
            b,
            labels=[replace(l) for l in b.labels],
            products=[replace(p) for p in b.products],
        )
        for b in boards
    ]
