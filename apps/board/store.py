# apps/board/store.py

"""
Stores com atualização otimista

Toda alteração passa por uma ação nomeada que:
1. aplica a mudança no estado em memória imediatamente
2. aguarda a chamada de persistência no gateway
3. em caso de falha, recarrega o escopo inteiro do banco (ou volta ao
   estado anterior se a recarga falhar) e levanta PersistenceError

Um lock por store serializa as ações, como o bloqueio de arraste da UI.
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from apps.core.exceptions import BoardInvariantError, PersistenceError
from apps.core.services import CAMPOS_EDITAVEIS_BOARD
from apps.painel.aggregates import recompute_aggregates
from .filters import BoardFilter, TaskFilter, filter_boards, filter_tasks
from .ordering import (
    MoveCommand, apply_move, is_noop, resolve_flat_reorder, resolve_task_drop
)
from .state import (
    BoardState, ColumnState, LabelState, ProductState,
    copy_boards, copy_columns
)

logger = logging.getLogger(__name__)


def _id(valor) -> Optional[str]:
    return None if valor is None else str(valor)


class OptimisticStore:
    """Base dos stores: commit com recarga em caso de falha"""

    def __init__(self, gateway):
        self.gateway = gateway
        self.error: Optional[str] = None
        self._lock = asyncio.Lock()

    async def load(self):
        raise NotImplementedError

    def _estado(self):
        """Referência ao estado atual; as ações sempre trocam por cópias"""
        raise NotImplementedError

    def _restaurar(self, estado) -> None:
        raise NotImplementedError

    async def _commit(self, acao: str, persistir, anterior) -> None:
        """
        Executa a persistência de uma ação já aplicada localmente

        Na falha recarrega do banco; se a recarga também falhar,
        volta para o estado anterior à ação.
        """
        try:
            await persistir()
        except Exception as exc:
            logger.error(f"❌ Falha ao persistir '{acao}': {exc} - recarregando estado")
            self.error = f"Não foi possível salvar a alteração ({acao}). Tente novamente."
            try:
                await self.load()
            except Exception as exc_carga:
                logger.error(f"❌ Falha ao recarregar após '{acao}': {exc_carga} - restaurando estado anterior")
                self._restaurar(anterior)
            raise PersistenceError(self.error, action=acao) from exc
        self.error = None


class KanbanStore(OptimisticStore):
    """Colunas e tarefas de um board"""

    def __init__(self, board_id, gateway):
        super().__init__(gateway)
        self.board_id = str(board_id)
        self.columns: List[ColumnState] = []

    async def load(self) -> List[ColumnState]:
        self.columns = await self.gateway.load_board(self.board_id)
        return self.columns

    def _estado(self):
        return self.columns

    def _restaurar(self, estado) -> None:
        self.columns = estado

    def containers(self) -> Dict[str, List[str]]:
        return {col.id: [t.id for t in col.tasks] for col in self.columns}

    def snapshot(self) -> List[ColumnState]:
        return copy_columns(self.columns)

    def filtered(self, task_filter: TaskFilter) -> List[ColumnState]:
        return filter_tasks(self.columns, task_filter)

    # === AÇÕES ===

    async def drag_end(self, active_id, over_id) -> bool:
        """
        Fim do arraste de uma tarefa
        Retorna False quando não há nada a persistir
        """
        async with self._lock:
            comando = resolve_task_drop(self.containers(), _id(active_id), _id(over_id))
            if comando is None:
                return False
            await self._mover(comando)
            return True

    async def move_task(self, task_id, column_id, index: int) -> bool:
        async with self._lock:
            comando = MoveCommand(str(task_id), str(column_id), index)
            if is_noop(self.containers(), comando):
                return False
            await self._mover(comando)
            return True

    async def reorder_columns(self, active_id, over_id) -> bool:
        async with self._lock:
            updates = resolve_flat_reorder(
                [col.id for col in self.columns], _id(active_id), _id(over_id)
            )
            if updates is None:
                return False

            anterior = self._estado()
            ordem = {u.id: u.sort_order for u in updates}
            colunas = copy_columns(self.columns)
            for col in colunas:
                col.sort_order = ordem[col.id]
            colunas.sort(key=lambda c: c.sort_order)
            self.columns = colunas

            await self._commit(
                'reorder_columns',
                lambda: self.gateway.update_order('columns', self.board_id, updates),
                anterior,
            )
            return True

    async def _mover(self, comando: MoveCommand) -> None:
        anterior = self._estado()
        self._aplicar_movimento(comando)
        logger.info(f"🔀 Movendo tarefa {comando.item_id} -> {comando.container_id}[{comando.index}]")
        await self._commit(
            'move_task',
            lambda: self.gateway.move_task(comando.item_id, comando.container_id, comando.index),
            anterior,
        )

    def _aplicar_movimento(self, comando: MoveCommand) -> None:
        nova_ordem = apply_move(self.containers(), comando)
        colunas = copy_columns(self.columns)
        tarefas = {t.id: t for col in colunas for t in col.tasks}
        for col in colunas:
            col.tasks = [tarefas[tid] for tid in nova_ordem[col.id]]
            for idx, task in enumerate(col.tasks):
                task.sort_order = idx
                task.column_id = col.id
        self.columns = colunas


class DashboardStore(OptimisticStore):
    """Boards do usuário, com etiquetas e produtos"""

    def __init__(self, user_id, gateway):
        super().__init__(gateway)
        self.user_id = user_id
        self.boards: List[BoardState] = []
        self.labels: List[LabelState] = []

    async def load(self) -> List[BoardState]:
        self.boards = await self.gateway.load_boards(self.user_id)
        self.labels = await self.gateway.load_labels(self.user_id)
        return self.boards

    def _estado(self):
        return self.boards, self.labels

    def _restaurar(self, estado) -> None:
        self.boards, self.labels = estado

    def snapshot(self) -> List[BoardState]:
        return copy_boards(self.boards)

    def filtered(self, board_filter: BoardFilter) -> List[BoardState]:
        return filter_boards(self.boards, board_filter)

    def _board(self, boards: List[BoardState], board_id) -> BoardState:
        for board in boards:
            if board.id == str(board_id):
                return board
        raise BoardInvariantError(f"Board {board_id} não encontrado")

    # === AÇÕES ===

    async def reorder_boards(self, active_id, over_id) -> bool:
        async with self._lock:
            updates = resolve_flat_reorder(
                [b.id for b in self.boards], _id(active_id), _id(over_id)
            )
            if updates is None:
                return False

            anterior = self._estado()
            ordem = {u.id: u.sort_order for u in updates}
            boards = copy_boards(self.boards)
            for board in boards:
                board.sort_order = ordem[board.id]
            boards.sort(key=lambda b: b.sort_order)
            self.boards = boards

            await self._commit(
                'reorder_boards',
                lambda: self.gateway.update_order('boards', self.user_id, updates),
                anterior,
            )
            return True

    async def update_board_fields(self, board_id, **fields) -> BoardState:
        invalidos = set(fields) - CAMPOS_EDITAVEIS_BOARD
        if invalidos:
            raise BoardInvariantError(f"Campos não editáveis: {', '.join(sorted(invalidos))}")

        async with self._lock:
            anterior = self._estado()
            boards = copy_boards(self.boards)
            board = self._board(boards, board_id)
            for nome, valor in fields.items():
                setattr(board, nome, valor)
            self.boards = boards

            await self._commit(
                'update_board_fields',
                lambda: self.gateway.update_board_fields(str(board_id), fields),
                anterior,
            )
            return board

    async def replace_products(self, board_id, products: Iterable) -> BoardState:
        """
        Substitui os produtos e recalcula annual/ending_date localmente
        Os ids são temporários até a próxima carga
        """
        products = list(products)
        async with self._lock:
            anterior = self._estado()
            boards = copy_boards(self.boards)
            board = self._board(boards, board_id)
            board.products = [
                ProductState(
                    id=f"temp-{uuid.uuid4().hex}",
                    name=_campo(p, 'name'),
                    started_date=_campo(p, 'started_date'),
                    period=Decimal(str(_campo(p, 'period'))),
                    price=Decimal(str(_campo(p, 'price'))),
                    cost=Decimal(str(_campo(p, 'cost') or 0)),
                    sort_order=idx,
                )
                for idx, p in enumerate(products)
            ]
            board.annual, board.ending_date = recompute_aggregates(board.products)
            self.boards = boards

            await self._commit(
                'replace_products',
                lambda: self.gateway.replace_products(str(board_id), products),
                anterior,
            )
            return board

    async def update_labels(self, board_id, label_ids: Iterable) -> BoardState:
        label_ids = [str(i) for i in label_ids]
        async with self._lock:
            anterior = self._estado()
            boards = copy_boards(self.boards)
            board = self._board(boards, board_id)
            board.labels = [replace(l) for l in self.labels if l.id in label_ids]
            self.boards = boards

            await self._commit(
                'update_labels',
                lambda: self.gateway.update_labels(str(board_id), label_ids),
                anterior,
            )
            return board

    async def delete_label(self, label_id) -> None:
        """Remove a etiqueta da lista e de todos os boards"""
        label_id = str(label_id)
        async with self._lock:
            anterior = self._estado()
            self.labels = [l for l in self.labels if l.id != label_id]
            boards = copy_boards(self.boards)
            for board in boards:
                board.labels = [l for l in board.labels if l.id != label_id]
            self.boards = boards

            await self._commit(
                'delete_label',
                lambda: self.gateway.delete_label(label_id),
                anterior,
            )


def _campo(produto, nome):
    if isinstance(produto, dict):
        return produto.get(nome)
    return getattr(produto, nome, None)
