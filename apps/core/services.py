# apps/core/services.py

"""
Camada de acesso a dados do Fluxo Board

Funções finas sobre o ORM, uma por operação de persistência. Todas as
escritas que tocam mais de uma linha rodam em transação, e toda
reordenação grava uma numeração contígua 0..n-1.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from django.db import transaction
from django.db.models import Count, Max, Prefetch

from apps.board.ordering import MoveCommand, OrderUpdate, apply_move
from apps.board.state import (
    BoardState, ColumnState, LabelState, ProductState, TaskState
)
from .exceptions import BoardInvariantError
from .models import Board, Column, Label, Product, SavedProduct, Task

logger = logging.getLogger(__name__)

# Campos do board editáveis diretamente (annual e ending_date são derivados)
CAMPOS_EDITAVEIS_BOARD = {
    'title', 'color', 'total_value', 'upcoming_value',
    'received_value', 'started_date', 'notes',
}


# === BOARDS ===

def _boards_queryset(**filtro):
    return (
        Board.objects.filter(**filtro)
        .annotate(total_tasks=Count('columns__tasks', distinct=True))
        .prefetch_related('labels', 'products')
        .order_by('sort_order', '-created_at')
    )


def get_boards(user):
    """
    Boards do usuário ordenados por sort_order (empate: mais novo primeiro)
    Anotados com total_tasks
    """
    return _boards_queryset(user=user)


def get_board(user, board_id):
    """Board do usuário (Board.DoesNotExist se não for dele)"""
    return Board.objects.get(id=board_id, user=user)


@transaction.atomic
def create_board_with_default_columns(user, title: str, color: Optional[str] = None) -> Board:
    """
    Cria board no fim da lista do usuário
    As colunas padrão são criadas pelo sinal post_save
    """
    maximo = Board.objects.filter(user=user).aggregate(m=Max('sort_order'))['m']
    board = Board.objects.create(
        user=user,
        title=title,
        color=color or 'bg-blue-500',
        sort_order=0 if maximo is None else maximo + 1,
    )
    logger.info(f"📋 Board criado - {board.title} ({board.id})")
    return board


def update_board_fields(board_id, fields: Dict) -> Board:
    """Atualiza campos simples do board"""
    invalidos = set(fields) - CAMPOS_EDITAVEIS_BOARD
    if invalidos:
        raise BoardInvariantError(f"Campos não editáveis: {', '.join(sorted(invalidos))}")

    board = Board.objects.get(id=board_id)
    for nome, valor in fields.items():
        setattr(board, nome, valor)
    board.save(update_fields=list(fields) + ['updated_at'])
    return board


def delete_board(board_id) -> None:
    Board.objects.filter(id=board_id).delete()


def _gravar_ordem(model, updates: Sequence[OrderUpdate], **escopo) -> None:
    objetos = {str(o.id): o for o in model.objects.filter(id__in=[u.id for u in updates], **escopo)}
    if len(objetos) != len(updates):
        raise BoardInvariantError("Reordenação referencia itens fora do escopo")
    for update in updates:
        objetos[str(update.id)].sort_order = update.sort_order
    model.objects.bulk_update(list(objetos.values()), ['sort_order'])


@transaction.atomic
def reorder_boards(user, updates: Sequence[OrderUpdate]) -> None:
    """Grava a nova ordem dos boards do usuário"""
    _gravar_ordem(Board, updates, user=user)


# === COLUNAS ===

def get_columns(board) -> List[Column]:
    return list(board.columns.order_by('sort_order', 'created_at'))


@transaction.atomic
def create_column(board, title: str) -> Column:
    """Cria coluna no fim do board"""
    maximo = board.columns.aggregate(m=Max('sort_order'))['m']
    return Column.objects.create(
        board=board,
        title=title,
        sort_order=0 if maximo is None else maximo + 1,
    )


def rename_column(column_id, title: str) -> Column:
    column = Column.objects.get(id=column_id)
    column.title = title
    column.save(update_fields=['title'])
    return column


def delete_column(column_id) -> None:
    """Remove a coluna e suas tarefas"""
    Column.objects.filter(id=column_id).delete()


@transaction.atomic
def reorder_columns(board_id, updates: Sequence[OrderUpdate]) -> None:
    _gravar_ordem(Column, updates, board_id=board_id)


def update_order(scope: str, owner_id, updates: Sequence[OrderUpdate]) -> None:
    """
    Persistência genérica de reordenação por escopo
    scope = 'boards' (owner_id = usuário) ou 'columns' (owner_id = board)
    """
    if scope == 'boards':
        with transaction.atomic():
            _gravar_ordem(Board, updates, user_id=owner_id)
    elif scope == 'columns':
        reorder_columns(owner_id, updates)
    else:
        raise BoardInvariantError(f"Escopo de reordenação inválido: {scope}")


# === TAREFAS ===

def get_tasks_by_board(board) -> List[Task]:
    return list(
        Task.objects.filter(column__board=board).order_by('sort_order', '-updated_at')
    )


@transaction.atomic
def create_task(board, data: Dict, column_id=None) -> Task:
    """
    Cria tarefa no fim da coluna informada (ou da primeira coluna)
    """
    if column_id:
        column = board.columns.get(id=column_id)
    else:
        column = board.columns.order_by('sort_order', 'created_at').first()
        if column is None:
            raise BoardInvariantError("No column found")

    posicao = column.tasks.count()
    return Task.objects.create(column=column, sort_order=posicao, **data)


def update_task(task_id, data: Dict) -> Task:
    task = Task.objects.get(id=task_id)
    for nome, valor in data.items():
        setattr(task, nome, valor)
    task.save()
    return task


@transaction.atomic
def delete_task(task_id) -> None:
    """Remove a tarefa e compacta a ordem da coluna"""
    task = Task.objects.select_for_update().get(id=task_id)
    column = task.column
    task.delete()
    restantes = list(column.tasks.order_by('sort_order', '-updated_at'))
    for idx, t in enumerate(restantes):
        t.sort_order = idx
    Task.objects.bulk_update(restantes, ['sort_order'])


@transaction.atomic
def move_task(task_id, column_id, new_index: int) -> Task:
    """
    Move a tarefa para (column_id, new_index) e renumera origem e destino

    new_index segue a convenção do motor de reordenação: posição na
    coluna de destino antes da remoção da própria tarefa.
    """
    task = Task.objects.select_related('column').get(id=task_id)
    destino = Column.objects.get(id=column_id)
    if destino.board_id != task.column.board_id:
        raise BoardInvariantError("Tarefa não pode sair do board atual")

    colunas_afetadas = {task.column_id, destino.id}
    tarefas = {}
    containers = {}
    for cid in colunas_afetadas:
        lista = list(Task.objects.filter(column_id=cid).order_by('sort_order', '-updated_at'))
        tarefas.update({str(t.id): t for t in lista})
        containers[str(cid)] = [str(t.id) for t in lista]

    nova_ordem = apply_move(containers, MoveCommand(str(task.id), str(destino.id), new_index))

    alteradas = []
    for cid, ids in nova_ordem.items():
        for idx, tid in enumerate(ids):
            t = tarefas[tid]
            if t.sort_order != idx or str(t.column_id) != cid:
                t.sort_order = idx
                t.column_id = cid
                alteradas.append(t)
    Task.objects.bulk_update(alteradas, ['sort_order', 'column'])

    task.refresh_from_db()
    logger.info(f"🔀 Tarefa {task.id} movida para {destino.title} (posição {task.sort_order})")
    return task


# === ETIQUETAS ===

def get_labels(user_id) -> List[Label]:
    return list(Label.objects.filter(user_id=user_id).order_by('-created_at'))


def create_label(user, text: str, color: str) -> Label:
    return Label.objects.create(user=user, text=text, color=color)


def delete_label(label_id) -> None:
    """Remove a etiqueta - a relação com os boards vai junto"""
    Label.objects.filter(id=label_id).delete()


@transaction.atomic
def update_board_labels(board_id, label_ids: Iterable) -> None:
    """Substitui o conjunto de etiquetas do board"""
    board = Board.objects.get(id=board_id)
    label_ids = list(label_ids)
    labels = list(Label.objects.filter(id__in=label_ids, user_id=board.user_id))
    if len(labels) != len(set(str(i) for i in label_ids)):
        raise BoardInvariantError("Etiqueta não pertence ao usuário")
    board.labels.set(labels)


# === PRODUTOS ===

def get_saved_products(user) -> List[SavedProduct]:
    return list(SavedProduct.objects.filter(user=user).order_by('name'))


def create_saved_product(user, name: str) -> SavedProduct:
    produto, _ = SavedProduct.objects.get_or_create(user=user, name=name.strip())
    return produto


def _valor_produto(produto, nome):
    if isinstance(produto, dict):
        return produto.get(nome)
    return getattr(produto, nome, None)


@transaction.atomic
def replace_board_products(board_id, products: Sequence) -> Board:
    """
    Substitui todos os produtos do board e recalcula os derivados

    Nomes ainda não salvos entram no dicionário do usuário.
    """
    board = Board.objects.select_for_update().get(id=board_id)
    board.products.all().delete()

    novos = []
    for idx, produto in enumerate(products):
        novos.append(Product(
            board=board,
            name=_valor_produto(produto, 'name').strip(),
            started_date=_valor_produto(produto, 'started_date'),
            period=Decimal(str(_valor_produto(produto, 'period'))),
            price=Decimal(str(_valor_produto(produto, 'price'))),
            cost=Decimal(str(_valor_produto(produto, 'cost') or 0)),
            sort_order=idx,
        ))
    Product.objects.bulk_create(novos)

    existentes = set(
        SavedProduct.objects.filter(user_id=board.user_id).values_list('name', flat=True)
    )
    for nome in {p.name for p in novos} - existentes:
        SavedProduct.objects.create(user_id=board.user_id, name=nome)

    board.refresh_aggregates()
    logger.info(f"💰 Produtos do board {board.id} substituídos ({len(novos)} itens)")
    return board


# === SNAPSHOTS ===

def build_board_state(board: Board) -> BoardState:
    """Converte um Board do ORM em BoardState"""
    return BoardState(
        id=str(board.id),
        title=board.title,
        color=board.color,
        sort_order=board.sort_order,
        total_value=board.total_value,
        upcoming_value=board.upcoming_value,
        received_value=board.received_value,
        annual=board.annual,
        started_date=board.started_date,
        ending_date=board.ending_date,
        notes=board.notes,
        created_at=board.created_at,
        total_tasks=getattr(board, 'total_tasks', 0) or 0,
        labels=[
            LabelState(id=str(l.id), text=l.text, color=l.color)
            for l in board.labels.all()
        ],
        products=[
            ProductState(
                id=str(p.id),
                name=p.name,
                started_date=p.started_date,
                period=p.period,
                price=p.price,
                cost=p.cost,
                sort_order=p.sort_order,
            )
            for p in board.products.all()
        ],
    )


def build_task_state(task: Task) -> TaskState:
    return TaskState(
        id=str(task.id),
        column_id=str(task.column_id),
        title=task.title,
        description=task.description,
        assignee=task.assignee,
        due_date=task.due_date,
        priority=task.priority,
        sort_order=task.sort_order,
    )


def build_kanban_state(board: Board) -> List[ColumnState]:
    """Colunas do board com suas tarefas, na ordem de exibição"""
    colunas = board.columns.order_by('sort_order', 'created_at').prefetch_related(
        Prefetch('tasks', queryset=Task.objects.order_by('sort_order', '-updated_at'))
    )
    return [
        ColumnState(
            id=str(col.id),
            board_id=str(board.id),
            title=col.title,
            sort_order=col.sort_order,
            tasks=[build_task_state(t) for t in col.tasks.all()],
        )
        for col in colunas
    ]


def load_boards_state(user_id) -> List[BoardState]:
    return [build_board_state(b) for b in _boards_queryset(user_id=user_id)]


def load_labels_state(user_id) -> List[LabelState]:
    return [
        LabelState(id=str(l.id), text=l.text, color=l.color)
        for l in get_labels(user_id)
    ]
