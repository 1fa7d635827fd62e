# apps/board/views.py

import logging

from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.views.decorators.http import require_GET, require_POST

from apps.core import services
from apps.core.exceptions import BoardInvariantError, ReorderError
from apps.core.forms import (
    ColumnForm, DragForm, MoveTaskForm, TaskFilterForm, TaskForm, ViewModeForm
)
from apps.core.permissions import requer_dono_board, requer_dono_coluna, requer_dono_tarefa
from apps.core.utils import (
    dados_requisicao, notificar_board, resposta_erro, resposta_sucesso
)
from .filters import filter_tasks
from .ordering import resolve_flat_reorder, resolve_task_drop
from .state import to_dict

logger = logging.getLogger(__name__)

VIEW_MODE_KEY = 'board_view_mode'
VIEW_MODE_PADRAO = 'table'


def _estado_board(board, task_filter=None):
    colunas = services.build_kanban_state(board)
    if task_filter is not None:
        colunas = filter_tasks(colunas, task_filter)
    return [to_dict(c) for c in colunas]


def _erro_persistencia(board, acao, erro):
    """Resposta 500 com o estado atual do banco para o cliente se realinhar"""
    logger.error(f"❌ Falha ao persistir '{acao}' no board {board.id}: {erro}")
    return resposta_erro(
        'Não foi possível salvar a alteração. Tente novamente.',
        status=500,
        retry=True,
        board_data=_estado_board(board),
    )


def _ler_dados(request):
    try:
        return dados_requisicao(request), None
    except ValueError as e:
        return None, resposta_erro(str(e))


# === KANBAN ===

@login_required
@require_GET
@requer_dono_board
def board_kanban_view(request, board_id):
    """
    Estado do Kanban: colunas com tarefas, já filtradas pela query string
    """
    board = request.board  # Injetado pelo decorator

    filtro_form = TaskFilterForm(request.GET or None)
    task_filter = filtro_form.to_filter()
    responsaveis = sorted(set(
        t.assignee for t in services.get_tasks_by_board(board) if t.assignee
    ))

    return resposta_sucesso({
        'board': {'id': str(board.id), 'title': board.title, 'color': board.color},
        'columns': _estado_board(board, task_filter),
        'filters': {
            'active_count': task_filter.active_count,
            'errors': filtro_form.errors.get_json_data() if filtro_form.is_bound else {},
        },
        'assignees': responsaveis,
        'view_mode': request.session.get(VIEW_MODE_KEY, VIEW_MODE_PADRAO),
        'websocket_group': f'board_{board_id}',
    })


# === TAREFAS ===

@login_required
@require_POST
@requer_dono_board
def criar_tarefa(request, board_id):
    """Cria tarefa no fim da coluna (primeira coluna se não informada)"""
    board = request.board
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = TaskForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    column_id = form.cleaned_data.get('column_id')
    if column_id and not board.columns.filter(id=column_id).exists():
        return resposta_erro('Coluna não encontrada', status=404)

    try:
        task = services.create_task(board, form.dados(), column_id=column_id)
    except BoardInvariantError as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(board, 'create_task', e)

    logger.info(f"📝 Tarefa criada - {task.title} no board {board.id}")
    notificar_board(board.id, 'task_created', request.user)
    return resposta_sucesso(
        {'task': to_dict(services.build_task_state(task))},
        evento='tarefaCriada',
        status=201,
    )


@login_required
@require_POST
@requer_dono_tarefa
def atualizar_tarefa(request, task_id):
    task = request.task
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = TaskForm(dados, instance=task)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    try:
        task = services.update_task(task.id, form.dados())
    except DatabaseError as e:
        return _erro_persistencia(request.board, 'update_task', e)

    notificar_board(request.board.id, 'task_updated', request.user)
    return resposta_sucesso(
        {'task': to_dict(services.build_task_state(task))},
        evento='tarefaAtualizada',
    )


@login_required
@require_POST
@requer_dono_tarefa
def excluir_tarefa(request, task_id):
    board = request.board
    try:
        services.delete_task(task_id)
    except DatabaseError as e:
        return _erro_persistencia(board, 'delete_task', e)

    notificar_board(board.id, 'task_deleted', request.user)
    return resposta_sucesso(evento='tarefaExcluida')


@login_required
@require_POST
@requer_dono_board
def mover_tarefa(request, board_id):
    """
    Fim do arraste de uma tarefa (drag-and-drop)
    Payload: active_id (tarefa) e over_id (coluna ou tarefa sob o cursor)
    """
    board = request.board
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = DragForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    colunas = services.build_kanban_state(board)
    containers = {c.id: [t.id for t in c.tasks] for c in colunas}
    comando = resolve_task_drop(
        containers, form.cleaned_data['active_id'], form.cleaned_data['over_id']
    )
    if comando is None:
        return resposta_sucesso({'moved': False, 'columns': [to_dict(c) for c in colunas]})

    try:
        services.move_task(comando.item_id, comando.container_id, comando.index)
    except (BoardInvariantError, ReorderError) as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(board, 'move_task', e)

    notificar_board(board.id, 'task_moved', request.user)
    return resposta_sucesso(
        {'moved': True, 'columns': _estado_board(board)},
        evento='tarefaMovida',
    )


@login_required
@require_POST
@requer_dono_tarefa
def mover_tarefa_posicao(request, task_id):
    """Move a tarefa para uma coluna e posição explícitas"""
    board = request.board
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = MoveTaskForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    column_id = form.cleaned_data['column_id']
    if not board.columns.filter(id=column_id).exists():
        return resposta_erro('Coluna não encontrada', status=404)

    try:
        services.move_task(task_id, column_id, form.cleaned_data['index'])
    except (BoardInvariantError, ReorderError) as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(board, 'move_task', e)

    notificar_board(board.id, 'task_moved', request.user)
    return resposta_sucesso({'columns': _estado_board(board)}, evento='tarefaMovida')


# === COLUNAS ===

@login_required
@require_POST
@requer_dono_board
def criar_coluna(request, board_id):
    board = request.board
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = ColumnForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    try:
        column = services.create_column(board, form.cleaned_data['title'])
    except DatabaseError as e:
        return _erro_persistencia(board, 'create_column', e)

    notificar_board(board.id, 'column_created', request.user)
    return resposta_sucesso(
        {'column': {'id': str(column.id), 'title': column.title, 'sort_order': column.sort_order}},
        evento='colunaCriada',
        status=201,
    )


@login_required
@require_POST
@requer_dono_coluna
def renomear_coluna(request, column_id):
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = ColumnForm(dados, instance=request.column)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    try:
        column = services.rename_column(column_id, form.cleaned_data['title'])
    except DatabaseError as e:
        return _erro_persistencia(request.board, 'rename_column', e)

    notificar_board(request.board.id, 'column_renamed', request.user)
    return resposta_sucesso({'column': {'id': str(column.id), 'title': column.title}})


@login_required
@require_POST
@requer_dono_coluna
def excluir_coluna(request, column_id):
    board = request.board
    try:
        services.delete_column(column_id)
    except DatabaseError as e:
        return _erro_persistencia(board, 'delete_column', e)

    notificar_board(board.id, 'column_deleted', request.user)
    return resposta_sucesso(evento='colunaExcluida')


@login_required
@require_POST
@requer_dono_board
def reordenar_colunas(request, board_id):
    """Fim do arraste de uma coluna"""
    board = request.board
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = DragForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    ids = [str(c.id) for c in services.get_columns(board)]
    updates = resolve_flat_reorder(ids, form.cleaned_data['active_id'], form.cleaned_data['over_id'])
    if updates is None:
        return resposta_sucesso({'moved': False})

    try:
        services.reorder_columns(board.id, updates)
    except BoardInvariantError as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(board, 'reorder_columns', e)

    logger.info(f"↔️ Colunas reordenadas no board {board.id}")
    notificar_board(board.id, 'columns_reordered', request.user)
    return resposta_sucesso(
        {'moved': True, 'columns': _estado_board(board)},
        evento='colunasReordenadas',
    )


# === PREFERÊNCIAS ===

@login_required
@require_POST
def alterar_modo_visualizacao(request):
    """Alterna cards/tabela (guardado na sessão)"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = ViewModeForm(dados, chave=VIEW_MODE_KEY)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    request.session[VIEW_MODE_KEY] = form.cleaned_data['mode']
    return resposta_sucesso({'view_mode': form.cleaned_data['mode']})
