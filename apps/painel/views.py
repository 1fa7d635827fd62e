# apps/painel/views.py

import json
import logging
from decimal import Decimal

from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import Http404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.board.filters import filter_boards
from apps.board.ordering import resolve_flat_reorder
from apps.board.state import to_dict
from apps.core import services
from apps.core.exceptions import BoardInvariantError
from apps.core.forms import (
    BoardFieldsForm, BoardFilterForm, BoardForm, DragForm, LabelForm,
    LabelsSelectionForm, SavedProductForm, ViewModeForm, clean_products
)
from apps.core.models import Label
from apps.core.permissions import FluxoPermissions, requer_dono_board
from apps.core.utils import (
    dados_requisicao, notificar_board, notificar_painel, resposta_erro, resposta_sucesso
)
from .status import STATUS_META

logger = logging.getLogger(__name__)

VIEW_MODE_KEY = 'dashboard_view_mode'
VIEW_MODE_PADRAO = 'grid'


def _estado_boards(user, board_filter=None):
    boards = services.load_boards_state(user.id)
    if board_filter is not None:
        boards = filter_boards(boards, board_filter)
    return boards


def _erro_persistencia(user, acao, erro):
    logger.error(f"❌ Falha ao persistir '{acao}' no painel de {user.username}: {erro}")
    return resposta_erro(
        'Não foi possível salvar a alteração. Tente novamente.',
        status=500,
        retry=True,
        board_data=[to_dict(b) for b in _estado_boards(user)],
    )


def _ler_dados(request):
    try:
        return dados_requisicao(request), None
    except ValueError as e:
        return None, resposta_erro(str(e))


def calcular_resumo(boards):
    """
    Totais exibidos no topo do painel
    """
    por_status = {chave: 0 for chave in STATUS_META}
    for board in boards:
        if board.status in por_status:
            por_status[board.status] += 1

    return {
        'total_boards': len(boards),
        'total_tasks': sum(b.total_tasks for b in boards),
        'annual_total': str(sum((b.annual for b in boards), Decimal('0'))),
        'upcoming_total': str(sum((b.upcoming_value for b in boards), Decimal('0'))),
        'por_status': por_status,
    }


# === PAINEL ===

@login_required
@require_GET
def painel_principal(request):
    """
    Painel com os boards do usuário
    Filtros por data de criação e quantidade de tarefas via query string
    """
    filtro_form = BoardFilterForm(request.GET or None)
    board_filter = filtro_form.to_filter()
    boards = _estado_boards(request.user, board_filter)

    return resposta_sucesso({
        'boards': [to_dict(b) for b in boards],
        'resumo': calcular_resumo(boards),
        'labels': [to_dict(l) for l in services.load_labels_state(request.user.id)],
        'filters': {
            'active_count': board_filter.active_count,
            'errors': filtro_form.errors.get_json_data() if filtro_form.is_bound else {},
        },
        'status_meta': STATUS_META,
        'view_mode': request.session.get(VIEW_MODE_KEY, VIEW_MODE_PADRAO),
    })


# === BOARDS ===

@login_required
@require_POST
def criar_board(request):
    """Cria board no fim da lista, já com as colunas padrão"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = BoardForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    try:
        board = services.create_board_with_default_columns(
            request.user,
            form.cleaned_data['title'],
            form.cleaned_data.get('color') or None,
        )
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'create_board', e)

    notificar_painel(request.user.id, 'board_created')
    return resposta_sucesso(
        {'board': to_dict(services.build_board_state(services.get_boards(request.user).get(id=board.id)))},
        evento='boardCriado',
        status=201,
    )


@login_required
@require_POST
@requer_dono_board
def atualizar_board(request, board_id):
    """Atualização parcial (título, cor, valores, data de início, notas)"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    nao_editaveis = set(dados) - set(BoardFieldsForm.base_fields) - {'csrfmiddlewaretoken'}
    if nao_editaveis:
        return resposta_erro(
            f"Campos não editáveis: {', '.join(sorted(nao_editaveis))}", status=409
        )

    form = BoardFieldsForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    try:
        services.update_board_fields(board_id, form.campos_alterados())
    except BoardInvariantError as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'update_board_fields', e)

    notificar_painel(request.user.id, 'board_updated')
    board = services.get_boards(request.user).get(id=board_id)
    return resposta_sucesso({'board': to_dict(services.build_board_state(board))}, evento='boardAtualizado')


@login_required
@require_POST
@requer_dono_board
def excluir_board(request, board_id):
    try:
        services.delete_board(board_id)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'delete_board', e)

    logger.info(f"🗑️ Board {board_id} excluído por {request.user.username}")
    notificar_painel(request.user.id, 'board_deleted')
    return resposta_sucesso(evento='boardExcluido')


@login_required
@require_POST
def reordenar_boards(request):
    """Fim do arraste de um card de board"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = DragForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    ids = [str(b.id) for b in services.get_boards(request.user)]
    updates = resolve_flat_reorder(ids, form.cleaned_data['active_id'], form.cleaned_data['over_id'])
    if updates is None:
        return resposta_sucesso({'moved': False})

    try:
        services.reorder_boards(request.user, updates)
    except BoardInvariantError as e:
        return resposta_erro(str(e), status=409)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'reorder_boards', e)

    logger.info(f"↔️ Boards reordenados por {request.user.username}")
    notificar_painel(request.user.id, 'boards_reordered')
    return resposta_sucesso(
        {'moved': True, 'boards': [to_dict(b) for b in _estado_boards(request.user)]},
        evento='boardsReordenados',
    )


@login_required
@require_POST
@requer_dono_board
def substituir_produtos(request, board_id):
    """
    Substitui a lista de produtos do board
    Linhas incompletas são descartadas; annual e ending_date são recalculados
    """
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    linhas = dados.get('products')
    if isinstance(linhas, str):
        try:
            linhas = json.loads(linhas)
        except json.JSONDecodeError:
            return resposta_erro('Lista de produtos inválida')

    produtos, erros = clean_products(linhas)
    if erros:
        return resposta_erro(erros)

    try:
        services.replace_board_products(board_id, produtos)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'replace_products', e)

    notificar_painel(request.user.id, 'products_replaced')
    board = services.get_boards(request.user).get(id=board_id)
    return resposta_sucesso({'board': to_dict(services.build_board_state(board))}, evento='produtosAtualizados')


@login_required
@require_POST
@requer_dono_board
def atualizar_etiquetas(request, board_id):
    """Substitui o conjunto de etiquetas do board"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    label_ids = dados.get('label_ids')
    if hasattr(dados, 'getlist'):
        label_ids = dados.getlist('label_ids')
    form = LabelsSelectionForm({'label_ids': label_ids or []})
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    ids = form.cleaned_data['label_ids']
    if Label.objects.filter(id__in=ids, user=request.user).count() != len(set(ids)):
        return resposta_erro('Etiqueta não encontrada', status=403)

    try:
        services.update_board_labels(board_id, ids)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'update_labels', e)

    notificar_painel(request.user.id, 'labels_updated')
    board = services.get_boards(request.user).get(id=board_id)
    return resposta_sucesso({'board': to_dict(services.build_board_state(board))}, evento='etiquetasAtualizadas')


# === ETIQUETAS ===

@login_required
@require_http_methods(['GET', 'POST'])
def etiquetas(request):
    """Lista (GET) ou cria (POST) etiquetas do usuário"""
    if request.method == 'GET':
        return resposta_sucesso({
            'labels': [to_dict(l) for l in services.load_labels_state(request.user.id)]
        })

    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = LabelForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    label = services.create_label(request.user, form.cleaned_data['text'], form.cleaned_data['color'])
    return resposta_sucesso(
        {'label': {'id': str(label.id), 'text': label.text, 'color': label.color}},
        evento='etiquetaCriada',
        status=201,
    )


@login_required
@require_POST
def excluir_etiqueta(request, label_id):
    """Remove a etiqueta de todos os boards do usuário"""
    try:
        label = Label.objects.get(id=label_id)
    except Label.DoesNotExist:
        raise Http404("Etiqueta não encontrada")
    if not FluxoPermissions.is_dono(request.user, label):
        raise Http404("Etiqueta não encontrada")

    boards_afetados = list(label.boards.values_list('id', flat=True))
    try:
        services.delete_label(label_id)
    except DatabaseError as e:
        return _erro_persistencia(request.user, 'delete_label', e)

    notificar_painel(request.user.id, 'label_deleted')
    for board_id in boards_afetados:
        notificar_board(board_id, 'label_deleted', request.user)
    return resposta_sucesso(evento='etiquetaExcluida')


# === PRODUTOS SALVOS ===

@login_required
@require_http_methods(['GET', 'POST'])
def produtos_salvos(request):
    """Dicionário de nomes de produto (autocomplete do editor)"""
    if request.method == 'GET':
        busca = (request.GET.get('q') or '').strip().lower()
        nomes = [p.name for p in services.get_saved_products(request.user)]
        if busca:
            nomes = [n for n in nomes if busca in n.lower()]
        return resposta_sucesso({'products': nomes})

    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = SavedProductForm(dados)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    produto = services.create_saved_product(request.user, form.cleaned_data['name'])
    return resposta_sucesso({'product': produto.name}, status=201)


# === PREFERÊNCIAS ===

@login_required
@require_POST
def alterar_modo_visualizacao(request):
    """Alterna grade/lista (guardado na sessão)"""
    dados, erro = _ler_dados(request)
    if erro:
        return erro

    form = ViewModeForm(dados, chave=VIEW_MODE_KEY)
    if not form.is_valid():
        return resposta_erro(form.errors.get_json_data())

    request.session[VIEW_MODE_KEY] = form.cleaned_data['mode']
    return resposta_sucesso({'view_mode': form.cleaned_data['mode']})
