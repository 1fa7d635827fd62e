"""Tests for the HTTP endpoints (JSON + HTMX)."""

import json
import uuid
from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone

from apps.core import services
from apps.core.models import Board, Label, Task

pytestmark = pytest.mark.django_db


def post_json(client, url, dados):
    return client.post(url, data=json.dumps(dados), content_type='application/json')


class TestHealth:
    def test_health_check(self, client):
        response = client.get(reverse('core:health'))

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'


class TestAcesso:
    def test_login_required(self, client, board):
        response = client.get(reverse('board:kanban', args=[board.id]))

        assert response.status_code == 302
        assert '/contas/login/' in response['Location']

    def test_foreign_board_is_404(self, client, outro_user, board):
        client.force_login(outro_user)

        assert client.get(reverse('board:kanban', args=[board.id])).status_code == 404
        assert post_json(client, reverse('painel:excluir_board', args=[board.id]), {}).status_code == 404
        assert Board.objects.filter(id=board.id).exists()

    def test_foreign_task_is_404(self, client, outro_user, tarefas):
        client.force_login(outro_user)

        response = post_json(client, reverse('board:excluir_tarefa', args=[tarefas[0].id]), {})

        assert response.status_code == 404
        assert Task.objects.count() == 4


class TestKanban:
    def test_kanban_state(self, auth_client, board, tarefas):
        response = auth_client.get(reverse('board:kanban', args=[board.id]))
        dados = response.json()

        assert response.status_code == 200
        assert [c['title'] for c in dados['columns']] == ['To Do', 'In Progress', 'Review', 'Done']
        assert [t['title'] for t in dados['columns'][0]['tasks']] == ['a', 'b', 'c', 'd']
        assert dados['view_mode'] == 'table'
        assert dados['filters']['active_count'] == 0

    def test_kanban_filters(self, auth_client, board, colunas):
        hoje = timezone.localdate()
        services.create_task(board, {'title': 'Urgente', 'priority': 'high', 'assignee': 'Ana',
                                     'due_date': hoje})
        services.create_task(board, {'title': 'Depois', 'priority': 'low',
                                     'due_date': hoje + timedelta(days=1)})

        response = auth_client.get(
            reverse('board:kanban', args=[board.id]),
            {'priority': ['high', 'medium'], 'due_date': hoje.isoformat()},
        )
        dados = response.json()

        assert [t['title'] for t in dados['columns'][0]['tasks']] == ['Urgente']
        assert len(dados['columns']) == 4
        assert dados['filters']['active_count'] == 2
        assert dados['assignees'] == ['Ana']

    def test_create_task(self, auth_client, board, colunas):
        response = post_json(auth_client, reverse('board:criar_tarefa', args=[board.id]), {
            'title': 'Escrever testes',
            'column_id': str(colunas[1].id),
        })

        assert response.status_code == 201
        assert response.json()['task']['column_id'] == str(colunas[1].id)
        assert response.json()['task']['priority'] == 'medium'
        assert 'tarefaCriada' in response['HX-Trigger']

    def test_create_task_without_columns(self, auth_client, board):
        board.columns.all().delete()

        response = post_json(auth_client, reverse('board:criar_tarefa', args=[board.id]), {'title': 'X'})

        assert response.status_code == 409
        assert response.json() == {'success': False, 'error': 'No column found'}

    def test_create_task_in_unknown_column(self, auth_client, board):
        response = post_json(auth_client, reverse('board:criar_tarefa', args=[board.id]), {
            'title': 'X', 'column_id': str(uuid.uuid4()),
        })
        assert response.status_code == 404

    def test_create_task_form_errors(self, auth_client, board):
        response = post_json(auth_client, reverse('board:criar_tarefa', args=[board.id]), {'title': ''})

        assert response.status_code == 400
        assert 'title' in response.json()['error']

    def test_invalid_json(self, auth_client, board):
        response = auth_client.post(
            reverse('board:criar_tarefa', args=[board.id]),
            data='{quebrado', content_type='application/json',
        )
        assert response.status_code == 400

    def test_htmx_form_post(self, auth_client, board):
        response = auth_client.post(
            reverse('board:criar_tarefa', args=[board.id]),
            {'title': 'Via formulário', 'priority': 'low'},
            HTTP_HX_REQUEST='true',
        )
        assert response.status_code == 201

    def test_update_task(self, auth_client, tarefas):
        response = post_json(auth_client, reverse('board:atualizar_tarefa', args=[tarefas[0].id]), {
            'title': 'a revisada', 'priority': 'high', 'assignee': 'Bruno',
        })

        assert response.status_code == 200
        tarefas[0].refresh_from_db()
        assert (tarefas[0].title, tarefas[0].priority) == ('a revisada', 'high')

    def test_drag_task_to_other_column(self, auth_client, board, colunas, tarefas):
        response = post_json(auth_client, reverse('board:mover_tarefa', args=[board.id]), {
            'active_id': str(tarefas[0].id),
            'over_id': str(colunas[3].id),
        })
        dados = response.json()

        assert response.status_code == 200
        assert dados['moved'] is True
        assert [t['title'] for t in dados['columns'][3]['tasks']] == ['a']
        assert [t['sort_order'] for t in dados['columns'][0]['tasks']] == [0, 1, 2]

    def test_drag_outside_is_noop(self, auth_client, board, tarefas):
        response = post_json(auth_client, reverse('board:mover_tarefa', args=[board.id]), {
            'active_id': str(tarefas[0].id),
        })

        assert response.json()['moved'] is False
        assert 'HX-Trigger' not in response

    def test_move_task_to_position(self, auth_client, colunas, tarefas):
        response = post_json(auth_client, reverse('board:mover_tarefa_posicao', args=[tarefas[3].id]), {
            'column_id': str(colunas[0].id), 'index': 0,
        })

        assert response.status_code == 200
        assert [t['title'] for t in response.json()['columns'][0]['tasks']] == ['d', 'a', 'b', 'c']

    def test_persistence_failure_returns_current_state(self, auth_client, board, colunas, tarefas):
        with mock.patch('apps.board.views.services.move_task', side_effect=DatabaseError('caiu')):
            response = post_json(auth_client, reverse('board:mover_tarefa', args=[board.id]), {
                'active_id': str(tarefas[0].id),
                'over_id': str(colunas[1].id),
            })
        dados = response.json()

        assert response.status_code == 500
        assert dados['retry'] is True
        assert [t['title'] for t in dados['board_data'][0]['tasks']] == ['a', 'b', 'c', 'd']

    def test_reorder_columns(self, auth_client, board, colunas):
        response = post_json(auth_client, reverse('board:reordenar_colunas', args=[board.id]), {
            'active_id': str(colunas[3].id),
            'over_id': str(colunas[0].id),
        })

        assert response.json()['moved'] is True
        assert [c.title for c in services.get_columns(board)] == ['Done', 'To Do', 'In Progress', 'Review']

    def test_column_crud(self, auth_client, board, colunas):
        criada = post_json(auth_client, reverse('board:criar_coluna', args=[board.id]), {'title': 'Bloqueado'})
        column_id = criada.json()['column']['id']

        renomeada = post_json(auth_client, reverse('board:renomear_coluna', args=[column_id]), {'title': 'Pausado'})
        excluida = post_json(auth_client, reverse('board:excluir_coluna', args=[column_id]), {})

        assert criada.status_code == 201
        assert renomeada.json()['column']['title'] == 'Pausado'
        assert excluida.status_code == 200
        assert board.columns.count() == 4

    def test_view_mode_in_session(self, auth_client, board):
        response = post_json(auth_client, reverse('board:modo_visualizacao'), {'mode': 'cards'})
        assert response.status_code == 200

        dados = auth_client.get(reverse('board:kanban', args=[board.id])).json()
        assert dados['view_mode'] == 'cards'

        invalido = post_json(auth_client, reverse('board:modo_visualizacao'), {'mode': 'grid'})
        assert invalido.status_code == 400


class TestPainel:
    def test_dashboard(self, auth_client, board, tarefas):
        response = auth_client.get(reverse('painel:painel'))
        dados = response.json()

        assert response.status_code == 200
        assert [b['title'] for b in dados['boards']] == ['Site Institucional']
        assert dados['boards'][0]['total_tasks'] == 4
        assert dados['resumo']['total_boards'] == 1
        assert dados['view_mode'] == 'grid'

    def test_dashboard_filter_by_task_count(self, auth_client, user, board, tarefas):
        services.create_board_with_default_columns(user, 'Vazio')

        dados = auth_client.get(reverse('painel:painel'), {'min_tasks': '1'}).json()

        assert [b['title'] for b in dados['boards']] == ['Site Institucional']
        assert dados['filters']['active_count'] == 1

    def test_create_board(self, auth_client, user, board):
        response = post_json(auth_client, reverse('painel:criar_board'), {'title': 'Novo'})

        assert response.status_code == 201
        assert response.json()['board']['sort_order'] == 1
        assert Board.objects.get(title='Novo').columns.count() == 4

    def test_update_board(self, auth_client, board):
        response = post_json(auth_client, reverse('painel:atualizar_board', args=[board.id]), {
            'received_value': '500', 'total_value': '500',
        })

        assert response.status_code == 200
        assert response.json()['board']['status']['key'] == 'complete'

    def test_update_derived_field_is_rejected(self, auth_client, board):
        response = post_json(auth_client, reverse('painel:atualizar_board', args=[board.id]), {
            'annual': '999',
        })

        assert response.status_code == 409
        board.refresh_from_db()
        assert str(board.annual) == '0.00'

    def test_reorder_boards(self, auth_client, user, board):
        outro = services.create_board_with_default_columns(user, 'App')

        response = post_json(auth_client, reverse('painel:reordenar_boards'), {
            'active_id': str(outro.id), 'over_id': str(board.id),
        })

        assert response.json()['moved'] is True
        assert [b['title'] for b in response.json()['boards']] == ['App', 'Site Institucional']

    def test_replace_products(self, auth_client, board):
        inicio = (timezone.localdate() - timedelta(days=10)).isoformat()

        response = post_json(auth_client, reverse('painel:substituir_produtos', args=[board.id]), {
            'products': [
                {'name': 'Hospedagem', 'started_date': inicio, 'period': '1', 'price': '120'},
                {'name': 'Suporte', 'started_date': inicio, 'period': '0.5', 'price': '60'},
                {'name': '', 'started_date': inicio, 'period': '1', 'price': '10'},
            ],
        })
        dados = response.json()['board']

        assert response.status_code == 200
        assert dados['annual'] == '240.00'
        assert [p['name'] for p in dados['products']] == ['Hospedagem', 'Suporte']
        assert dados['status']['key'] == 'recurring'

    def test_replace_products_validation(self, auth_client, board):
        response = post_json(auth_client, reverse('painel:substituir_produtos', args=[board.id]), {
            'products': [{'name': 'X', 'started_date': '2024-01-01', 'period': '7', 'price': '1'}],
        })
        assert response.status_code == 400

    @pytest.mark.parametrize('dados', [{}, {'products': 'abc'}, {'products': {'x': 1}}, {'products': None}])
    def test_malformed_products_keep_existing(self, auth_client, board, dados):
        services.replace_board_products(board.id, [
            {'name': 'Hospedagem', 'started_date': timezone.localdate(), 'period': '1', 'price': '120'},
        ])

        response = post_json(auth_client, reverse('painel:substituir_produtos', args=[board.id]), dados)

        assert response.status_code == 400
        assert board.products.count() == 1

    def test_empty_list_clears_products(self, auth_client, board):
        services.replace_board_products(board.id, [
            {'name': 'Hospedagem', 'started_date': timezone.localdate(), 'period': '1', 'price': '120'},
        ])

        response = post_json(auth_client, reverse('painel:substituir_produtos', args=[board.id]), {'products': []})

        assert response.status_code == 200
        assert board.products.count() == 0

    def test_labels_flow(self, auth_client, user, board, outro_user):
        criada = post_json(auth_client, reverse('painel:etiquetas'), {'text': 'Urgente', 'color': 'bg-red-500'})
        label_id = criada.json()['label']['id']
        alheia = services.create_label(outro_user, 'Alheia', 'bg-gray-500')

        ok = post_json(auth_client, reverse('painel:atualizar_etiquetas', args=[board.id]), {'label_ids': [label_id]})
        negado = post_json(auth_client, reverse('painel:atualizar_etiquetas', args=[board.id]),
                           {'label_ids': [str(alheia.id)]})

        assert criada.status_code == 201
        assert [l['text'] for l in ok.json()['board']['labels']] == ['Urgente']
        assert negado.status_code == 403

        excluida = post_json(auth_client, reverse('painel:excluir_etiqueta', args=[label_id]), {})
        assert excluida.status_code == 200
        assert board.labels.count() == 0

    def test_cannot_delete_foreign_label(self, auth_client, outro_user):
        alheia = services.create_label(outro_user, 'Alheia', 'bg-gray-500')

        response = post_json(auth_client, reverse('painel:excluir_etiqueta', args=[alheia.id]), {})

        assert response.status_code == 404
        assert Label.objects.filter(id=alheia.id).exists()

    def test_saved_products_search(self, auth_client, user):
        services.create_saved_product(user, 'Hospedagem')
        services.create_saved_product(user, 'Domínio')

        response = auth_client.get(reverse('painel:produtos_salvos'), {'q': 'hosp'})

        assert response.json()['products'] == ['Hospedagem']

    def test_dashboard_view_mode(self, auth_client):
        post_json(auth_client, reverse('painel:modo_visualizacao'), {'mode': 'list'})

        assert auth_client.get(reverse('painel:painel')).json()['view_mode'] == 'list'


class TestAdmin:
    @pytest.mark.parametrize('modelo', ['board', 'column', 'task', 'label', 'savedproduct'])
    def test_changelists(self, client, admin_user, board, tarefas, modelo):
        client.force_login(admin_user)

        response = client.get(reverse(f'admin:core_{modelo}_changelist'))

        assert response.status_code == 200

    def test_board_status_badge(self, client, admin_user, board):
        services.update_board_fields(board.id, {'upcoming_value': 10})
        client.force_login(admin_user)

        response = client.get(reverse('admin:core_board_changelist'))

        assert 'Renovação pendente' in response.content.decode()
