"""Tests for the board and dashboard WebSocket consumers."""

from datetime import timedelta
from unittest import mock

import pytest
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.utils import timezone

from apps.board.routing import websocket_urlpatterns
from apps.core import services
from apps.core.models import Board

pytestmark = [pytest.mark.anyio, pytest.mark.django_db(transaction=True)]

application = URLRouter(websocket_urlpatterns)


async def conectar(path, user):
    communicator = WebsocketCommunicator(application, path)
    communicator.scope['user'] = user
    connected, _ = await communicator.connect()
    return communicator, connected


@database_sync_to_async
def titulos_da_coluna(column):
    return list(column.tasks.order_by('sort_order').values_list('title', flat=True))


@database_sync_to_async
def recarregar(board):
    return Board.objects.get(id=board.id)


class TestBoardConsumer:
    async def test_anonymous_is_rejected(self, board):
        _, connected = await conectar(f'/ws/board/{board.id}/', AnonymousUser())
        assert not connected

    async def test_foreign_board_is_rejected(self, board, outro_user):
        _, connected = await conectar(f'/ws/board/{board.id}/', outro_user)
        assert not connected

    async def test_ping(self, user, board):
        communicator, connected = await conectar(f'/ws/board/{board.id}/', user)
        assert connected

        await communicator.send_json_to({'type': 'ping'})
        resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'pong'
        assert resposta['interval'] == 30
        await communicator.disconnect()

    async def test_drag_end_persists_and_replies(self, user, board, colunas, tarefas):
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        await communicator.send_json_to({
            'type': 'drag_end',
            'active_id': str(tarefas[0].id),
            'over_id': str(tarefas[2].id),
        })
        resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'board_sync'
        assert resposta['changed'] is True
        assert [t['title'] for t in resposta['board_data'][0]['tasks']] == ['b', 'c', 'a', 'd']
        assert await titulos_da_coluna(colunas[0]) == ['b', 'c', 'a', 'd']
        await communicator.disconnect()

    async def test_noop_drag(self, user, board, tarefas):
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        await communicator.send_json_to({'type': 'drag_end', 'active_id': str(tarefas[0].id)})
        resposta = await communicator.receive_json_from()

        assert resposta['changed'] is False
        await communicator.disconnect()

    async def test_reorder_columns(self, user, board, colunas):
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        await communicator.send_json_to({
            'type': 'reorder_columns',
            'active_id': str(colunas[0].id),
            'over_id': str(colunas[1].id),
        })
        resposta = await communicator.receive_json_from()

        assert [c['title'] for c in resposta['board_data']] == ['In Progress', 'To Do', 'Review', 'Done']
        await communicator.disconnect()

    async def test_other_connections_are_refreshed(self, user, board, colunas, tarefas):
        origem, _ = await conectar(f'/ws/board/{board.id}/', user)
        outra, _ = await conectar(f'/ws/board/{board.id}/', user)

        await origem.send_json_to({
            'type': 'drag_end',
            'active_id': str(tarefas[3].id),
            'over_id': str(colunas[1].id),
        })
        await origem.receive_json_from()
        evento = await outra.receive_json_from()

        assert evento['type'] == 'board_refresh'
        assert evento['message']['motivo'] == 'drag_end'
        assert [t['title'] for t in evento['board_data'][1]['tasks']] == ['d']
        assert await origem.receive_nothing()
        await origem.disconnect()
        await outra.disconnect()

    async def test_persistence_failure_rolls_back(self, user, board, colunas, tarefas):
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        with mock.patch('apps.core.services.move_task', side_effect=DatabaseError('caiu')):
            await communicator.send_json_to({
                'type': 'drag_end',
                'active_id': str(tarefas[0].id),
                'over_id': str(colunas[2].id),
            })
            resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'error'
        assert resposta['retry'] is True
        assert [t['title'] for t in resposta['board_data'][0]['tasks']] == ['a', 'b', 'c', 'd']
        assert resposta['board_data'][2]['tasks'] == []
        await communicator.disconnect()

    async def test_sync_with_filters(self, user, board, colunas):
        await database_sync_to_async(services.create_task)(board, {'title': 'Alta', 'priority': 'high'})
        await database_sync_to_async(services.create_task)(board, {'title': 'Baixa', 'priority': 'low'})
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        await communicator.send_json_to({'type': 'sync_board', 'filters': {'priority': ['high']}})
        resposta = await communicator.receive_json_from()

        assert [t['title'] for t in resposta['board_data'][0]['tasks']] == ['Alta']
        await communicator.disconnect()

    async def test_invalid_messages(self, user, board):
        communicator, _ = await conectar(f'/ws/board/{board.id}/', user)

        await communicator.send_to(text_data='{quebrado')
        assert (await communicator.receive_json_from())['type'] == 'validation_error'

        await communicator.send_json_to({'type': 'voar'})
        assert (await communicator.receive_json_from())['type'] == 'validation_error'

        await communicator.send_json_to({'type': 'drag_end'})
        resposta = await communicator.receive_json_from()
        assert resposta['type'] == 'validation_error'
        assert 'active_id' in resposta['errors']
        await communicator.disconnect()


class TestDashboardConsumer:
    async def test_anonymous_is_rejected(self):
        _, connected = await conectar('/ws/painel/', AnonymousUser())
        assert not connected

    async def test_update_board(self, user, board):
        communicator, connected = await conectar('/ws/painel/', user)
        assert connected

        await communicator.send_json_to({
            'type': 'update_board',
            'board_id': str(board.id),
            'fields': {'title': 'Portal', 'upcoming_value': '80'},
        })
        resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'boards_sync'
        assert resposta['board_data']['boards'][0]['title'] == 'Portal'
        assert resposta['board_data']['boards'][0]['status']['key'] == 'pending_renewal'
        assert (await recarregar(board)).title == 'Portal'
        await communicator.disconnect()

    async def test_derived_fields_are_rejected(self, user, board):
        communicator, _ = await conectar('/ws/painel/', user)

        await communicator.send_json_to({
            'type': 'update_board',
            'board_id': str(board.id),
            'fields': {'annual': '1000'},
        })
        resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'validation_error'
        await communicator.disconnect()

    async def test_replace_products(self, user, board):
        communicator, _ = await conectar('/ws/painel/', user)
        inicio = (timezone.localdate() - timedelta(days=10)).isoformat()

        await communicator.send_json_to({
            'type': 'replace_products',
            'board_id': str(board.id),
            'products': [
                {'name': 'Hospedagem', 'started_date': inicio, 'period': '1', 'price': '120'},
                {'name': 'Suporte', 'started_date': inicio, 'period': '0.5', 'price': '60'},
            ],
        })
        resposta = await communicator.receive_json_from()
        enviado = resposta['board_data']['boards'][0]

        assert enviado['annual'] == '240.00'
        assert all(p['id'].startswith('temp-') for p in enviado['products'])
        assert (await recarregar(board)).annual == 240
        await communicator.disconnect()

    @pytest.mark.parametrize('extra', [{}, {'products': 'abc'}, {'products': {'x': 1}}])
    async def test_malformed_products_are_rejected(self, user, board, extra):
        await database_sync_to_async(services.replace_board_products)(board.id, [
            {'name': 'Hospedagem', 'started_date': timezone.localdate(), 'period': '1', 'price': '120'},
        ])
        communicator, _ = await conectar('/ws/painel/', user)

        await communicator.send_json_to({'type': 'replace_products', 'board_id': str(board.id), **extra})
        resposta = await communicator.receive_json_from()

        assert resposta['type'] == 'validation_error'
        assert 'products' in resposta['errors']
        assert await database_sync_to_async(board.products.count)() == 1
        await communicator.disconnect()

    async def test_labels(self, user, board):
        label = await database_sync_to_async(services.create_label)(user, 'Urgente', 'bg-red-500')
        communicator, _ = await conectar('/ws/painel/', user)

        await communicator.send_json_to({
            'type': 'update_labels',
            'board_id': str(board.id),
            'label_ids': [str(label.id)],
        })
        resposta = await communicator.receive_json_from()
        assert [l['text'] for l in resposta['board_data']['boards'][0]['labels']] == ['Urgente']

        await communicator.send_json_to({'type': 'delete_label', 'label_id': str(label.id)})
        resposta = await communicator.receive_json_from()
        assert resposta['board_data']['labels'] == []
        assert resposta['board_data']['boards'][0]['labels'] == []
        await communicator.disconnect()

    async def test_unknown_label_is_rejected(self, user, board, outro_user):
        alheia = await database_sync_to_async(services.create_label)(outro_user, 'Alheia', 'bg-red-500')
        communicator, _ = await conectar('/ws/painel/', user)

        await communicator.send_json_to({
            'type': 'update_labels',
            'board_id': str(board.id),
            'label_ids': [str(alheia.id)],
        })

        assert (await communicator.receive_json_from())['type'] == 'validation_error'
        await communicator.disconnect()

    async def test_reorder_boards_and_filter(self, user, board):
        outro = await database_sync_to_async(services.create_board_with_default_columns)(user, 'App')
        communicator, _ = await conectar('/ws/painel/', user)

        await communicator.send_json_to({
            'type': 'reorder_boards', 'active_id': str(outro.id), 'over_id': str(board.id),
        })
        resposta = await communicator.receive_json_from()
        assert [b['title'] for b in resposta['board_data']['boards']] == ['App', 'Site Institucional']

        await communicator.send_json_to({'type': 'sync', 'filters': {'min_tasks': '1'}})
        resposta = await communicator.receive_json_from()
        assert resposta['board_data']['boards'] == []
        await communicator.disconnect()
