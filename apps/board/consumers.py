# apps/board/consumers.py

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.utils import timezone

from apps.core.exceptions import BoardInvariantError, PersistenceError, ReorderError
from apps.core.forms import (
    BoardFieldsForm, BoardFilterForm, DragForm, LabelsSelectionForm,
    TaskFilterForm, clean_products
)
from apps.core.models import Board
from apps.core.permissions import FluxoPermissions
from .filters import BoardFilter, TaskFilter
from .gateway import OrmGateway
from .state import to_dict
from .store import DashboardStore, KanbanStore

logger = logging.getLogger(__name__)


def _erro(mensagem, code='invalid'):
    return {'__all__': [{'message': mensagem, 'code': code}]}


class StoreConsumerMixin:
    """
    Respostas comuns dos consumers que mantêm um store otimista

    Sucesso: snapshot atualizado
    Falha de persistência: {'type': 'error', 'retry': true, 'board_data': <estado recarregado>}
    Dados inválidos: {'type': 'validation_error', 'errors': {...}} sem tocar no estado
    """

    group_name = None

    def get_timestamp(self):
        """
        Retorna timestamp atual em formato ISO
        """
        return timezone.now().isoformat()

    def serializar(self):
        raise NotImplementedError

    async def enviar(self, tipo, **dados):
        await self.send(text_data=json.dumps({
            'type': tipo,
            **dados,
            'timestamp': self.get_timestamp()
        }))

    async def enviar_erro_validacao(self, errors):
        await self.enviar('validation_error', errors=errors)

    async def enviar_erro_persistencia(self, erro):
        # O store já recarregou o estado antes de levantar o erro
        await self.enviar('error', message=str(erro), retry=True, board_data=self.serializar())

    async def notificar_grupo(self, motivo):
        """Avisa as outras conexões do grupo para recarregarem"""
        await self.channel_layer.group_send(
            self.group_name,
            {
                'type': 'board_refresh',
                'message': {
                    'motivo': motivo,
                    'usuario': self.user.get_username(),
                    'origem': self.channel_name,
                    'timestamp': self.get_timestamp()
                }
            }
        )

    async def executar(self, acao, motivo, *args, **kwargs):
        """
        Executa uma ação do store e responde ao cliente
        Retorna True quando o estado mudou
        """
        try:
            resultado = await acao(*args, **kwargs)
        except PersistenceError as e:
            await self.enviar_erro_persistencia(e)
            return False
        except (ReorderError, BoardInvariantError) as e:
            await self.enviar_erro_validacao(_erro(str(e), code='invariant'))
            return False

        mudou = resultado is not False
        await self.enviar(self.tipo_sync, board_data=self.serializar(), changed=mudou)
        if mudou:
            await self.notificar_grupo(motivo)
        return mudou

    # === Handlers de eventos do grupo ===

    async def board_refresh(self, event):
        """
        Outra conexão (ou uma view HTTP) alterou o estado
        Recarrega o store e envia o snapshot novo
        """
        message = event['message']
        if message.get('origem') == self.channel_name:
            return
        await self.store.load()
        await self.enviar('board_refresh', message=message, board_data=self.serializar())


class BoardConsumer(StoreConsumerMixin, AsyncWebsocketConsumer):
    """
    Consumer WebSocket do board Kanban

    Mantém um KanbanStore por conexão: o arraste é aplicado em memória,
    respondido na hora e persistido em seguida.
    """

    tipo_sync = 'board_sync'

    async def connect(self):
        """
        Conecta usuário ao grupo do board
        Verifica permissões antes de aceitar conexão
        """
        self.board_id = self.scope['url_route']['kwargs']['board_id']
        self.user = self.scope['user']
        self.task_filter = TaskFilter()

        # Verificar se usuário está autenticado
        if not self.user.is_authenticated:
            logger.warning("❌ Conexão WebSocket rejeitada - usuário não autenticado")
            await self.close()
            return

        # Verificar se o usuário é dono do board
        has_access = await self.check_board_access()
        if not has_access:
            logger.warning(f"❌ Conexão WebSocket rejeitada - {self.user.username} sem acesso ao board {self.board_id}")
            await self.close()
            return

        self.store = KanbanStore(self.board_id, OrmGateway())
        await self.store.load()

        self.group_name = f'board_{self.board_id}'
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        logger.info(f"✅ WebSocket conectado - {self.user.username} no board {self.board_id}")

    async def disconnect(self, close_code):
        """
        Desconecta usuário do grupo
        """
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

        logger.info(f"🔌 WebSocket desconectado - {self.user.username} do board {self.board_id}")

    async def receive(self, text_data):
        """
        Recebe mensagens do cliente WebSocket
        Processa diferentes tipos de eventos
        """
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error(f"❌ JSON inválido recebido via WebSocket de {self.user.username}")
            await self.enviar_erro_validacao(_erro('JSON inválido'))
            return

        message_type = data.get('type')

        # Heartbeat/Ping
        if message_type == 'ping':
            await self.enviar('pong', interval=settings.FLUXO_WS_HEARTBEAT_INTERVAL)

        # Sincronização de estado do board (com filtros opcionais)
        elif message_type == 'sync_board':
            if 'filters' in data:
                form = TaskFilterForm(data.get('filters') or {})
                if not form.is_valid():
                    await self.enviar_erro_validacao(form.errors.get_json_data())
                    return
                self.task_filter = form.to_filter()
            await self.store.load()
            await self.enviar('board_sync', board_data=self.serializar(), changed=False)

        # Fim do arraste de tarefa / coluna
        elif message_type in ('drag_end', 'reorder_columns'):
            form = DragForm(data)
            if not form.is_valid():
                await self.enviar_erro_validacao(form.errors.get_json_data())
                return
            acao = self.store.drag_end if message_type == 'drag_end' else self.store.reorder_columns
            await self.executar(
                acao, message_type,
                form.cleaned_data['active_id'], form.cleaned_data['over_id']
            )

        else:
            await self.enviar_erro_validacao(_erro(f'Tipo de mensagem desconhecido: {message_type}'))

    def serializar(self):
        return [to_dict(c) for c in self.store.filtered(self.task_filter)]

    # === Métodos auxiliares ===

    @database_sync_to_async
    def check_board_access(self):
        """
        Verifica se usuário é dono do board
        """
        try:
            board = Board.objects.get(id=self.board_id)
            return FluxoPermissions.tem_acesso_board(self.user, board)
        except Board.DoesNotExist:
            return False


class DashboardConsumer(StoreConsumerMixin, AsyncWebsocketConsumer):
    """
    Consumer do painel: boards do usuário, produtos e etiquetas
    """

    tipo_sync = 'boards_sync'

    async def connect(self):
        self.user = self.scope['user']
        self.board_filter = BoardFilter()

        if not self.user.is_authenticated:
            logger.warning("❌ Conexão WebSocket do painel rejeitada - usuário não autenticado")
            await self.close()
            return

        self.store = DashboardStore(self.user.id, OrmGateway())
        await self.store.load()

        self.group_name = f'painel_{self.user.id}'
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        logger.info(f"📊 Painel conectado para {self.user.username}")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

        logger.info(f"🔕 Painel desconectado para {self.user.username}")

    async def receive(self, text_data):
        """
        Processa comandos do painel
        """
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error(f"❌ JSON inválido recebido no painel de {self.user.username}")
            await self.enviar_erro_validacao(_erro('JSON inválido'))
            return

        message_type = data.get('type')
        board_id = data.get('board_id')

        if message_type == 'ping':
            await self.enviar('pong', interval=settings.FLUXO_WS_HEARTBEAT_INTERVAL)

        elif message_type == 'sync':
            if 'filters' in data:
                form = BoardFilterForm(data.get('filters') or {})
                if not form.is_valid():
                    await self.enviar_erro_validacao(form.errors.get_json_data())
                    return
                self.board_filter = form.to_filter()
            await self.store.load()
            await self.enviar('boards_sync', board_data=self.serializar(), changed=False)

        elif message_type == 'reorder_boards':
            form = DragForm(data)
            if not form.is_valid():
                await self.enviar_erro_validacao(form.errors.get_json_data())
                return
            await self.executar(
                self.store.reorder_boards, message_type,
                form.cleaned_data['active_id'], form.cleaned_data['over_id']
            )

        elif message_type == 'update_board':
            campos = data.get('fields') or {}
            form = BoardFieldsForm(campos)
            nao_editaveis = set(campos) - set(form.fields)
            if nao_editaveis:
                await self.enviar_erro_validacao(
                    _erro(f"Campos não editáveis: {', '.join(sorted(nao_editaveis))}")
                )
                return
            if not form.is_valid():
                await self.enviar_erro_validacao(form.errors.get_json_data())
                return
            await self.executar(
                self.store.update_board_fields, message_type,
                board_id, **form.campos_alterados()
            )

        elif message_type == 'replace_products':
            produtos, erros = clean_products(data.get('products'))
            if erros:
                await self.enviar_erro_validacao(erros)
                return
            await self.executar(self.store.replace_products, message_type, board_id, produtos)

        elif message_type == 'update_labels':
            form = LabelsSelectionForm({'label_ids': data.get('label_ids') or []})
            if not form.is_valid():
                await self.enviar_erro_validacao(form.errors.get_json_data())
                return
            conhecidas = {l.id for l in self.store.labels}
            if not set(form.cleaned_data['label_ids']) <= conhecidas:
                await self.enviar_erro_validacao(_erro('Etiqueta não encontrada'))
                return
            await self.executar(
                self.store.update_labels, message_type,
                board_id, form.cleaned_data['label_ids']
            )

        elif message_type == 'delete_label':
            label_id = str(data.get('label_id'))
            if label_id not in {l.id for l in self.store.labels}:
                await self.enviar_erro_validacao(_erro('Etiqueta não encontrada'))
                return
            await self.executar(self.store.delete_label, message_type, label_id)

        else:
            await self.enviar_erro_validacao(_erro(f'Tipo de mensagem desconhecido: {message_type}'))

    def serializar(self):
        return {
            'boards': [to_dict(b) for b in self.store.filtered(self.board_filter)],
            'labels': [to_dict(l) for l in self.store.labels],
        }
