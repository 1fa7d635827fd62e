# apps/core/utils.py

import json
import logging
from typing import Dict, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.http import JsonResponse
from django.utils import timezone
from django_htmx.http import trigger_client_event

logger = logging.getLogger(__name__)


def dados_requisicao(request) -> Dict:
    """
    Corpo da requisição como dict
    Aceita JSON (fetch/WebSocket fallback) ou form-urlencoded (HTMX)
    Levanta ValueError para JSON inválido
    """
    if request.content_type == 'application/json':
        try:
            dados = json.loads(request.body or b'{}')
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON inválido: {e}") from e
        if not isinstance(dados, dict):
            raise ValueError("Corpo JSON deve ser um objeto")
        return dados
    return request.POST


def resposta_sucesso(dados: Optional[Dict] = None, evento: Optional[str] = None, status: int = 200):
    """
    JsonResponse padrão {'success': True, ...}
    Com evento, adiciona HX-Trigger para o HTMX atualizar a tela
    """
    response = JsonResponse({'success': True, **(dados or {})}, status=status)
    if evento:
        trigger_client_event(response, evento, {'timestamp': timezone.now().isoformat()})
    return response


def resposta_erro(erro, status: int = 400, **extra):
    return JsonResponse({'success': False, 'error': erro, **extra}, status=status)


def _enviar_grupo(grupo: str, mensagem: Dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(
        grupo,
        {
            'type': 'board_refresh',
            'message': {**mensagem, 'timestamp': timezone.now().isoformat()},
        }
    )


def notificar_board(board_id, motivo: str, usuario=None) -> None:
    """Envia board_refresh para todos conectados ao board"""
    _enviar_grupo(f'board_{board_id}', {
        'board_id': str(board_id),
        'motivo': motivo,
        'usuario': usuario.get_username() if usuario else None,
    })


def notificar_painel(user_id, motivo: str) -> None:
    """Envia board_refresh para as abas abertas no painel do usuário"""
    _enviar_grupo(f'painel_{user_id}', {'motivo': motivo})
