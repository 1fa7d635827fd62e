# apps/board/routing.py

from django.urls import re_path
from . import consumers

UUID_RE = r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'

# Rotas WebSocket da aplicação board
websocket_urlpatterns = [
    # WebSocket para board específico - drag-and-drop com atualização otimista
    re_path(rf'ws/board/(?P<board_id>{UUID_RE})/$', consumers.BoardConsumer.as_asgi()),

    # WebSocket do painel do usuário (boards, produtos, etiquetas)
    re_path(r'ws/painel/$', consumers.DashboardConsumer.as_asgi()),
]
