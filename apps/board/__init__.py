# apps/board/__init__.py

"""
Board - Aplicação Kanban do Fluxo Board

Funcionalidades:
- Motor de reordenação do drag-and-drop (ordering)
- Stores com atualização otimista e recarga em caso de falha (store)
- Filtros de tarefas e boards (filters)
- WebSockets para atualizações em tempo real
"""
