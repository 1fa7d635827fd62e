# apps/__init__.py

"""
Fluxo Board - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Models, serviços de dados e permissões
- board: Kanban, drag-and-drop e WebSockets
- painel: Lista de boards, valores derivados e status
"""

__version__ = '0.1.0'
__author__ = 'Equipe Fluxo'
