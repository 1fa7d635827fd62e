# apps/core/__init__.py

"""
Core - Aplicação principal do Fluxo Board

Contém:
- Models (Board, Column, Task, Label, Product, SavedProduct)
- Camada de acesso a dados (services)
- Sistema de permissões por dono
- Comando de seed para desenvolvimento
"""
