# apps/painel/__init__.py

"""
Painel - Lista de boards do usuário

Funcionalidades:
- Valores derivados dos produtos (anual e data de término)
- Status financeiro do board
- Reordenação, filtros, etiquetas e produtos salvos
"""
