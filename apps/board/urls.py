# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # Kanban principal (estado + filtros)
    path('<uuid:board_id>/', views.board_kanban_view, name='kanban'),

    # Tarefas
    path('<uuid:board_id>/tarefas/', views.criar_tarefa, name='criar_tarefa'),
    path('tarefa/<uuid:task_id>/', views.atualizar_tarefa, name='atualizar_tarefa'),
    path('tarefa/<uuid:task_id>/excluir/', views.excluir_tarefa, name='excluir_tarefa'),
    path('tarefa/<uuid:task_id>/mover/', views.mover_tarefa_posicao, name='mover_tarefa_posicao'),

    # AJAX/HTMX - Drag-and-drop
    path('<uuid:board_id>/mover/', views.mover_tarefa, name='mover_tarefa'),
    path('<uuid:board_id>/colunas/reordenar/', views.reordenar_colunas, name='reordenar_colunas'),

    # Colunas
    path('<uuid:board_id>/colunas/', views.criar_coluna, name='criar_coluna'),
    path('coluna/<uuid:column_id>/', views.renomear_coluna, name='renomear_coluna'),
    path('coluna/<uuid:column_id>/excluir/', views.excluir_coluna, name='excluir_coluna'),

    # Preferência cards/tabela
    path('modo/', views.alterar_modo_visualizacao, name='modo_visualizacao'),
]
