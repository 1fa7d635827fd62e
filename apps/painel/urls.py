# apps/painel/urls.py

from django.urls import path
from . import views

app_name = 'painel'

urlpatterns = [
    # Painel principal
    path('', views.painel_principal, name='painel'),

    # Boards
    path('boards/criar/', views.criar_board, name='criar_board'),
    path('boards/reordenar/', views.reordenar_boards, name='reordenar_boards'),
    path('boards/<uuid:board_id>/', views.atualizar_board, name='atualizar_board'),
    path('boards/<uuid:board_id>/excluir/', views.excluir_board, name='excluir_board'),
    path('boards/<uuid:board_id>/produtos/', views.substituir_produtos, name='substituir_produtos'),
    path('boards/<uuid:board_id>/etiquetas/', views.atualizar_etiquetas, name='atualizar_etiquetas'),

    # Etiquetas
    path('etiquetas/', views.etiquetas, name='etiquetas'),
    path('etiquetas/<uuid:label_id>/excluir/', views.excluir_etiqueta, name='excluir_etiqueta'),

    # Produtos salvos (autocomplete)
    path('produtos-salvos/', views.produtos_salvos, name='produtos_salvos'),

    # Preferência grade/lista
    path('modo/', views.alterar_modo_visualizacao, name='modo_visualizacao'),
]
