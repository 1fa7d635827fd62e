# apps/core/permissions.py

from functools import wraps

from django.http import Http404


class FluxoPermissions:
    """
    Permissões do Fluxo Board
    Cada usuário enxerga e altera apenas os próprios boards e etiquetas
    """

    @staticmethod
    def is_dono(user, obj):
        """Verifica se o usuário é dono do objeto (board, etiqueta, produto salvo)"""
        return user.is_authenticated and obj.user_id == user.id

    @staticmethod
    def tem_acesso_board(user, board):
        """Verifica se tem acesso ao board"""
        return FluxoPermissions.is_dono(user, board)

    @staticmethod
    def tem_acesso_coluna(user, column):
        return FluxoPermissions.tem_acesso_board(user, column.board)

    @staticmethod
    def tem_acesso_tarefa(user, task):
        return FluxoPermissions.tem_acesso_board(user, task.column.board)


# Decoradores para views

def requer_dono_board(view_func):
    """
    Decorador que verifica se o usuário é dono do board
    Espera que a view receba board_id como parâmetro
    Boards de outros usuários respondem 404 (não revela existência)
    """

    @wraps(view_func)
    def wrapped_view(request, board_id, *args, **kwargs):
        from .models import Board

        try:
            board = Board.objects.get(id=board_id)
        except Board.DoesNotExist:
            raise Http404("Board não encontrado")

        if not FluxoPermissions.tem_acesso_board(request.user, board):
            raise Http404("Board não encontrado")

        # Adiciona o board ao request para uso na view
        request.board = board
        return view_func(request, board_id, *args, **kwargs)

    return wrapped_view


def requer_dono_tarefa(view_func):
    """Decorador equivalente para views que recebem task_id"""

    @wraps(view_func)
    def wrapped_view(request, task_id, *args, **kwargs):
        from .models import Task

        try:
            task = Task.objects.select_related('column__board').get(id=task_id)
        except Task.DoesNotExist:
            raise Http404("Tarefa não encontrada")

        if not FluxoPermissions.tem_acesso_tarefa(request.user, task):
            raise Http404("Tarefa não encontrada")

        request.task = task
        request.board = task.column.board
        return view_func(request, task_id, *args, **kwargs)

    return wrapped_view


def requer_dono_coluna(view_func):
    """Decorador equivalente para views que recebem column_id"""

    @wraps(view_func)
    def wrapped_view(request, column_id, *args, **kwargs):
        from .models import Column

        try:
            column = Column.objects.select_related('board').get(id=column_id)
        except Column.DoesNotExist:
            raise Http404("Coluna não encontrada")

        if not FluxoPermissions.tem_acesso_coluna(request.user, column):
            raise Http404("Coluna não encontrada")

        request.column = column
        request.board = column.board
        return view_func(request, column_id, *args, **kwargs)

    return wrapped_view
