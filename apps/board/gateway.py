# apps/board/gateway.py

"""
Gateway assíncrono de persistência usado pelos stores

Cada método embrulha uma função de apps.core.services com
database_sync_to_async, para ser aguardado dentro dos consumers.
"""

from channels.db import database_sync_to_async

from apps.core import services
from apps.core.models import Board


class OrmGateway:
    """Persistência real (Django ORM)"""

    @database_sync_to_async
    def load_board(self, board_id):
        board = Board.objects.get(id=board_id)
        return services.build_kanban_state(board)

    @database_sync_to_async
    def load_boards(self, user_id):
        return services.load_boards_state(user_id)

    @database_sync_to_async
    def update_order(self, scope, owner_id, updates):
        services.update_order(scope, owner_id, updates)

    @database_sync_to_async
    def move_task(self, task_id, column_id, index):
        services.move_task(task_id, column_id, index)

    @database_sync_to_async
    def replace_products(self, board_id, products):
        services.replace_board_products(board_id, products)

    @database_sync_to_async
    def update_board_fields(self, board_id, fields):
        services.update_board_fields(board_id, fields)

    @database_sync_to_async
    def update_labels(self, board_id, label_ids):
        services.update_board_labels(board_id, label_ids)

    @database_sync_to_async
    def delete_label(self, label_id):
        services.delete_label(label_id)

    @database_sync_to_async
    def load_labels(self, user_id):
        return services.load_labels_state(user_id)
