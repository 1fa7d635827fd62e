"""Fixtures compartilhadas dos testes do Fluxo Board."""

import pytest
from django.contrib.auth import get_user_model

from apps.core import services

User = get_user_model()


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
def user(db):
    return User.objects.create_user(username='ana', password='senha-forte-123')


@pytest.fixture
def outro_user(db):
    return User.objects.create_user(username='bruno', password='senha-forte-456')


@pytest.fixture
def board(user):
    """Board com as quatro colunas padrão"""
    return services.create_board_with_default_columns(user, 'Site Institucional')


@pytest.fixture
def colunas(board):
    return services.get_columns(board)


@pytest.fixture
def tarefas(board, colunas):
    """Quatro tarefas na primeira coluna: a, b, c, d"""
    return [
        services.create_task(board, {'title': titulo}, column_id=colunas[0].id)
        for titulo in ('a', 'b', 'c', 'd')
    ]


@pytest.fixture
def auth_client(client, user):
    client.force_login(user)
    return client
