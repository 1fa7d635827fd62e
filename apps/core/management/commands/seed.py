# apps/core/management/commands/seed.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.core import services
from apps.core.models import Board, Label

User = get_user_model()

BOARDS_DEMO = [
    {
        'title': 'Site Institucional',
        'color': 'bg-blue-500',
        'valores': {'total_value': Decimal('12000'), 'upcoming_value': Decimal('0'),
                    'received_value': Decimal('12000')},
        'produtos': [
            {'name': 'Hospedagem', 'period': Decimal('1'), 'price': Decimal('480'), 'cost': Decimal('200')},
            {'name': 'Domínio', 'period': Decimal('1'), 'price': Decimal('60')},
        ],
    },
    {
        'title': 'App Delivery',
        'color': 'bg-orange-500',
        'valores': {'total_value': Decimal('45000'), 'upcoming_value': Decimal('15000'),
                    'received_value': Decimal('30000')},
        'produtos': [],
    },
    {
        'title': 'E-commerce',
        'color': 'bg-green-500',
        'valores': {'total_value': Decimal('28000'), 'upcoming_value': Decimal('0'),
                    'received_value': Decimal('14000')},
        'produtos': [
            {'name': 'Suporte', 'period': Decimal('0.5'), 'price': Decimal('1500')},
        ],
    },
]

TAREFAS_DEMO = [
    ('Levantar requisitos', 'high', 'Ana'),
    ('Protótipo das telas', 'medium', 'Bruno'),
    ('Configurar servidor', 'low', None),
    ('Revisar textos', 'medium', 'Ana'),
]


class Command(BaseCommand):
    help = 'Cria usuário e boards de demonstração'

    def add_arguments(self, parser):
        parser.add_argument('--username', default='demo')
        parser.add_argument('--password', default='demo12345')
        parser.add_argument(
            '--limpar',
            action='store_true',
            help='Remove os boards existentes do usuário antes de criar'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('🌱 Populando banco com dados demo...')

        user, criado = User.objects.get_or_create(username=options['username'])
        if criado:
            user.set_password(options['password'])
            user.save()
            self.stdout.write(f"  👤 Usuário criado: {user.username}")

        if options['limpar']:
            apagados, _ = Board.objects.filter(user=user).delete()
            self.stdout.write(f"  🗑️  {apagados} registros removidos")

        urgente, _ = Label.objects.get_or_create(user=user, text='Urgente', defaults={'color': 'bg-red-500'})
        Label.objects.get_or_create(user=user, text='Cliente novo', defaults={'color': 'bg-purple-500'})

        hoje = timezone.localdate()
        for dados in BOARDS_DEMO:
            board = services.create_board_with_default_columns(user, dados['title'], dados['color'])
            services.update_board_fields(board.id, {
                **dados['valores'],
                'started_date': hoje - timedelta(days=400),
            })

            produtos = [
                {**p, 'started_date': hoje - timedelta(days=400)}
                for p in dados['produtos']
            ]
            services.replace_board_products(board.id, produtos)

            colunas = services.get_columns(board)
            for idx, (titulo, prioridade, responsavel) in enumerate(TAREFAS_DEMO):
                services.create_task(
                    board,
                    {
                        'title': titulo,
                        'priority': prioridade,
                        'assignee': responsavel,
                        'due_date': hoje + timedelta(days=7 * (idx + 1)),
                    },
                    column_id=colunas[idx % len(colunas)].id,
                )

            self.stdout.write(f"  📋 Board criado: {board.title}")

        primeiro = Board.objects.filter(user=user).order_by('sort_order').first()
        if primeiro:
            services.update_board_labels(primeiro.id, [urgente.id])

        self.stdout.write(self.style.SUCCESS(
            f'\n✅ Dados demo criados! Acesse com: {options["username"]}'
        ))
