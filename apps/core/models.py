# apps/core/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Label(models.Model):
    """Etiqueta do usuário, associável a vários boards"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='labels'
    )
    text = models.CharField(max_length=60)
    color = models.CharField(max_length=30, default='bg-gray-500')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'label'
        ordering = ['-created_at']

    def __str__(self):
        return self.text


class Board(models.Model):
    """
    Quadro Kanban do usuário com campos financeiros

    `annual` e `ending_date` são derivados dos produtos do board.
    Nunca devem ser gravados diretamente - use refresh_aggregates().
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    color = models.CharField(max_length=30, default='bg-blue-500')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='boards'
    )
    sort_order = models.IntegerField(default=0)

    # === VALORES FINANCEIROS ===
    total_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )
    upcoming_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )
    received_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )
    annual = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        editable=False
    )
    started_date = models.DateField(null=True, blank=True)
    ending_date = models.DateField(null=True, blank=True, editable=False)
    notes = models.TextField(blank=True, null=True)

    labels = models.ManyToManyField(Label, related_name='boards', blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'board'
        ordering = ['sort_order', '-created_at']
        indexes = [
            models.Index(fields=['user', 'sort_order'], name='board_user_sort_idx'),
        ]

    def __str__(self):
        return self.title

    def criar_colunas_padrao(self):
        """Cria colunas padrão para novo board"""
        for idx, titulo in enumerate(settings.FLUXO_DEFAULT_COLUMNS):
            Column.objects.create(title=titulo, board=self, sort_order=idx)

    def refresh_aggregates(self, today=None, save=True):
        """
        Recalcula annual e ending_date a partir dos produtos atuais
        """
        from apps.painel.aggregates import recompute_aggregates

        self.annual, self.ending_date = recompute_aggregates(
            list(self.products.all()), today=today
        )
        if save:
            self.save(update_fields=['annual', 'ending_date', 'updated_at'])
        return self.annual, self.ending_date

    @property
    def status(self):
        """Status do board (renovação pendente, em andamento, recorrente, concluído)"""
        from apps.painel.status import classify_status

        return classify_status(
            upcoming=self.upcoming_value,
            received=self.received_value,
            total=self.total_value,
            annual=self.annual,
        )


class Column(models.Model):
    """Coluna (etapa) de um board"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='columns'
    )
    title = models.CharField(max_length=100)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'coluna'
        ordering = ['sort_order', 'created_at']

    def __str__(self):
        return f"{self.title} - {self.board.title}"


class Task(models.Model):
    """Tarefa - pertence a exatamente uma coluna"""

    PRIORIDADE_CHOICES = [
        ('low', '🟢 Baixa'),
        ('medium', '🟡 Média'),
        ('high', '🔴 Alta'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    column = models.ForeignKey(
        Column,
        on_delete=models.CASCADE,
        related_name='tasks'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    assignee = models.CharField(max_length=150, blank=True, null=True)
    due_date = models.DateField(null=True, blank=True)
    priority = models.CharField(
        max_length=10,
        choices=PRIORIDADE_CHOICES,
        default='medium'
    )
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tarefa'
        ordering = ['sort_order', '-updated_at']

    def __str__(self):
        return self.title


class Product(models.Model):
    """
    Produto recorrente do board

    Substituído em bloco a cada edição - não há atualização parcial.
    """

    PERIODO_CHOICES = [
        (Decimal('0.5'), '6 meses'),
        (Decimal('1'), '1 ano'),
        (Decimal('2'), '2 anos'),
        (Decimal('3'), '3 anos'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='products'
    )
    name = models.CharField(max_length=200)
    started_date = models.DateField()
    period = models.DecimalField(
        max_digits=3, decimal_places=1,
        choices=PERIODO_CHOICES,
        default=Decimal('1')
    )
    price = models.DecimalField(
        max_digits=12, decimal_places=2,
        validators=[MinValueValidator(0)]
    )
    cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'produto'
        ordering = ['sort_order']

    def __str__(self):
        return f"{self.name} ({self.board.title})"


class SavedProduct(models.Model):
    """Dicionário de nomes de produto do usuário (autocomplete)"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='saved_products'
    )
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'produto_salvo'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['user', 'name'], name='produto_salvo_unico_por_usuario'),
        ]

    def __str__(self):
        return self.name
