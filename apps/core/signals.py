# apps/core/signals.py

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Board

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Board)
def criar_colunas_padrao(sender, instance, created, **kwargs):
    """
    Cria colunas padrão quando um novo board é criado
    APENAS se não há colunas (ex: seed já criou as suas)
    """
    if created and not instance.columns.exists():
        instance.criar_colunas_padrao()
        logger.debug(f"Colunas padrão criadas para o board {instance.id}")
