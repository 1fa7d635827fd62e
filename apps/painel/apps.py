# apps/painel/apps.py

from django.apps import AppConfig


class PainelConfig(AppConfig):
    """Configuração da app Painel"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.painel'
    verbose_name = 'Painel - Boards e Valores'
