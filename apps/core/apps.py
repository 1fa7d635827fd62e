# apps/core/apps.py

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuração da app Core"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core - Boards e Tarefas'

    def ready(self):
        """
        Método chamado quando a aplicação está pronta
        Conecta os sinais (colunas padrão)
        """
        from . import signals  # noqa: F401
