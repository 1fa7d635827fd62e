# apps/core/exceptions.py

"""
Exceções do domínio do Fluxo Board

Erros de validação usam django.core.exceptions.ValidationError (forms).
As classes abaixo cobrem o que acontece depois da validação.
"""


class FluxoError(Exception):
    """Base para erros do Fluxo Board"""


class PersistenceError(FluxoError):
    """
    Falha ao gravar uma alteração já aplicada localmente

    Quem recebe este erro já tem o estado recarregado do banco;
    a mensagem é apresentável ao usuário e a ação pode ser repetida.
    """

    def __init__(self, message, action=None):
        super().__init__(message)
        self.action = action


class BoardInvariantError(FluxoError):
    """Violação de invariante do board (ex: criar tarefa sem nenhuma coluna)"""


class ReorderError(FluxoError):
    """Movimento referenciando item ou coluna desconhecidos"""
