# apps/painel/status.py

"""
Classificação de status do board pelos valores financeiros

As regras são avaliadas em ordem; vale a primeira que casar.
"""

from decimal import Decimal
from typing import Optional

PENDING_RENEWAL = 'pending_renewal'
IN_PROGRESS = 'in_progress'
RECURRING = 'recurring'
COMPLETE = 'complete'

STATUS_META = {
    PENDING_RENEWAL: {'label': 'Renovação pendente', 'icon': 'receipt', 'cor': '#B91C1C'},
    IN_PROGRESS: {'label': 'Em andamento', 'icon': 'hammer', 'cor': '#F97316'},
    RECURRING: {'label': 'Recorrente', 'icon': 'recycle', 'cor': '#2563EB'},
    COMPLETE: {'label': 'Concluído', 'icon': 'circle-check', 'cor': '#16A34A'},
}


def _valor(valor) -> Decimal:
    if valor is None:
        return Decimal('0')
    return valor if isinstance(valor, Decimal) else Decimal(str(valor))


def classify_status(upcoming, received, total, annual) -> Optional[str]:
    """
    Mapeia os quatro valores do board para um status

    1. upcoming > 0                                   -> renovação pendente
    2. upcoming == 0, received == 0, total > 0       -> em andamento
    3. upcoming == 0, annual == 0, received != total -> em andamento
    4. upcoming == 0, annual > 0                      -> recorrente
    5. upcoming == 0, annual == 0, received == total > 0 -> concluído
    """
    upcoming = _valor(upcoming)
    received = _valor(received)
    total = _valor(total)
    annual = _valor(annual)

    if upcoming > 0:
        return PENDING_RENEWAL
    if upcoming == 0 and received == 0 and total > 0:
        return IN_PROGRESS
    if upcoming == 0 and annual == 0 and received != total:
        return IN_PROGRESS
    if upcoming == 0 and annual > 0:
        return RECURRING
    if upcoming == 0 and annual == 0 and received == total and total > 0:
        return COMPLETE
    return None


def status_payload(status: Optional[str]) -> Optional[dict]:
    """Dados de exibição do status (ou None)"""
    if status is None:
        return None
    return {'key': status, **STATUS_META[status]}
