# apps/painel/aggregates.py

"""
Campos derivados do board a partir dos produtos recorrentes

annual      = soma de price / period (valor bruto, custo não é descontado)
ending_date = próxima renovação mais próxima entre os produtos
"""

import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from django.utils import timezone

CENTAVOS = Decimal('0.01')


def _campo(produto, nome):
    """Aceita tanto models quanto dicts/dataclasses"""
    if isinstance(produto, dict):
        return produto[nome]
    return getattr(produto, nome)


def _como_decimal(valor) -> Decimal:
    if isinstance(valor, Decimal):
        return valor
    return Decimal(str(valor))


def _como_data(valor) -> date:
    if isinstance(valor, str):
        return date.fromisoformat(valor)
    return valor


def add_months(data: date, meses: int) -> date:
    """
    Soma meses a uma data, limitando ao último dia do mês
    Ex: 31/08 + 6 meses -> 28/02 (ou 29/02)
    """
    total = data.month - 1 + meses
    ano = data.year + total // 12
    mes = total % 12 + 1
    dia = min(data.day, calendar.monthrange(ano, mes)[1])
    return date(ano, mes, dia)


def _meses_do_periodo(period) -> int:
    """Anos inteiros + 6 meses se houver fração .5"""
    period = _como_decimal(period)
    meses = int(period) * 12
    if period % 1 != 0:
        meses += 6
    return meses


def add_period(data: date, period) -> date:
    """Avança um período a partir da data"""
    return add_months(data, _meses_do_periodo(period))


def compute_annual(products: Iterable) -> Decimal:
    """Valor anual recorrente: soma de price / period"""
    total = Decimal('0')
    for produto in products:
        period = _como_decimal(_campo(produto, 'period'))
        if period <= 0:
            continue
        total += _como_decimal(_campo(produto, 'price')) / period
    return total.quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def next_renewal_date(started_date, period, today: date) -> date:
    """
    Próxima renovação de um produto

    A primeira renovação é started_date + period; depois avança
    de período em período enquanto estiver antes de hoje. Cada passo é
    contado a partir de started_date, então 31/08 não vira 28/08.
    """
    inicio = _como_data(started_date)
    meses = _meses_do_periodo(period)
    if meses <= 0:
        return inicio
    passos = 1
    renovacao = add_months(inicio, meses)
    while renovacao < today:
        passos += 1
        renovacao = add_months(inicio, meses * passos)
    return renovacao


def compute_ending_date(products: Iterable, today: date) -> Optional[date]:
    """Renovação mais próxima entre todos os produtos (None se não houver)"""
    datas = [
        next_renewal_date(_campo(p, 'started_date'), _campo(p, 'period'), today)
        for p in products
        if _como_decimal(_campo(p, 'period')) > 0
    ]
    datas = [d for d in datas if d >= today]
    return min(datas) if datas else None


def recompute_aggregates(products: Iterable, today: Optional[date] = None) -> Tuple[Decimal, Optional[date]]:
    """
    Recalcula (annual, ending_date) - idempotente para a mesma lista
    """
    products = list(products)
    if today is None:
        today = timezone.localdate()
    return compute_annual(products), compute_ending_date(products, today)
