# apps/board/ordering.py

"""
Motor de reordenação do drag-and-drop

Funções puras: recebem a ordem atual (ids) e o evento de soltura
(active_id / over_id) e devolvem o que deve ser persistido.
Nenhuma função aqui altera as coleções recebidas.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from apps.core.exceptions import ReorderError


@dataclass(frozen=True)
class MoveCommand:
    """
    Movimento de um item para (container_id, index)

    O índice é relativo à sequência de destino ANTES da remoção do item.
    """
    item_id: str
    container_id: str
    index: int


@dataclass(frozen=True)
class OrderUpdate:
    id: str
    sort_order: int


def _localizar(containers: Mapping[str, Sequence[str]], item_id: str) -> Optional[str]:
    for container_id, items in containers.items():
        if item_id in items:
            return container_id
    return None


def resolve_task_drop(
        containers: Mapping[str, Sequence[str]],
        active_id: Optional[str],
        over_id: Optional[str],
) -> Optional[MoveCommand]:
    """
    Calcula o movimento de uma tarefa ao final do arraste

    - over_id None (soltou fora) ou igual ao active_id: nada a fazer
    - over_id é uma coluna: vai para o fim dela (se for outra coluna)
    - over_id é outra tarefa: ocupa a posição dela; na mesma coluna,
      descendo insere DEPOIS do alvo e subindo insere NA posição do alvo
    """
    if over_id is None or active_id is None or active_id == over_id:
        return None

    origem = _localizar(containers, active_id)
    if origem is None:
        return None

    # Soltou sobre uma coluna (área droppable)
    if over_id in containers:
        if over_id == origem:
            return None
        return MoveCommand(active_id, over_id, len(containers[over_id]))

    # Soltou sobre outra tarefa
    destino = _localizar(containers, over_id)
    if destino is None:
        return None

    old_index = list(containers[origem]).index(active_id)
    new_index = list(containers[destino]).index(over_id)

    if origem != destino:
        return MoveCommand(active_id, destino, new_index)

    if old_index == new_index:
        return None

    if old_index < new_index:
        # Descendo: insere depois do alvo
        return MoveCommand(active_id, destino, new_index + 1)
    # Subindo: insere na posição do alvo
    return MoveCommand(active_id, destino, new_index)


def apply_move(containers: Mapping[str, Sequence[str]], command: MoveCommand) -> Dict[str, List[str]]:
    """
    Aplica um MoveCommand e devolve um novo mapeamento container -> ids
    """
    origem = _localizar(containers, command.item_id)
    if origem is None:
        raise ReorderError(f"Item {command.item_id} não encontrado")
    if command.container_id not in containers:
        raise ReorderError(f"Coluna {command.container_id} não encontrada")

    resultado = {cid: list(items) for cid, items in containers.items()}
    old_index = resultado[origem].index(command.item_id)
    resultado[origem].pop(old_index)

    index = command.index
    if origem == command.container_id and old_index < index:
        # O índice foi calculado antes da remoção
        index -= 1

    destino = resultado[command.container_id]
    index = max(0, min(index, len(destino)))
    destino.insert(index, command.item_id)
    return resultado


def is_noop(containers: Mapping[str, Sequence[str]], command: MoveCommand) -> bool:
    """Verifica se o movimento deixa tudo na mesma posição"""
    return apply_move(containers, command) == {cid: list(items) for cid, items in containers.items()}


def renumber(ids: Sequence[str]) -> List[OrderUpdate]:
    """Numeração contígua 0..n-1 na ordem recebida"""
    return [OrderUpdate(item_id, idx) for idx, item_id in enumerate(ids)]


def array_move(items: Sequence, old_index: int, new_index: int) -> list:
    resultado = list(items)
    resultado.insert(new_index, resultado.pop(old_index))
    return resultado


def resolve_flat_reorder(
        ids: Sequence[str],
        active_id: Optional[str],
        over_id: Optional[str],
) -> Optional[List[OrderUpdate]]:
    """
    Reordenação de lista plana (boards, colunas)

    Retorna a renumeração completa de TODOS os itens, pois a persistência
    grava sort_order = índice em cada um.
    """
    if over_id is None or active_id is None or active_id == over_id:
        return None

    ids = list(ids)
    if active_id not in ids or over_id not in ids:
        return None

    nova_ordem = array_move(ids, ids.index(active_id), ids.index(over_id))
    return renumber(nova_ordem)
