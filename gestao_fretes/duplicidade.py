"""
Detecção de cargas já lançadas em outro lançamento ativo
"""

from typing import Iterable, List, Optional, Set


def cargas_lancadas(lancamentos: Iterable, excluir_id: Optional[int] = None) -> Set[int]:
    """IDs das cargas presas a lançamentos não excluídos"""
    ids = set()
    for lancamento in lancamentos:
        if lancamento.excluido:
            continue
        if excluir_id is not None and lancamento.id_lancamento == excluir_id:
            continue
        ids.update(c.id_carga for c in lancamento.cargas)
    return ids


def cargas_em_conflito(cargas: Iterable, lancamentos: Iterable, excluir_id: Optional[int] = None) -> List[int]:
    lancadas = cargas_lancadas(lancamentos, excluir_id)
    conflitos = []
    for carga in cargas:
        if carga.id_carga in lancadas and carga.id_carga not in conflitos:
            conflitos.append(carga.id_carga)
    return conflitos


def tem_conflito(cargas: Iterable, lancamentos: Iterable, excluir_id: Optional[int] = None) -> bool:
    return bool(cargas_em_conflito(cargas, lancamentos, excluir_id))
