"""
Cadastro de cargas: km automático pelo parâmetro de valor,
motivo obrigatório para alterar carga gravada e para excluir
"""

import logging
from datetime import date
from typing import List, Optional
from sqlmodel import Session, select

from .models import Carga, Veiculo
from .repositorio import carregar_tabela

logger = logging.getLogger(__name__)

ORIGENS = ("ERP", "CSV", "Manual")


class ErroCarga(Exception):
    mensagem = "Não foi possível processar a carga."

    def __init__(self, mensagem: Optional[str] = None):
        self.mensagem = mensagem or self.mensagem
        super().__init__(self.mensagem)


class CargaNaoEncontrada(ErroCarga):
    mensagem = "Carga não encontrada."


class DadosCargaIncompletos(ErroCarga):
    mensagem = "Por favor, preencha todos os campos obrigatórios: Nº Carga, Cidade e Veículo."


class OrigemInvalida(ErroCarga):
    mensagem = "Origem da carga deve ser ERP, CSV ou Manual."


class MotivoAlteracaoObrigatorio(ErroCarga):
    mensagem = "Informe o motivo da alteração da carga."


class MotivoExclusaoCargaObrigatorio(ErroCarga):
    mensagem = "Motivo é obrigatório para exclusão."


def km_para_carga(session: Session, cidade: str, cod_veiculo: str) -> float:
    """Km do parâmetro da cidade para o tipo do veículo (0 se não houver)"""
    veiculo = session.exec(select(Veiculo).where(Veiculo.cod_veiculo == cod_veiculo)).first()
    if not veiculo:
        return 0
    return carregar_tabela(session).km_sugerido(cidade, veiculo.tipo_veiculo)


def listar_cargas_disponiveis(session: Session, cod_veiculo: str, data_cte: date) -> List[Carga]:
    return session.exec(
        select(Carga).where(
            Carga.cod_veiculo == cod_veiculo,
            Carga.data_cte == data_cte,
            Carga.excluido == False  # noqa: E712
        ).order_by(Carga.id_carga)
    ).all()


def _validar(carga: Carga):
    if not carga.numero_carga or not carga.cidade or not carga.cod_veiculo:
        raise DadosCargaIncompletos()
    if carga.origem not in ORIGENS:
        raise OrigemInvalida()


def _obter(session: Session, id_carga: int) -> Carga:
    carga = session.get(Carga, id_carga)
    if carga is None:
        raise CargaNaoEncontrada()
    return carga


def criar_carga(
    session: Session,
    numero_carga: str,
    cidade: str,
    data_cte: date,
    cod_veiculo: str,
    valor_cte: float = 0.0,
    km: Optional[float] = None,
    origem: str = "Manual"
) -> Carga:
    carga = Carga(
        numero_carga=numero_carga,
        cidade=cidade,
        data_cte=data_cte,
        cod_veiculo=cod_veiculo,
        valor_cte=valor_cte,
        origem=origem or "Manual"
    )
    _validar(carga)
    carga.km = km if km is not None else km_para_carga(session, cidade, cod_veiculo)

    session.add(carga)
    session.commit()
    session.refresh(carga)
    logger.info(f"[CARGA] Carga {carga.numero_carga} criada ({carga.cidade}, {carga.km} km)")
    return carga


def alterar_carga(session: Session, id_carga: int, motivo_alteracao: Optional[str], **dados) -> Carga:
    """Altera uma carga gravada; km é recalculado se mudar cidade/veículo sem km informado"""
    motivo = (motivo_alteracao or "").strip()
    if not motivo:
        raise MotivoAlteracaoObrigatorio()

    carga = _obter(session, id_carga)
    km = dados.pop("km", None)
    rota_mudou = any(
        dados.get(campo) is not None and dados[campo] != getattr(carga, campo)
        for campo in ("cidade", "cod_veiculo")
    )

    for campo, valor in dados.items():
        if valor is not None:
            setattr(carga, campo, valor)
    _validar(carga)

    if km is not None:
        carga.km = km
    elif rota_mudou:
        carga.km = km_para_carga(session, carga.cidade, carga.cod_veiculo)

    carga.motivo_alteracao = motivo
    session.add(carga)
    session.commit()
    session.refresh(carga)
    logger.info(f"[CARGA] Carga {carga.numero_carga} alterada: {motivo}")
    return carga


def excluir_carga(session: Session, id_carga: int, motivo: Optional[str]) -> Carga:
    motivo = (motivo or "").strip()
    if not motivo:
        raise MotivoExclusaoCargaObrigatorio()

    carga = _obter(session, id_carga)
    carga.excluido = True
    carga.motivo_exclusao = motivo
    session.add(carga)
    session.commit()
    session.refresh(carga)
    logger.info(f"[CARGA] Carga {carga.numero_carga} excluída: {motivo}")
    return carga
