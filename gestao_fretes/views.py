"""
Rotas da API de lançamentos de frete e cargas
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session, SQLModel, select

from .calc import AjusteManual, valores_para_ajuste
from .cargas import (
    CargaNaoEncontrada,
    ErroCarga,
    alterar_carga,
    criar_carga,
    excluir_carga,
    km_para_carga,
    listar_cargas_disponiveis,
)
from .db import get_session
from .duplicidade import cargas_em_conflito
from .lancamentos import (
    ErroLancamento,
    GerenciadorLancamentos,
    LancamentoNaoEncontrado,
    RegistroLancamento,
    ResultadoSubmissao,
    VeiculoNaoEncontrado,
)
from .models import Carga, MotivoSubstituicao, Veiculo
from .repositorio import RepositorioSQL

logger = logging.getLogger(__name__)

router = APIRouter()


class AjusteManualIn(SQLModel):
    motivo: str
    valor_base: float = 0.0
    pedagio: float = 0.0
    balsa: float = 0.0
    outras: float = 0.0


class LancamentoIn(SQLModel):
    id_veiculo: int
    data_frete: date
    ids_cargas: List[int] = []
    motivo: Optional[str] = None
    usuario: Optional[str] = None
    ajuste_manual: Optional[AjusteManualIn] = None


class LancamentoEdicaoIn(SQLModel):
    motivo: Optional[str] = None
    data_frete: Optional[date] = None
    id_veiculo: Optional[int] = None
    ids_cargas: Optional[List[int]] = None
    usuario: Optional[str] = None
    ajuste_manual: Optional[AjusteManualIn] = None


class ExclusaoIn(SQLModel):
    motivo: Optional[str] = None


class CargaIn(SQLModel):
    numero_carga: str
    cidade: str
    data_cte: date
    cod_veiculo: str
    valor_cte: float = 0.0
    km: Optional[float] = None
    origem: str = "Manual"


class CargaAlteracaoIn(SQLModel):
    motivo_alteracao: Optional[str] = None
    numero_carga: Optional[str] = None
    cidade: Optional[str] = None
    data_cte: Optional[date] = None
    cod_veiculo: Optional[str] = None
    valor_cte: Optional[float] = None
    km: Optional[float] = None


def get_repositorio(session: Session = Depends(get_session)) -> RepositorioSQL:
    return RepositorioSQL(session)


def get_gerenciador(repositorio: RepositorioSQL = Depends(get_repositorio)) -> GerenciadorLancamentos:
    return GerenciadorLancamentos(repositorio)


def erro_http(erro) -> HTTPException:
    """Converte erro de negócio em resposta com a mensagem específica"""
    nao_encontrado = (LancamentoNaoEncontrado, VeiculoNaoEncontrado, CargaNaoEncontrada)
    status = 404 if isinstance(erro, nao_encontrado) else 422
    return HTTPException(status_code=status, detail=erro.mensagem)


def _ajuste(dados: Optional[AjusteManualIn]) -> Optional[AjusteManual]:
    if dados is None:
        return None
    return AjusteManual(motivo=dados.motivo, valor_base=dados.valor_base,
                        pedagio=dados.pedagio, balsa=dados.balsa, outras=dados.outras)


def _cargas(repositorio: RepositorioSQL, ids: List[int]):
    ids = list(dict.fromkeys(ids))
    cargas = repositorio.obter_cargas(ids)
    if len(cargas) != len(ids):
        encontradas = {c.id_carga for c in cargas}
        faltando = [i for i in ids if i not in encontradas]
        raise HTTPException(status_code=422, detail=f"Cargas não encontradas ou excluídas: {faltando}")
    return cargas


def _lancamento_json(registro: RegistroLancamento) -> dict:
    return asdict(registro)


def _resultado_json(resultado: ResultadoSubmissao, session: Session) -> dict:
    if resultado.pendente:
        motivos = session.exec(select(MotivoSubstituicao)).all()
        raise HTTPException(status_code=409, detail={
            "mensagem": "Uma ou mais cargas selecionadas já foram lançadas. "
                        "Para continuar, informe um motivo para a substituição.",
            "cargas_em_conflito": list(resultado.cargas_em_conflito),
            "calculo": asdict(resultado.calculo),
            "motivos": [m.descricao for m in motivos],
        })
    return {
        "estado": resultado.estado.value,
        "lancamento": _lancamento_json(resultado.lancamento),
        "cargas_em_conflito": list(resultado.cargas_em_conflito),
    }


@router.get("/configuracao")
def obter_configuracao(request: Request):
    return asdict(request.app.state.configuracoes.sistema)


@router.get("/veiculos")
def listar_veiculos(ativos: bool = False, session: Session = Depends(get_session)):
    query = select(Veiculo).order_by(Veiculo.placa)
    if ativos:
        query = query.where(Veiculo.ativo == True)  # noqa: E712
    return session.exec(query).all()


@router.get("/motivos-substituicao")
def listar_motivos(session: Session = Depends(get_session)):
    return session.exec(select(MotivoSubstituicao).order_by(MotivoSubstituicao.id_motivo)).all()


@router.get("/cargas")
def listar_cargas(
    cod_veiculo: str = Query(...),
    data: date = Query(...),
    session: Session = Depends(get_session)
):
    return listar_cargas_disponiveis(session, cod_veiculo, data)


@router.get("/cargas/km")
def sugerir_km(cidade: str, cod_veiculo: str, session: Session = Depends(get_session)):
    return {"km": km_para_carga(session, cidade, cod_veiculo)}


@router.post("/cargas", status_code=201, response_model=Carga)
def nova_carga(dados: CargaIn, session: Session = Depends(get_session)):
    try:
        return criar_carga(session, **dados.model_dump())
    except ErroCarga as e:
        raise erro_http(e)


@router.put("/cargas/{id_carga}", response_model=Carga)
def editar_carga(id_carga: int, dados: CargaAlteracaoIn, session: Session = Depends(get_session)):
    campos = dados.model_dump(exclude_none=True)
    motivo = campos.pop("motivo_alteracao", None)
    try:
        return alterar_carga(session, id_carga, motivo, **campos)
    except ErroCarga as e:
        raise erro_http(e)


@router.put("/cargas/{id_carga}/excluir", response_model=Carga)
def remover_carga(id_carga: int, dados: ExclusaoIn, session: Session = Depends(get_session)):
    try:
        return excluir_carga(session, id_carga, dados.motivo)
    except ErroCarga as e:
        raise erro_http(e)


@router.get("/lancamentos")
def listar_lancamentos(
    incluir_excluidos: bool = True,
    repositorio: RepositorioSQL = Depends(get_repositorio)
):
    return [_lancamento_json(l) for l in repositorio.listar_lancamentos(incluir_excluidos)]


@router.post("/lancamentos/calcular")
def calcular_lancamento(
    dados: LancamentoIn,
    request: Request,
    repositorio: RepositorioSQL = Depends(get_repositorio),
    gerenciador: GerenciadorLancamentos = Depends(get_gerenciador)
):
    """Prévia do cálculo, sem gravar"""
    usuario = dados.usuario or request.app.state.configuracoes.usuario_padrao
    try:
        candidato = gerenciador.novo_candidato(dados.id_veiculo, dados.data_frete, usuario)
        gerenciador.selecionar_cargas(candidato, _cargas(repositorio, dados.ids_cargas))
        candidato.ajuste_manual = _ajuste(dados.ajuste_manual)
        calculo = gerenciador.calcular(candidato)
    except ErroLancamento as e:
        raise erro_http(e)

    aviso = None
    if not calculo.parametro_encontrado:
        aviso = (f"Nenhum parâmetro de valor para {calculo.cidade_base} / "
                 f"{candidato.veiculo.tipo_veiculo}: valor base zerado.")

    return {
        "calculo": asdict(calculo),
        "valores_para_ajuste": valores_para_ajuste(calculo),
        "cargas_em_conflito": cargas_em_conflito(
            candidato.cargas, repositorio.listar_lancamentos(incluir_excluidos=False)
        ),
        "aviso": aviso,
    }


@router.post("/lancamentos", status_code=201)
def criar_lancamento(
    dados: LancamentoIn,
    request: Request,
    repositorio: RepositorioSQL = Depends(get_repositorio),
    gerenciador: GerenciadorLancamentos = Depends(get_gerenciador)
):
    usuario = dados.usuario or request.app.state.configuracoes.usuario_padrao
    try:
        candidato = gerenciador.novo_candidato(dados.id_veiculo, dados.data_frete, usuario)
        gerenciador.selecionar_cargas(candidato, _cargas(repositorio, dados.ids_cargas))
        candidato.ajuste_manual = _ajuste(dados.ajuste_manual)
        if dados.motivo:
            gerenciador.justificar(candidato, dados.motivo)
        resultado = gerenciador.submeter(candidato)
    except ErroLancamento as e:
        raise erro_http(e)
    return _resultado_json(resultado, repositorio.session)


@router.put("/lancamentos/{id_lancamento}")
def editar_lancamento(
    id_lancamento: int,
    dados: LancamentoEdicaoIn,
    repositorio: RepositorioSQL = Depends(get_repositorio),
    gerenciador: GerenciadorLancamentos = Depends(get_gerenciador)
):
    """Substitui o lançamento: grava um novo e exclui o original"""
    cargas = _cargas(repositorio, dados.ids_cargas) if dados.ids_cargas is not None else None
    try:
        resultado = gerenciador.editar(
            id_lancamento,
            dados.motivo,
            data_frete=dados.data_frete,
            id_veiculo=dados.id_veiculo,
            cargas=cargas,
            ajuste_manual=_ajuste(dados.ajuste_manual),
            usuario=dados.usuario
        )
    except ErroLancamento as e:
        raise erro_http(e)
    return _resultado_json(resultado, repositorio.session)


@router.put("/lancamentos/{id_lancamento}/excluir")
def excluir_lancamento(
    id_lancamento: int,
    dados: ExclusaoIn,
    gerenciador: GerenciadorLancamentos = Depends(get_gerenciador)
):
    try:
        registro = gerenciador.excluir(id_lancamento, dados.motivo)
    except ErroLancamento as e:
        raise erro_http(e)
    return _lancamento_json(registro)
