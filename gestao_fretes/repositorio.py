"""
Persistência dos lançamentos em banco relacional (SQLModel)
Converte as tabelas para os snapshots usados pelo cálculo
"""

from typing import Iterable, List, Optional
from sqlmodel import Session, select

from .calc import CargaSnapshot, FaixaValor, TabelaParametros, TaxaCidade, CalculoFrete, VeiculoRef
from .lancamentos import LancamentoNaoEncontrado, RegistroLancamento
from .models import (
    Carga,
    Lancamento,
    LancamentoCarga,
    ParametroTaxa,
    ParametroValor,
    Veiculo,
)


def veiculo_ref(veiculo: Veiculo) -> VeiculoRef:
    return VeiculoRef(
        id_veiculo=veiculo.id_veiculo,
        cod_veiculo=veiculo.cod_veiculo,
        tipo_veiculo=veiculo.tipo_veiculo,
        placa=veiculo.placa,
        motorista=veiculo.motorista,
        ativo=veiculo.ativo
    )


def snapshot_carga(carga: Carga) -> CargaSnapshot:
    return CargaSnapshot(
        id_carga=carga.id_carga,
        numero_carga=carga.numero_carga,
        cidade=carga.cidade,
        valor_cte=carga.valor_cte,
        data_cte=carga.data_cte,
        km=carga.km,
        cod_veiculo=carga.cod_veiculo
    )


def carregar_tabela(session: Session) -> TabelaParametros:
    """Monta o dicionário de parâmetros ativos, na ordem de cadastro"""
    valores = session.exec(
        select(ParametroValor)
        .where(ParametroValor.excluido == False)  # noqa: E712
        .order_by(ParametroValor.id_parametro)
    ).all()
    taxas = session.exec(
        select(ParametroTaxa)
        .where(ParametroTaxa.excluido == False)  # noqa: E712
        .order_by(ParametroTaxa.id_taxa)
    ).all()

    return TabelaParametros(
        faixas=[
            FaixaValor(cidade=p.cidade, tipo_veiculo=p.tipo_veiculo, valor_base=p.valor_base, km=p.km)
            for p in valores
        ],
        taxas=[
            TaxaCidade(cidade=t.cidade, pedagio=t.pedagio, balsa=t.balsa,
                       ambiental=t.ambiental, chapa=t.chapa, outras=t.outras)
            for t in taxas
        ]
    )


def _registro(lancamento: Lancamento) -> RegistroLancamento:
    cargas = tuple(
        CargaSnapshot(
            id_carga=c.id_carga_origem,
            numero_carga=c.numero_carga,
            cidade=c.cidade,
            valor_cte=c.valor_cte,
            data_cte=c.data_cte,
            km=c.km,
            cod_veiculo=c.cod_veiculo
        )
        for c in sorted(lancamento.cargas, key=lambda c: c.id)
    )
    return RegistroLancamento(
        id_lancamento=lancamento.id_lancamento,
        data_frete=lancamento.data_frete,
        id_veiculo=lancamento.id_veiculo,
        cargas=cargas,
        calculo=CalculoFrete(
            cidade_base=lancamento.cidade_base,
            km_base=lancamento.km_base,
            valor_base=lancamento.valor_base,
            pedagio=lancamento.pedagio,
            balsa=lancamento.balsa,
            ambiental=lancamento.ambiental,
            chapa=lancamento.chapa,
            outras=lancamento.outras,
            valor_total=lancamento.valor_total
        ),
        usuario=lancamento.usuario,
        motivo=lancamento.motivo,
        excluido=lancamento.excluido,
        motivo_exclusao=lancamento.motivo_exclusao
    )


class RepositorioSQL:
    def __init__(self, session: Session):
        self.session = session

    def obter_veiculo(self, id_veiculo: int) -> Optional[VeiculoRef]:
        veiculo = self.session.get(Veiculo, id_veiculo)
        return veiculo_ref(veiculo) if veiculo else None

    def carregar_tabela(self) -> TabelaParametros:
        return carregar_tabela(self.session)

    def obter_cargas(self, ids: Iterable[int]) -> List[CargaSnapshot]:
        """Snapshots das cargas ativas, na ordem dos IDs informados"""
        ids = list(ids)
        cargas = self.session.exec(
            select(Carga).where(Carga.id_carga.in_(ids), Carga.excluido == False)  # noqa: E712
        ).all()
        por_id = {c.id_carga: c for c in cargas}
        return [snapshot_carga(por_id[i]) for i in ids if i in por_id]

    def listar_lancamentos(self, incluir_excluidos: bool = True) -> List[RegistroLancamento]:
        query = select(Lancamento).order_by(Lancamento.id_lancamento)
        if not incluir_excluidos:
            query = query.where(Lancamento.excluido == False)  # noqa: E712
        return [_registro(l) for l in self.session.exec(query).all()]

    def obter_lancamento(self, id_lancamento: int) -> Optional[RegistroLancamento]:
        lancamento = self.session.get(Lancamento, id_lancamento)
        return _registro(lancamento) if lancamento else None

    def _adicionar(self, registro: RegistroLancamento) -> Lancamento:
        calculo = registro.calculo
        lancamento = Lancamento(
            data_frete=registro.data_frete,
            id_veiculo=registro.id_veiculo,
            cidade_base=calculo.cidade_base,
            km_base=calculo.km_base,
            valor_base=calculo.valor_base,
            pedagio=calculo.pedagio,
            balsa=calculo.balsa,
            ambiental=calculo.ambiental,
            chapa=calculo.chapa,
            outras=calculo.outras,
            valor_total=calculo.valor_total,
            usuario=registro.usuario,
            motivo=registro.motivo
        )
        for c in registro.cargas:
            lancamento.cargas.append(LancamentoCarga(
                id_carga_origem=c.id_carga,
                numero_carga=c.numero_carga,
                cidade=c.cidade,
                valor_cte=c.valor_cte,
                data_cte=c.data_cte,
                km=c.km,
                cod_veiculo=c.cod_veiculo
            ))
        self.session.add(lancamento)
        return lancamento

    def _marcar_excluido(self, id_lancamento: int, motivo: str) -> Lancamento:
        lancamento = self.session.get(Lancamento, id_lancamento)
        if lancamento is None:
            raise LancamentoNaoEncontrado()
        lancamento.excluido = True
        lancamento.motivo_exclusao = motivo
        self.session.add(lancamento)
        return lancamento

    def _gravar(self, lancamento: Lancamento) -> RegistroLancamento:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(lancamento)
        return _registro(lancamento)

    def criar_lancamento(self, registro: RegistroLancamento) -> RegistroLancamento:
        return self._gravar(self._adicionar(registro))

    def substituir_lancamento(self, registro: RegistroLancamento, id_antigo: int, motivo: str) -> RegistroLancamento:
        """Grava o novo lançamento e exclui o antigo na mesma transação"""
        self._marcar_excluido(id_antigo, motivo)
        return self._gravar(self._adicionar(registro))

    def excluir_lancamento(self, id_lancamento: int, motivo: str) -> RegistroLancamento:
        return self._gravar(self._marcar_excluido(id_lancamento, motivo))
