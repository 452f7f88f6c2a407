"""
Ciclo de vida dos lançamentos de frete

Fluxo: rascunho (veículo + data) -> cargas selecionadas -> calculado ->
(pendente de justificativa, se houver carga já lançada) -> persistido.
Um lançamento persistido pode ser substituído (edição) ou excluído.

A persistência é feita por um repositório (ver repositorio.RepositorioSQL) que
oferece: obter_veiculo, carregar_tabela, listar_lancamentos, obter_lancamento,
criar_lancamento, substituir_lancamento e excluir_lancamento.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Tuple

from .calc import (
    AjusteManual,
    CalculoFrete,
    CargaSnapshot,
    VeiculoRef,
    aplica_ajuste_manual,
    calcula_frete,
    chave,
)
from .duplicidade import cargas_em_conflito

logger = logging.getLogger(__name__)


class EstadoLancamento(str, Enum):
    RASCUNHO = "rascunho"
    CARGAS_SELECIONADAS = "cargas_selecionadas"
    CALCULADO = "calculado"
    PENDENTE_JUSTIFICATIVA = "pendente_justificativa"
    PERSISTIDO = "persistido"
    SUBSTITUIDO = "substituido"
    EXCLUIDO = "excluido"


class ErroLancamento(Exception):
    """Requisito do lançamento não atendido"""
    mensagem = "Não foi possível processar o lançamento."

    def __init__(self, mensagem: Optional[str] = None):
        self.mensagem = mensagem or self.mensagem
        super().__init__(self.mensagem)


class VeiculoNaoEncontrado(ErroLancamento):
    mensagem = "Veículo não encontrado."


class VeiculoInativo(ErroLancamento):
    mensagem = "Apenas veículos ativos podem receber novos lançamentos."


class NenhumaCargaSelecionada(ErroLancamento):
    mensagem = "Selecione ao menos uma carga para calcular o frete."


class CargaIncompativel(ErroLancamento):
    mensagem = "Selecione apenas cargas do veículo e da data do lançamento."


class MotivoEdicaoObrigatorio(ErroLancamento):
    mensagem = "Informe o motivo da alteração para editar o lançamento."


class MotivoExclusaoObrigatorio(ErroLancamento):
    mensagem = "Motivo é obrigatório para exclusão."


class MotivoAjusteObrigatorio(ErroLancamento):
    mensagem = "Informe o motivo para alterar manualmente os valores calculados."


class ValorTotalZerado(ErroLancamento):
    mensagem = ("Não é possível salvar um lançamento com valor total zero. "
                "Verifique os parâmetros ou use a edição manual.")


class LancamentoNaoEncontrado(ErroLancamento):
    mensagem = "Lançamento não encontrado."


class LancamentoJaExcluido(ErroLancamento):
    mensagem = "O lançamento já foi excluído."


class LancamentoJaPersistido(ErroLancamento):
    mensagem = "O lançamento já foi gravado."


@dataclass(frozen=True)
class RegistroLancamento:
    data_frete: date
    id_veiculo: int
    cargas: Tuple[CargaSnapshot, ...]
    calculo: CalculoFrete
    usuario: str
    motivo: Optional[str] = None
    id_lancamento: Optional[int] = None
    excluido: bool = False
    motivo_exclusao: Optional[str] = None


@dataclass
class LancamentoCandidato:
    veiculo: VeiculoRef
    data_frete: date
    usuario: str
    cargas: Tuple[CargaSnapshot, ...] = ()
    motivo: Optional[str] = None
    ajuste_manual: Optional[AjusteManual] = None
    calculo: Optional[CalculoFrete] = None
    estado: EstadoLancamento = EstadoLancamento.RASCUNHO
    substitui_id: Optional[int] = None


@dataclass(frozen=True)
class ResultadoSubmissao:
    estado: EstadoLancamento
    calculo: CalculoFrete
    lancamento: Optional[RegistroLancamento] = None
    cargas_em_conflito: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def pendente(self) -> bool:
        return self.estado == EstadoLancamento.PENDENTE_JUSTIFICATIVA


def _texto(valor: Optional[str]) -> str:
    return (valor or "").strip()


def compor_motivo(motivo: Optional[str], motivo_ajuste: Optional[str] = None) -> Optional[str]:
    """Junta o motivo informado e o motivo do ajuste manual de valores"""
    final = _texto(motivo)
    ajuste = _texto(motivo_ajuste)
    if ajuste:
        prefixo = f"{final} | " if final else ""
        final = f"{prefixo}Ajuste Manual de Valores: {ajuste}"
    return final or None


class GerenciadorLancamentos:
    def __init__(self, repositorio):
        self.repositorio = repositorio

    def _veiculo(self, id_veiculo: int, exigir_ativo: bool = True) -> VeiculoRef:
        veiculo = self.repositorio.obter_veiculo(id_veiculo)
        if veiculo is None:
            raise VeiculoNaoEncontrado()
        if exigir_ativo and not veiculo.ativo:
            raise VeiculoInativo()
        return veiculo

    def _lancamento_ativo(self, id_lancamento: int) -> RegistroLancamento:
        registro = self.repositorio.obter_lancamento(id_lancamento)
        if registro is None:
            raise LancamentoNaoEncontrado()
        if registro.excluido:
            raise LancamentoJaExcluido()
        return registro

    def novo_candidato(self, id_veiculo: int, data_frete: date, usuario: str) -> LancamentoCandidato:
        veiculo = self._veiculo(id_veiculo)
        return LancamentoCandidato(veiculo=veiculo, data_frete=data_frete, usuario=usuario)

    def selecionar_cargas(self, candidato: LancamentoCandidato, cargas: Iterable[CargaSnapshot]) -> LancamentoCandidato:
        """Cargas repetidas entram uma vez; todas devem ser do veículo e da data do lançamento"""
        unicas = {}
        for c in cargas:
            unicas.setdefault(c.id_carga, c)

        for c in unicas.values():
            if chave(c.cod_veiculo) != chave(candidato.veiculo.cod_veiculo) or c.data_cte != candidato.data_frete:
                raise CargaIncompativel(
                    f"A carga {c.numero_carga} não pertence ao veículo "
                    f"{candidato.veiculo.cod_veiculo} na data {candidato.data_frete:%d/%m/%Y}."
                )

        candidato.cargas = tuple(unicas.values())
        candidato.calculo = None
        candidato.estado = (EstadoLancamento.CARGAS_SELECIONADAS if candidato.cargas
                            else EstadoLancamento.RASCUNHO)
        return candidato

    def justificar(self, candidato: LancamentoCandidato, motivo: str) -> LancamentoCandidato:
        candidato.motivo = _texto(motivo) or None
        if candidato.motivo and candidato.estado == EstadoLancamento.PENDENTE_JUSTIFICATIVA:
            candidato.estado = EstadoLancamento.CALCULADO
        return candidato

    def calcular(self, candidato: LancamentoCandidato) -> CalculoFrete:
        if not candidato.cargas:
            raise NenhumaCargaSelecionada()

        ajuste = candidato.ajuste_manual
        if ajuste is not None and not _texto(ajuste.motivo):
            raise MotivoAjusteObrigatorio()

        calculo = calcula_frete(candidato.veiculo.tipo_veiculo, candidato.cargas,
                                self.repositorio.carregar_tabela())
        if ajuste is not None:
            calculo = aplica_ajuste_manual(calculo, ajuste)

        candidato.calculo = calculo
        candidato.estado = EstadoLancamento.CALCULADO
        return calculo

    def submeter(self, candidato: LancamentoCandidato) -> ResultadoSubmissao:
        """Grava o lançamento, ou pede justificativa se houver carga já lançada"""
        if candidato.estado == EstadoLancamento.PERSISTIDO:
            raise LancamentoJaPersistido()

        calculo = self.calcular(candidato)
        if calculo.valor_total <= 0:
            raise ValorTotalZerado()

        conflitos = tuple(cargas_em_conflito(
            candidato.cargas, self.repositorio.listar_lancamentos(incluir_excluidos=False), candidato.substitui_id
        ))
        motivo_ajuste = candidato.ajuste_manual.motivo if candidato.ajuste_manual else None
        motivo = compor_motivo(candidato.motivo, motivo_ajuste)

        if conflitos and not motivo:
            candidato.estado = EstadoLancamento.PENDENTE_JUSTIFICATIVA
            logger.info(f"[LANCAMENTO] Cargas já lançadas {list(conflitos)}, aguardando justificativa")
            return ResultadoSubmissao(candidato.estado, calculo, cargas_em_conflito=conflitos)

        registro = RegistroLancamento(
            data_frete=candidato.data_frete,
            id_veiculo=candidato.veiculo.id_veiculo,
            cargas=candidato.cargas,
            calculo=calculo,
            usuario=candidato.usuario,
            motivo=motivo
        )

        if candidato.substitui_id is not None:
            salvo = self.repositorio.substituir_lancamento(registro, candidato.substitui_id, motivo)
            logger.info(f"[LANCAMENTO] Lançamento {candidato.substitui_id} substituído por {salvo.id_lancamento}")
        else:
            salvo = self.repositorio.criar_lancamento(registro)
            logger.info(f"[LANCAMENTO] Lançamento {salvo.id_lancamento} criado: R$ {calculo.valor_total:.2f}")

        if conflitos:
            logger.warning(f"[LANCAMENTO] Cargas {list(conflitos)} reutilizadas com justificativa: {motivo}")

        candidato.estado = EstadoLancamento.PERSISTIDO
        return ResultadoSubmissao(candidato.estado, calculo, salvo, conflitos)

    def editar(
        self,
        id_lancamento: int,
        motivo: Optional[str],
        data_frete: Optional[date] = None,
        id_veiculo: Optional[int] = None,
        cargas: Optional[Iterable[CargaSnapshot]] = None,
        ajuste_manual: Optional[AjusteManual] = None,
        usuario: Optional[str] = None
    ) -> ResultadoSubmissao:
        """Cria um novo lançamento com os dados editados e exclui o original"""
        if not _texto(motivo):
            raise MotivoEdicaoObrigatorio()

        original = self._lancamento_ativo(id_lancamento)

        if id_veiculo is not None and id_veiculo != original.id_veiculo:
            veiculo = self._veiculo(id_veiculo)
        else:
            # O veículo original pode ter sido inativado depois do lançamento
            veiculo = self._veiculo(original.id_veiculo, exigir_ativo=False)

        candidato = LancamentoCandidato(
            veiculo=veiculo,
            data_frete=data_frete or original.data_frete,
            usuario=usuario or original.usuario,
            motivo=_texto(motivo),
            ajuste_manual=ajuste_manual,
            substitui_id=original.id_lancamento
        )
        self.selecionar_cargas(candidato, original.cargas if cargas is None else cargas)
        return self.submeter(candidato)

    def excluir(self, id_lancamento: int, motivo: Optional[str]) -> RegistroLancamento:
        if not _texto(motivo):
            raise MotivoExclusaoObrigatorio()

        self._lancamento_ativo(id_lancamento)
        registro = self.repositorio.excluir_lancamento(id_lancamento, _texto(motivo))
        logger.info(f"[LANCAMENTO] Lançamento {id_lancamento} excluído: {registro.motivo_exclusao}")
        return registro
