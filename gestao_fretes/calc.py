"""
Motor de cálculo do custo de frete de um lançamento
Resolve parâmetros de valor (cidade/tipo de veículo) e taxas por cidade
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Cidade coringa: parâmetro válido para qualquer cidade do tipo de veículo
QUALQUER = "Qualquer"


def chave(texto: Optional[str]) -> str:
    """Normaliza cidade/tipo de veículo para uso como chave de busca"""
    return (texto or "").strip().casefold()


@dataclass(frozen=True)
class VeiculoRef:
    id_veiculo: int
    cod_veiculo: str
    tipo_veiculo: str
    placa: str = ""
    motorista: str = ""
    ativo: bool = True


@dataclass(frozen=True)
class CargaSnapshot:
    """Cópia dos campos da carga relevantes para o faturamento"""
    id_carga: int
    numero_carga: str
    cidade: str
    valor_cte: float
    data_cte: date
    km: float
    cod_veiculo: str


@dataclass(frozen=True)
class FaixaValor:
    cidade: str
    tipo_veiculo: str
    valor_base: float
    km: float


@dataclass(frozen=True)
class TaxaCidade:
    cidade: str
    pedagio: float = 0.0
    balsa: float = 0.0
    ambiental: float = 0.0
    chapa: float = 0.0
    outras: float = 0.0


@dataclass(frozen=True)
class CalculoFrete:
    cidade_base: str
    km_base: float
    valor_base: float
    pedagio: float
    balsa: float
    ambiental: float
    chapa: float
    outras: float
    valor_total: float
    parametro_encontrado: bool = True


@dataclass(frozen=True)
class AjusteManual:
    """Valores informados manualmente pelo operador"""
    motivo: str
    valor_base: float = 0.0
    pedagio: float = 0.0
    balsa: float = 0.0
    outras: float = 0.0


COMPONENTES_TAXA = ("pedagio", "balsa", "ambiental", "chapa", "outras")


@dataclass
class TabelaParametros:
    """
    Dicionário de parâmetros montado uma única vez a partir dos cadastros.
    Cidades e tipos de veículo são indexados pela chave normalizada;
    havendo repetição, vale o primeiro parâmetro cadastrado.
    """
    faixas: Sequence[FaixaValor] = ()
    taxas: Sequence[TaxaCidade] = ()
    _faixas_idx: Dict[tuple, FaixaValor] = field(default_factory=dict, init=False, repr=False)
    _taxas_idx: Dict[str, TaxaCidade] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        for faixa in self.faixas:
            self._faixas_idx.setdefault((chave(faixa.cidade), chave(faixa.tipo_veiculo)), faixa)
        for taxa in self.taxas:
            self._taxas_idx.setdefault(chave(taxa.cidade), taxa)

    def resolver_faixa(self, cidade: str, tipo_veiculo: str) -> Optional[FaixaValor]:
        """Parâmetro da cidade para o tipo; senão o parâmetro 'Qualquer'"""
        tipo = chave(tipo_veiculo)
        faixa = self._faixas_idx.get((chave(cidade), tipo))
        if faixa is None:
            faixa = self._faixas_idx.get((chave(QUALQUER), tipo))
        return faixa

    def resolver_taxa(self, cidade: str) -> TaxaCidade:
        """Taxas da cidade, ou taxas zeradas se a cidade não tiver cadastro"""
        return self._taxas_idx.get(chave(cidade)) or TaxaCidade(cidade=cidade)

    def km_sugerido(self, cidade: str, tipo_veiculo: str) -> float:
        faixa = self.resolver_faixa(cidade, tipo_veiculo)
        return faixa.km if faixa else 0

    def tipos_veiculo(self) -> List[str]:
        return sorted({f.tipo_veiculo for f in self.faixas if f.tipo_veiculo})

    def cidades(self) -> List[str]:
        nomes = {f.cidade for f in self.faixas} | {t.cidade for t in self.taxas}
        return sorted(n for n in nomes if n and chave(n) != chave(QUALQUER))


def resolver_faixa(cidade: str, tipo_veiculo: str, faixas: Iterable[FaixaValor]) -> Optional[FaixaValor]:
    return TabelaParametros(faixas=list(faixas)).resolver_faixa(cidade, tipo_veiculo)


def resolver_taxa(cidade: str, taxas: Iterable[TaxaCidade]) -> TaxaCidade:
    return TabelaParametros(taxas=list(taxas)).resolver_taxa(cidade)


def carga_base(cargas: Sequence[CargaSnapshot]) -> CargaSnapshot:
    """Carga mais distante; no empate vale a primeira informada"""
    return max(cargas, key=lambda c: c.km)


def calcula_frete(
    tipo_veiculo: Optional[str],
    cargas: Sequence[CargaSnapshot],
    tabela: TabelaParametros
) -> Optional[CalculoFrete]:
    """Motor principal de cálculo do custo do lançamento"""
    if not cargas or tipo_veiculo is None:
        return None

    base = carga_base(cargas)

    faixa = tabela.resolver_faixa(base.cidade, tipo_veiculo)
    if faixa is None:
        logger.warning(
            f"[CALCULO] Sem parâmetro de valor para {base.cidade}/{tipo_veiculo}, valor base zerado"
        )
    valor_base = faixa.valor_base if faixa else 0.0

    # Cada cidade entra uma única vez, mesmo com várias cargas
    cidades = {}
    for c in cargas:
        cidades.setdefault(chave(c.cidade), c.cidade)

    totais = dict.fromkeys(COMPONENTES_TAXA, 0.0)
    for cidade in cidades.values():
        taxa = tabela.resolver_taxa(cidade)
        for componente in COMPONENTES_TAXA:
            totais[componente] += getattr(taxa, componente)

    # O total é a soma dos componentes já arredondados
    valor_base = round(valor_base, 2)
    totais = {componente: round(valor, 2) for componente, valor in totais.items()}
    total = valor_base + sum(totais.values())

    return CalculoFrete(
        cidade_base=base.cidade,
        km_base=base.km,
        valor_base=valor_base,
        valor_total=round(total, 2),
        **totais,
        parametro_encontrado=faixa is not None
    )


def valores_para_ajuste(calculo: CalculoFrete) -> Dict[str, float]:
    """Valores iniciais do ajuste manual (ambiental e chapa somados em outras)"""
    return {
        "valor_base": calculo.valor_base,
        "pedagio": calculo.pedagio,
        "balsa": calculo.balsa,
        "outras": round(calculo.outras + calculo.ambiental + calculo.chapa, 2),
    }


def aplica_ajuste_manual(calculo: CalculoFrete, ajuste: AjusteManual) -> CalculoFrete:
    """Sobrescreve os valores calculados mantendo cidade e km base"""
    valores = {
        "valor_base": round(ajuste.valor_base, 2),
        "pedagio": round(ajuste.pedagio, 2),
        "balsa": round(ajuste.balsa, 2),
        "outras": round(ajuste.outras, 2),
    }
    return replace(
        calculo,
        ambiental=0.0,
        chapa=0.0,
        valor_total=round(sum(valores.values()), 2),
        **valores
    )
