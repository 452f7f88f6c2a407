from typing import Optional, List
from datetime import date, datetime, timezone
from sqlmodel import SQLModel, Field, Relationship


class Veiculo(SQLModel, table=True):
    __tablename__ = "veiculos"

    id_veiculo: Optional[int] = Field(default=None, primary_key=True)
    cod_veiculo: str = Field(index=True, unique=True)
    placa: str
    tipo_veiculo: str  # Carreta, Truck, Toco... (texto livre)
    motorista: str = ""
    capacidade_kg: int = 0
    ativo: bool = Field(default=True)
    origem: str = "Manual"  # ERP, CSV, Manual


class Carga(SQLModel, table=True):
    __tablename__ = "cargas"

    id_carga: Optional[int] = Field(default=None, primary_key=True)
    numero_carga: str = Field(index=True)
    cidade: str
    valor_cte: float = 0.0
    data_cte: date = Field(index=True)
    km: float = 0.0  # Derivado do parâmetro de valor, mas editável
    cod_veiculo: str = Field(index=True)
    origem: str = "Manual"

    excluido: bool = Field(default=False)
    motivo_exclusao: Optional[str] = None
    motivo_alteracao: Optional[str] = None


class ParametroValor(SQLModel, table=True):
    __tablename__ = "parametros_valores"

    id_parametro: Optional[int] = Field(default=None, primary_key=True)
    cidade: str = Field(index=True)  # "Qualquer" vale para todas as cidades
    tipo_veiculo: str = Field(index=True)
    valor_base: float
    km: float = 0.0

    excluido: bool = Field(default=False)


class ParametroTaxa(SQLModel, table=True):
    __tablename__ = "parametros_taxas"

    id_taxa: Optional[int] = Field(default=None, primary_key=True)
    cidade: str = Field(index=True)
    pedagio: float = 0.0
    balsa: float = 0.0
    ambiental: float = 0.0
    chapa: float = 0.0
    outras: float = 0.0

    excluido: bool = Field(default=False)


class MotivoSubstituicao(SQLModel, table=True):
    __tablename__ = "motivos_substituicao"

    id_motivo: Optional[int] = Field(default=None, primary_key=True)
    descricao: str


class Lancamento(SQLModel, table=True):
    __tablename__ = "lancamentos"

    id_lancamento: Optional[int] = Field(default=None, primary_key=True)
    data_frete: date = Field(index=True)
    id_veiculo: int = Field(foreign_key="veiculos.id_veiculo")

    # Cálculo gravado no momento do lançamento
    cidade_base: str
    km_base: float
    valor_base: float
    pedagio: float = 0.0
    balsa: float = 0.0
    ambiental: float = 0.0
    chapa: float = 0.0
    outras: float = 0.0
    valor_total: float

    usuario: str
    motivo: Optional[str] = None
    excluido: bool = Field(default=False)
    motivo_exclusao: Optional[str] = None
    criado_em: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    cargas: List["LancamentoCarga"] = Relationship(back_populates="lancamento")


class LancamentoCarga(SQLModel, table=True):
    """Cópia da carga no momento do lançamento (não acompanha edições da carga)"""
    __tablename__ = "lancamento_cargas"

    id: Optional[int] = Field(default=None, primary_key=True)
    id_lancamento: int = Field(foreign_key="lancamentos.id_lancamento", index=True)
    id_carga_origem: int = Field(index=True)
    numero_carga: str
    cidade: str
    valor_cte: float
    data_cte: date
    km: float
    cod_veiculo: str

    lancamento: Lancamento = Relationship(back_populates="cargas")
