import os
from datetime import date
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from gestao_fretes.db import create_db_and_tables, get_session
from gestao_fretes.models import Carga, ParametroTaxa, ParametroValor, Veiculo
from gestao_fretes.seed_data import seed_initial_data

DATA_FRETE = date(2024, 5, 20)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        seed_initial_data(session)
        yield session


@pytest.fixture
def dados(session):
    """Veículos, parâmetros e cargas de um dia de operação"""
    carreta = Veiculo(cod_veiculo="CAR001", placa="ABC1D23", tipo_veiculo="Carreta", motorista="João")
    truck = Veiculo(cod_veiculo="TRUCK002", placa="EFG4H56", tipo_veiculo="Truck", motorista="Maria")
    inativo = Veiculo(cod_veiculo="OLD003", placa="XYZ9K87", tipo_veiculo="Carreta", ativo=False)

    session.add_all([
        carreta, truck, inativo,
        ParametroValor(cidade="Belo Horizonte", tipo_veiculo="Carreta", valor_base=2200.0, km=350),
        ParametroValor(cidade="Qualquer", tipo_veiculo="Carreta", valor_base=1500.0, km=100),
        ParametroValor(cidade="Contagem", tipo_veiculo="Carreta", valor_base=1800.0, km=200),
        ParametroValor(cidade="Santos", tipo_veiculo="Truck", valor_base=800.0, km=75),
        ParametroTaxa(cidade="Belo Horizonte", pedagio=50.50, balsa=0, ambiental=0, chapa=100.0, outras=10.0),
        ParametroTaxa(cidade="Contagem", pedagio=20.0, outras=5.0),
    ])
    session.commit()

    cargas = {
        "A": Carga(numero_carga="1001", cidade="Belo Horizonte", valor_cte=5000.0,
                   data_cte=DATA_FRETE, km=350, cod_veiculo="CAR001"),
        "B": Carga(numero_carga="1002", cidade="Contagem", valor_cte=1200.0,
                   data_cte=DATA_FRETE, km=200, cod_veiculo="CAR001"),
        "C": Carga(numero_carga="1003", cidade="Belo Horizonte", valor_cte=800.0,
                   data_cte=DATA_FRETE, km=350, cod_veiculo="CAR001"),
        "D": Carga(numero_carga="1004", cidade="Betim", valor_cte=300.0,
                   data_cte=DATA_FRETE, km=60, cod_veiculo="TRUCK002"),
    }
    session.add_all(cargas.values())
    session.commit()
    for objeto in [carreta, truck, inativo, *cargas.values()]:
        session.refresh(objeto)

    return SimpleNamespace(carreta=carreta, truck=truck, inativo=inativo, **cargas)


@pytest.fixture
def client(session):
    from gestao_fretes.main import app

    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()
