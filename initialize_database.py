#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Script para inicializar o banco de dados com os dados necessários
Uso: python initialize_database.py [--exemplo]
"""

import sys
import logging
import traceback
from datetime import datetime

from sqlmodel import Session, select

from gestao_fretes.db import create_db_and_tables, engine
from gestao_fretes.models import ParametroTaxa, ParametroValor, Veiculo
from gestao_fretes.seed_data import seed_initial_data


def setup_logging():
    """Configura logging detalhado para debug"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger(__name__)


def popular_exemplo(session: Session) -> bool:
    """Veículos e parâmetros de exemplo para ambiente de desenvolvimento"""
    if session.exec(select(Veiculo)).first():
        return False

    session.add_all([
        Veiculo(cod_veiculo="CAR001", placa="ABC1D23", tipo_veiculo="Carreta",
                motorista="João da Silva", capacidade_kg=27000),
        Veiculo(cod_veiculo="TRUCK002", placa="EFG4H56", tipo_veiculo="Truck",
                motorista="Maria Souza", capacidade_kg=14000),
        ParametroValor(cidade="Belo Horizonte", tipo_veiculo="Carreta", valor_base=2200.0, km=350),
        ParametroValor(cidade="Qualquer", tipo_veiculo="Carreta", valor_base=1500.0, km=100),
        ParametroValor(cidade="Santos", tipo_veiculo="Truck", valor_base=800.0, km=75),
        ParametroValor(cidade="Qualquer", tipo_veiculo="Truck", valor_base=600.0, km=50),
        ParametroTaxa(cidade="Belo Horizonte", pedagio=50.50, chapa=100.0, outras=10.0),
        ParametroTaxa(cidade="Santos", pedagio=25.0, balsa=40.0, ambiental=15.0),
    ])
    session.commit()
    return True


def init_database(exemplo: bool = False) -> bool:
    """Inicializa o banco de dados"""
    logger = setup_logging()
    logger.info("=== INICIANDO CONFIGURACAO DO BANCO DE DADOS ===")

    try:
        start_time = datetime.now()
        create_db_and_tables()
        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Tabelas criadas com sucesso em {duration:.2f} segundos")
    except Exception as e:
        logger.error(f"ERRO CRITICO ao criar tabelas: {e}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return False

    with Session(engine) as session:
        inseridos = seed_initial_data(session)
        logger.info(f"Motivos de substituição inseridos: {inseridos}")

        if exemplo:
            if popular_exemplo(session):
                logger.info("Dados de exemplo inseridos")
            else:
                logger.info("Banco já possui veículos, dados de exemplo ignorados")

    logger.info("=== CONFIGURACAO CONCLUIDA ===")
    return True


if __name__ == "__main__":
    sucesso = init_database(exemplo="--exemplo" in sys.argv[1:])
    sys.exit(0 if sucesso else 1)
