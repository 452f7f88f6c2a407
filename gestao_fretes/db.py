from sqlmodel import SQLModel, create_engine, Session
from typing import Generator
import os

from .config import carregar_configuracoes

DATABASE_URL = carregar_configuracoes().database_url

# Create data directory if using SQLite and it doesn't exist
if DATABASE_URL.startswith("sqlite") and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.split("///")[1] if "///" in DATABASE_URL else DATABASE_URL.split("//")[1]
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)

engine = create_engine(
    DATABASE_URL,
    echo=False,  # Alterar para True para debug SQL
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
)


def get_session() -> Generator[Session, None, None]:
    """Dependência para obter sessão do banco de dados"""
    with Session(engine) as session:
        yield session


def create_db_and_tables(bind=None):
    """Cria tabelas no banco de dados"""
    # Registra as tabelas em SQLModel.metadata
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)
