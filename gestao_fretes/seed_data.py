from sqlmodel import Session, select

from .models import MotivoSubstituicao

MOTIVOS_SUBSTITUICAO = [
    "Correção de valor",
    "Alteração de rota",
    "Lançamento indevido",
    "Outro",
]


def seed_initial_data(session: Session) -> int:
    """Popula os motivos de substituição se a tabela estiver vazia"""
    existente = session.exec(select(MotivoSubstituicao)).first()
    if existente:
        return 0  # Dados já existem

    for descricao in MOTIVOS_SUBSTITUICAO:
        session.add(MotivoSubstituicao(descricao=descricao))

    session.commit()
    return len(MOTIVOS_SUBSTITUICAO)
