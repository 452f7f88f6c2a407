import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from .config import carregar_configuracoes
from .db import create_db_and_tables, engine
from .seed_data import seed_initial_data
from .views import router

configuracoes = carregar_configuracoes()

logging.basicConfig(
    level=configuracoes.log_level,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gestão de Fretes",
    description="Lançamentos de frete: cálculo de custo e conciliação de cargas",
    version="1.0.0"
)
app.state.configuracoes = configuracoes

# CORS middleware (necessário para o frontend em outro domínio)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Em produção, especificar domínios
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {"mensagem": "API do Sistema de Fretes está funcionando!"}


@app.on_event("startup")
async def startup_event():
    """Inicialização da aplicação"""
    create_db_and_tables()
    with Session(engine) as session:
        inseridos = seed_initial_data(session)
    logger.info(f"Banco de dados pronto ({inseridos} motivos de substituição inseridos)")


@app.get("/health")
async def health_check():
    """Endpoint de health check"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gestao_fretes.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
