import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from strawberry.fastapi import GraphQLRouter
from fastapi.middleware.cors import CORSMiddleware
import strawberry

from src.infrastructure.settings import settings, configurar_logging
from src.presentation.graphql.queries import Query
from src.presentation.controllers import feedback_controller, ingestion_controller, resumo_controller

configurar_logging()
logger = logging.getLogger(__name__)

# Criação do Schema GraphQL
schema = strawberry.Schema(query=Query)
graphql_app = GraphQLRouter(schema)

app = FastAPI(
    title="Painel de Atendimentos API",
    description="Métricas, ranking (IEA) e resumo materializado dos atendimentos do service desk",
    version="1.0.0"
)

# Origins de desenvolvimento + os configurados em CORS_ORIGINS
origins = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
] + settings.cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Handler explícito para preflight CORS no GraphQL
@app.options("/graphql")
async def graphql_options(request: Request):
    return JSONResponse(
        content={},
        headers={
            "Access-Control-Allow-Origin": request.headers.get("origin", "*"),
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "*",
            "Access-Control-Allow-Credentials": "true",
        }
    )

# Rotas REST (escrita)
app.include_router(ingestion_controller.router)
app.include_router(resumo_controller.router)
app.include_router(feedback_controller.router)

# Rota GraphQL para Leitura
app.include_router(graphql_app, prefix="/graphql")

logger.info("Painel de Atendimentos API pronta (%d origins CORS)", len(origins))


@app.get("/")
def read_root():
    return {
        "status": "Painel de Atendimentos API Running",
        "version": "1.0.0",
        "endpoints": {
            "graphql": "/graphql",
            "ingestion": "/ingestion/upload-csv",
            "resumo": "/resumo/atualizar",
            "feedbacks": "/feedbacks",
            "docs": "/docs"
        }
    }

@app.get("/health")
def health_check():
    """Endpoint de health check para monitoramento"""
    return {"status": "healthy"}
