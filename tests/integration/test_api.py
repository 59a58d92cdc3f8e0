from datetime import date, datetime

import pytest
import strawberry
from fastapi.testclient import TestClient

from src.infrastructure.database import models
from src.infrastructure.database.config import get_db
from src.infrastructure.repositories.resumo_repository import ResumoRepository
from src.main import app
from src.presentation.graphql import queries


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def schema(session_factory, monkeypatch):
    monkeypatch.setattr(queries, "SessionLocal", session_factory)
    return strawberry.Schema(query=queries.Query)


# ==========================================
# REST: RESUMO
# ==========================================

def test_atualizar_resumo_endpoint(client, db, atendente_factory, atendimento_factory):
    atendente_factory("Ana")
    atendimento_factory(atendente="Ana", data=date.today(), tempo_total=12)

    response = client.post("/resumo/atualizar", params={"tipo_periodo": "mensal"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert [j["tipo_periodo"] for j in body["janelas"]] == ["mensal"]
    assert body["janelas"][0]["periodo_inicio"] == date.today().replace(day=1).isoformat()

    linha = db.query(models.ResumoAtendimento).one()
    assert (linha.atendente, linha.total_atendimentos) == ("Ana", 1)


def test_atualizar_resumo_rejects_unknown_type(client):
    response = client.post("/resumo/atualizar", params={"tipo_periodo": "quinzenal"})

    assert response.status_code == 400


def test_atualizar_resumo_failure_returns_503(client, atendente_factory, monkeypatch):
    atendente_factory("Ana")

    def falhar(self, *args, **kwargs):
        raise RuntimeError("banco indisponível")

    monkeypatch.setattr(ResumoRepository, "substituir_linhas", falhar)

    response = client.post("/resumo/atualizar", params={"tipo_periodo": "diario"})

    assert response.status_code == 503
    assert "banco indisponível" not in response.json()["detail"]


# ==========================================
# REST: INGESTÃO
# ==========================================

PLANILHA = (
    "ID_ATENDIMENTO;ATENDENTE;DATA;TEMPO_TOTAL;RESOLVIDO;STATUS\n"
    "1;Ana;15/01/2024;30;sim;Finalizado\n"
    "1;Ana;15/01/2024;30;sim;Finalizado\n"
    "2;Carlos;16/01/2024;abc;nao;Pendente\n"
).encode("utf-8")


def test_upload_stores_raw_rows_and_reports_unknown_names(client, db, atendente_factory):
    atendente_factory("Ana")

    response = client.post("/ingestion/upload-csv", files={"file": ("atendimentos.csv", PLANILHA, "text/csv")})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "warning"
    assert body["detalhes"]["success_count"] == 3
    assert body["detalhes"]["nomes_sem_match"] == ["Carlos"]
    assert any("abc" in aviso for aviso in body["detalhes"]["avisos"])

    assert db.query(models.Atendimento).count() == 3
    carlos = db.query(models.Atendimento).filter(models.Atendimento.atendente == "Carlos").one()
    assert carlos.tempo_total is None
    assert db.query(models.Atendente).count() == 1


def test_upload_same_file_twice_is_rejected(client):
    primeiro = client.post("/ingestion/upload-csv", files={"file": ("a.csv", PLANILHA, "text/csv")})
    segundo = client.post("/ingestion/upload-csv", files={"file": ("a.csv", PLANILHA, "text/csv")})

    assert primeiro.status_code == 200
    assert segundo.status_code == 409


def test_upload_without_required_columns(client):
    conteudo = b"NOME;VALOR\nAna;10\n"

    response = client.post("/ingestion/upload-csv", files={"file": ("x.csv", conteudo, "text/csv")})

    assert response.status_code == 400
    assert "id_atendimento" in response.json()["detail"]


# ==========================================
# GRAPHQL
# ==========================================

def test_metricas_atendentes_query_rounds_values(schema, atendente_factory, atendimento_factory):
    atendente_factory("Ana")
    atendente_factory("Bia")
    atendimento_factory(atendente="Ana", data=date(2024, 1, 10), tempo_total=10)
    atendimento_factory(atendente="Ana", data=date(2024, 1, 11), tempo_total=20)

    result = schema.execute_sync("""
        {
            metricasAtendentes(dataInicio: "2024-01-01", dataFim: "2024-01-31") {
                atendente
                totalAtendimentos
                tempoMedio
                eficienciaIea
            }
        }
    """)

    assert result.errors is None
    assert result.data["metricasAtendentes"] == [
        {"atendente": "Ana", "totalAtendimentos": 2, "tempoMedio": 15.0, "eficienciaIea": 0.13},
        {"atendente": "Bia", "totalAtendimentos": 0, "tempoMedio": 0.0, "eficienciaIea": 0.0},
    ]


def test_ranking_and_trend_queries(schema, atendente_factory, atendimento_factory):
    atendente_factory("Ana")
    atendente_factory("Bia")
    atendimento_factory(atendente="Bia", data=date(2024, 1, 31), tempo_total=5)
    atendimento_factory(atendente="Bia", data=date(2024, 2, 1), tempo_total=5)

    result = schema.execute_sync("""
        {
            rankingAtendentes(dataInicio: "2024-01-01", dataFim: "2024-02-29") {
                todos { posicao atendente }
                melhorAtendente
                piorAtendente
            }
            tendenciaAtendimentos(granularidade: "month", dataInicio: "2024-01-01", dataFim: "2024-02-29") {
                chave
                total
            }
        }
    """)

    assert result.errors is None
    ranking = result.data["rankingAtendentes"]
    assert ranking["todos"] == [{"posicao": 1, "atendente": "Bia"}, {"posicao": 2, "atendente": "Ana"}]
    assert ranking["melhorAtendente"] == ranking["piorAtendente"] == "Bia"
    assert result.data["tendenciaAtendimentos"] == [
        {"chave": "01/2024", "total": 1},
        {"chave": "02/2024", "total": 1},
    ]


def test_historico_uploads_query(schema, client):
    client.post("/ingestion/upload-csv", files={"file": ("a.csv", PLANILHA, "text/csv")})

    result = schema.execute_sync("{ historicoUploads { filePath status totalRegistros } }")

    assert result.errors is None
    assert result.data["historicoUploads"] == [
        {"filePath": "a.csv", "status": "warning", "totalRegistros": 3}
    ]


def test_explicit_zero_destaques_gives_empty_spotlight(schema, atendente_factory, atendimento_factory):
    atendente_factory("Ana")
    atendente_factory("Bia")
    atendimento_factory(atendente="Ana", data=date(2024, 1, 10))

    result = schema.execute_sync("""
        {
            rankingAtendentes(periodo: "all", destaques: 0) { todos { atendente } destaques { atendente } }
            rankingResumo(tipoPeriodo: "mensal", destaques: 0) { todos { atendente } destaques { atendente } }
            padrao: rankingAtendentes(periodo: "all") { destaques { atendente } }
        }
    """)

    assert result.errors is None
    assert len(result.data["rankingAtendentes"]["todos"]) == 2
    assert result.data["rankingAtendentes"]["destaques"] == []
    assert len(result.data["rankingResumo"]["todos"]) == 2
    assert result.data["rankingResumo"]["destaques"] == []
    assert len(result.data["padrao"]["destaques"]) == 2


@pytest.mark.parametrize(
    "consulta",
    [
        '{ metricasAtendentes(dataInicio: "2024-01-01") { atendente } }',
        '{ tendenciaAtendimentos(dataFim: "2024-01-31") { chave } }',
        '{ resumoAtendimentos(dataInicio: "2024-01-01") { atendente } }',
    ],
)
def test_half_open_date_range_is_rejected(schema, consulta):
    result = schema.execute_sync(consulta)

    assert result.errors is not None
    assert "dataInicio e dataFim" in result.errors[0].message


# ==========================================
# FEEDBACKS
# ==========================================

FEEDBACK = {
    "id_atendimento": "AT-900",
    "atendente": "Ana",
    "modulo": "Financeiro",
    "nota_geral": 4,
    "nota_clareza": 5,
    "problema_resolvido": "parcialmente",
    "comentario": "Ajudou bastante",
    "empresa": "Padaria Central",
    "solicitante": "Joana",
}


def test_registrar_feedback(client, db):
    response = client.post("/feedbacks", json=FEEDBACK)

    assert response.status_code == 201
    assert response.json()["feedback"]["id_atendimento"] == "AT-900"
    [gravado] = db.query(models.Feedback).all()
    assert (gravado.atendente, gravado.nota_geral, gravado.solicitante) == ("Ana", 4, "Joana")
    assert gravado.created_at is not None


def test_second_feedback_for_same_attendance_is_refused(client, db):
    assert client.post("/feedbacks", json=FEEDBACK).status_code == 201

    response = client.post("/feedbacks", json={**FEEDBACK, "nota_geral": 1, "atendente": "Bia"})

    assert response.status_code == 409
    assert "já possui um feedback" in response.json()["detail"]
    assert db.query(models.Feedback).count() == 1


@pytest.mark.parametrize(
    "alteracao",
    [
        {"nota_geral": 6},
        {"nota_clareza": 0},
        {"problema_resolvido": "talvez"},
        {"id_atendimento": ""},
        {"atendente": "   "},
    ],
)
def test_invalid_feedback_is_rejected(client, db, alteracao):
    response = client.post("/feedbacks", json={**FEEDBACK, **alteracao})

    assert response.status_code == 422
    assert db.query(models.Feedback).count() == 0


def test_feedbacks_query_filters_and_orders_newest_first(schema, feedback_factory):
    feedback_factory(atendente="Ana", nota_geral=5, comentario="Ótimo", created_at=datetime(2024, 1, 10, 9))
    feedback_factory(atendente="Bia", nota_geral=2, problema_resolvido="nao", solicitante="Pedro",
                     created_at=datetime(2024, 1, 11, 9))
    feedback_factory(atendente="Ana", nota_geral=5, modulo="Fiscal", empresa="Mercado Sol",
                     created_at=datetime(2024, 1, 12, 9))

    result = schema.execute_sync("""
        {
            todos: feedbacks { atendente createdAt }
            notaCinco: feedbacks(nota: 5) { idAtendimento modulo }
            busca: feedbacks(busca: "pedro") { atendente solicitante problemaResolvido }
            resolvidos: feedbacks(resolucao: "sim", atendente: "Ana", limite: 1) { modulo }
        }
    """)

    assert result.errors is None
    assert [f["atendente"] for f in result.data["todos"]] == ["Ana", "Bia", "Ana"]
    assert result.data["todos"][0]["createdAt"] == "2024-01-12T09:00:00"
    assert [f["modulo"] for f in result.data["notaCinco"]] == ["Fiscal", "Financeiro"]
    assert result.data["busca"] == [{"atendente": "Bia", "solicitante": "Pedro", "problemaResolvido": "nao"}]
    assert result.data["resolvidos"] == [{"modulo": "Fiscal"}]
