import pytest

from src.domain.entities.atendimento import MetricaAtendente
from src.domain.entities.dimensoes import Atendente
from src.domain.metricas import metricas_por_atendente
from src.domain.ranking import ranquear_atendentes


def test_attendant_without_records_ranks_last(registro_factory):
    roster = [Atendente("Ana"), Atendente("Bia")]
    registros = [registro_factory(atendente="Ana", tempo_total=5) for _ in range(10)]

    ranking = ranquear_atendentes(metricas_por_atendente(registros, ["Ana", "Bia"]), roster)

    ana, bia = ranking.todos
    assert (ana.posicao, ana.atendente, ana.metrica.iea) == (1, "Ana", pytest.approx(2.0))
    assert (bia.posicao, bia.atendente, bia.metrica.total, bia.metrica.iea) == (2, "Bia", 0, 0)


def test_activity_takes_precedence_over_iea():
    # Atendeu, mas sem tempo registrado: IEA 0, ainda à frente de quem não atendeu
    sem_tempo = MetricaAtendente(atendente="Caio", total=3)
    parado = MetricaAtendente(atendente="Dani")

    ranking = ranquear_atendentes([parado, sem_tempo])

    assert [r.atendente for r in ranking.todos] == ["Caio", "Dani"]


def test_ties_keep_roster_order():
    roster = [Atendente("Bia"), Atendente("Ana"), Atendente("Caio")]
    metricas = [
        MetricaAtendente(atendente="Ana", total=2, iea=1.0),
        MetricaAtendente(atendente="Bia", total=2, iea=1.0),
        MetricaAtendente(atendente="Caio", total=5, iea=3.0),
    ]

    ranking = ranquear_atendentes(metricas, roster)

    assert [r.atendente for r in ranking.todos] == ["Caio", "Bia", "Ana"]
    assert [r.posicao for r in ranking.todos] == [1, 2, 3]


def test_roster_restricts_and_carries_photo():
    roster = [Atendente("Ana", foto_url="https://fotos/ana.png")]
    metricas = [
        MetricaAtendente(atendente="Ana", total=1, iea=0.5),
        MetricaAtendente(atendente="Intruso", total=9, iea=9.0),
    ]

    ranking = ranquear_atendentes(metricas, roster)

    assert [r.atendente for r in ranking.todos] == ["Ana"]
    assert ranking.todos[0].foto_url == "https://fotos/ana.png"


def test_destaques_is_prefix_and_best_worst_ignore_inactive():
    metricas = [
        MetricaAtendente(atendente="A", total=1, iea=1.0),
        MetricaAtendente(atendente="B", total=1, iea=4.0),
        MetricaAtendente(atendente="C", total=1, iea=2.0),
        MetricaAtendente(atendente="D"),
    ]

    ranking = ranquear_atendentes(metricas, destaques=2)

    assert [r.atendente for r in ranking.destaques] == ["B", "C"]
    assert ranking.destaques == ranking.todos[:2]
    assert ranking.melhor.atendente == "B"
    assert ranking.pior.atendente == "A"


def test_empty_ranking_has_no_best_or_worst():
    ranking = ranquear_atendentes([], roster=[Atendente("Ana")])

    assert ranking.melhor is None
    assert ranking.pior is None
    assert [r.atendente for r in ranking.todos] == ["Ana"]
