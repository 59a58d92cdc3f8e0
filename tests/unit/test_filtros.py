import logging
from datetime import date

import pytest

from src.domain.filtros import FiltroAtendimento, aplicar_filtros, inicio_da_semana, resolver_janela

HOJE = date(2024, 3, 13)  # quarta-feira


@pytest.mark.parametrize(
    ("periodo", "esperado"),
    [
        ("today", (HOJE, HOJE)),
        ("hoje", (HOJE, HOJE)),
        ("7d", (date(2024, 3, 6), HOJE)),
        ("7days", (date(2024, 3, 6), HOJE)),
        ("30d", (date(2024, 2, 12), HOJE)),
        ("week", (date(2024, 3, 10), HOJE)),
        ("semanal", (date(2024, 3, 10), HOJE)),
        ("month", (date(2024, 3, 1), HOJE)),
        ("year", (date(2024, 1, 1), HOJE)),
    ],
)
def test_resolver_janela_named_periods(periodo, esperado):
    assert resolver_janela(periodo, HOJE) == esperado


def test_resolver_janela_all_and_none_mean_no_restriction():
    assert resolver_janela("all", HOJE) is None
    assert resolver_janela(None, HOJE) is None


def test_resolver_janela_swaps_reversed_range():
    assert resolver_janela((date(2024, 2, 1), date(2024, 1, 1))) == (date(2024, 1, 1), date(2024, 2, 1))


def test_unknown_period_fails_open_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        assert resolver_janela("quinzena", HOJE) is None
    assert "quinzena" in caplog.text


def test_inicio_da_semana_is_sunday():
    assert inicio_da_semana(date(2024, 3, 10)) == date(2024, 3, 10)
    assert inicio_da_semana(date(2024, 3, 16)) == date(2024, 3, 10)


def test_filters_compose_as_conjunction(registro_factory):
    registros = [
        registro_factory(atendente="Ana", data=date(2024, 3, 12), chave="K1"),
        registro_factory(atendente="Ana", data=date(2024, 3, 12), chave="K2"),
        registro_factory(atendente="Bia", data=date(2024, 3, 12), chave="K1"),
        registro_factory(atendente="Ana", data=date(2024, 1, 2), chave="K1"),
        registro_factory(atendente="Ana", data=None, chave="K1"),
    ]

    filtro = FiltroAtendimento(periodo="month", atendente="Ana", chave="K1")
    resultado = aplicar_filtros(registros, filtro, HOJE)

    assert resultado == [registros[0]]


def test_all_sentinel_disables_each_dimension(registro_factory):
    registros = [registro_factory(atendente="Ana"), registro_factory(atendente="Bia", data=None)]

    filtro = FiltroAtendimento(periodo="all", atendente="all", chave="all", ano="all", situacao="all")

    assert aplicar_filtros(registros, filtro, HOJE) == registros


def test_records_without_date_never_match_period_or_year(registro_factory):
    sem_data = registro_factory(data=None)

    assert aplicar_filtros([sem_data], FiltroAtendimento(periodo="year"), HOJE) == []
    assert aplicar_filtros([sem_data], FiltroAtendimento(ano=2024), HOJE) == []


def test_situacao_and_busca_filters(registro_factory):
    finalizado = registro_factory(resolvido=True, status="Pendente", empresa="Padaria Central")
    pendente = registro_factory(resolvido=False, status="Pendente", empresa="Mercado Sol")
    andamento = registro_factory(resolvido=False, status=None, empresa="Padaria Lua")
    registros = [finalizado, pendente, andamento]

    assert aplicar_filtros(registros, FiltroAtendimento(situacao="pendente")) == [pendente]
    assert aplicar_filtros(registros, FiltroAtendimento(situacao="finalizado")) == [finalizado]
    assert aplicar_filtros(registros, FiltroAtendimento(busca="padaria")) == [finalizado, andamento]


def test_situacao_judges_attendance_by_first_seen_row(registro_factory):
    primeira = registro_factory(id_atendimento="1", resolvido=False, status="Pendente")
    repetida = registro_factory(id_atendimento="1", resolvido=True, status="Finalizado", empresa="Padaria")
    registros = [primeira, repetida]

    assert aplicar_filtros(registros, FiltroAtendimento(situacao="finalizado")) == []
    assert aplicar_filtros(registros, FiltroAtendimento(situacao="pendente")) == [primeira]
    # A empresa só aparece na linha repetida
    assert aplicar_filtros(registros, FiltroAtendimento(busca="padaria")) == []
