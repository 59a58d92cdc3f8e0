"""
Agrupamento dos atendimentos em baldes de calendário para os gráficos de
tendência. Usa sempre a data do atendimento (não o created_at) e ordena
pela data de início do balde, nunca pela chave formatada.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from src.domain.entities.atendimento import PontoTendencia, RegistroAtendimento
from src.domain.filtros import Periodo, resolver_janela
from src.domain.metricas import calcular_metricas


class Granularidade(str, Enum):
    DIA = "day"
    MES = "month"


def inicio_do_balde(dia: date, granularidade: Granularidade) -> date:
    if granularidade == Granularidade.MES:
        return dia.replace(day=1)
    return dia


def chave_do_balde(inicio: date, granularidade: Granularidade) -> str:
    if granularidade == Granularidade.MES:
        return inicio.strftime("%m/%Y")
    return inicio.strftime("%d/%m")


def _proximo(inicio: date, granularidade: Granularidade) -> date:
    if granularidade == Granularidade.MES:
        if inicio.month == 12:
            return date(inicio.year + 1, 1, 1)
        return date(inicio.year, inicio.month + 1, 1)
    return inicio + timedelta(days=1)


def ultimos_dias(n: int, hoje: Optional[date] = None):
    """
    Janela dos últimos n dias, incluindo hoje (n=7 → 7 baldes diários).

    É a janela padrão do gráfico. Não confundir com o período "7d" do
    filtro (resolver_janela), que vai de hoje − 7 até hoje e cobre 8 datas
    de calendário, como o filtro "últimos 7 dias" dos painéis sempre fez.
    """
    hoje = hoje or date.today()
    return hoje - timedelta(days=n - 1), hoje


def calcular_tendencia(
    registros: Iterable[RegistroAtendimento],
    granularidade: Granularidade = Granularidade.DIA,
    janela: Periodo = None,
    hoje: Optional[date] = None,
) -> List[PontoTendencia]:
    """
    Série de (chave, total, tempo médio) por balde.

    Com janela, todos os baldes do intervalo aparecem (zerados quando não
    há atendimento) e registros fora dela são ignorados. Sem janela, só os
    baldes com registros. Registros sem data válida não entram na série.
    """
    granularidade = Granularidade(granularidade)
    intervalo = resolver_janela(janela, hoje)

    baldes: Dict[date, List[RegistroAtendimento]] = {}
    if intervalo is not None:
        atual = inicio_do_balde(intervalo[0], granularidade)
        while atual <= intervalo[1]:
            baldes[atual] = []
            atual = _proximo(atual, granularidade)

    for r in registros:
        if r.data is None:
            continue
        if intervalo is not None and not (intervalo[0] <= r.data <= intervalo[1]):
            continue
        baldes.setdefault(inicio_do_balde(r.data, granularidade), []).append(r)

    serie = []
    for inicio in sorted(baldes):
        metrica = calcular_metricas(baldes[inicio])
        serie.append(PontoTendencia(
            chave=chave_do_balde(inicio, granularidade),
            inicio=inicio,
            total=metrica.total,
            tempo_medio=metrica.tempo_medio,
        ))
    return serie
