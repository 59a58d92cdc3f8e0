"""
Pipeline de filtros dos atendimentos.

O filtro é um objeto de valor imutável passado explicitamente para as
funções puras; nada aqui guarda estado entre chamadas. Cada dimensão
ausente (None ou "all") significa "sem restrição".
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from src.domain.entities.atendimento import RegistroAtendimento, Situacao
from src.domain.metricas import classificar_situacao, deduplicar

logger = logging.getLogger(__name__)

TODOS = "all"

Janela = Tuple[date, date]
Periodo = Union[str, Janela, None]

# Janelas relativas em dias: hoje − N até hoje, N + 1 datas de calendário.
# O gráfico sem período usa tendencia.ultimos_dias(7), que tem 7 datas.
JANELAS_EM_DIAS = {
    "7d": 7, "7days": 7,
    "30d": 30, "30days": 30,
    "90d": 90, "90days": 90,
}

# Apelidos usados pelos painéis em português
APELIDOS_PERIODO = {
    "hoje": "today",
    "diario": "today",
    "semanal": "week",
    "mensal": "month",
    "anual": "year",
}

SITUACOES_FILTRO = {
    "finalizado": Situacao.FINALIZADO,
    "andamento": Situacao.EM_ANDAMENTO,
    "pendente": Situacao.PENDENTE,
}


@dataclass(frozen=True)
class FiltroAtendimento:
    periodo: Periodo = None
    atendente: Optional[str] = None
    chave: Optional[str] = None
    ano: Optional[int] = None
    situacao: Optional[str] = None
    busca: Optional[str] = None


def _ativo(valor) -> bool:
    return valor is not None and valor != TODOS and valor != ""


def inicio_da_semana(dia: date) -> date:
    """Domingo da semana de `dia`."""
    return dia - timedelta(days=(dia.weekday() + 1) % 7)


def resolver_janela(periodo: Periodo, hoje: Optional[date] = None) -> Optional[Janela]:
    """
    Converte o período do filtro num intervalo fechado [inicio, fim].

    Retorna None quando não há restrição ("all", None ou nome desconhecido).
    Nomes desconhecidos caem em "all" em vez de esvaziar o resultado.
    """
    if periodo is None:
        return None

    if isinstance(periodo, tuple):
        inicio, fim = periodo
        if inicio > fim:
            inicio, fim = fim, inicio
        return inicio, fim

    hoje = hoje or date.today()
    nome = APELIDOS_PERIODO.get(str(periodo).strip().lower(), str(periodo).strip().lower())

    if nome == TODOS:
        return None
    if nome == "today":
        return hoje, hoje
    if nome in JANELAS_EM_DIAS:
        return hoje - timedelta(days=JANELAS_EM_DIAS[nome]), hoje
    if nome == "week":
        return inicio_da_semana(hoje), hoje
    if nome == "month":
        return hoje.replace(day=1), hoje
    if nome == "year":
        return date(hoje.year, 1, 1), hoje

    logger.warning("Período desconhecido %r; filtro de período ignorado", periodo)
    return None


def _casa_busca(registro: RegistroAtendimento, termo: str) -> bool:
    termo = termo.lower()
    campos = (registro.atendente, registro.id_atendimento, registro.empresa, registro.chave)
    return any(c and termo in c.lower() for c in campos)


def aplicar_filtros(
    registros: Iterable[RegistroAtendimento],
    filtro: FiltroAtendimento,
    hoje: Optional[date] = None,
) -> List[RegistroAtendimento]:
    """
    Subconjunto dos registros que satisfaz todos os predicados presentes.

    Período, ano, atendente e chave valem linha a linha. Situação e busca
    valem para o atendimento: com um deles ativo, o resultado sai
    deduplicado e cada atendimento é julgado pela primeira linha vista,
    a mesma que as estatísticas sem filtro usam.
    """
    janela = resolver_janela(filtro.periodo, hoje)
    situacao = None
    if _ativo(filtro.situacao):
        situacao = SITUACOES_FILTRO.get(str(filtro.situacao).lower())
        if situacao is None:
            logger.warning("Situação desconhecida %r; filtro ignorado", filtro.situacao)

    resultado = []
    for r in registros:
        if janela is not None:
            if r.data is None or not (janela[0] <= r.data <= janela[1]):
                continue
        if _ativo(filtro.ano):
            if r.data is None or r.data.year != int(filtro.ano):
                continue
        if _ativo(filtro.atendente) and r.atendente != filtro.atendente:
            continue
        if _ativo(filtro.chave) and r.chave != filtro.chave:
            continue
        resultado.append(r)

    if situacao is None and not _ativo(filtro.busca):
        return resultado

    return [
        r for r in deduplicar(resultado)
        if (situacao is None or classificar_situacao(r) == situacao)
        and (not _ativo(filtro.busca) or _casa_busca(r, filtro.busca))
    ]
