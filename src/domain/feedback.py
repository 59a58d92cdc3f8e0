"""
Indicadores do painel de feedbacks dos clientes.

Score do atendente = nota_media * 0.4 + clareza_media * 0.3 + taxa_resolucao * 0.03
(nota e clareza de 1 a 5, taxa em %). Como no painel de atendimentos,
nada é arredondado aqui.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from src.domain.entities.dimensoes import Atendente, Modulo
from src.domain.filtros import TODOS, Periodo, resolver_janela

RESOLUCOES = ("sim", "parcialmente", "nao")

PESO_NOTA = 0.4
PESO_CLAREZA = 0.3
PESO_RESOLUCAO = 0.03


@dataclass(frozen=True)
class RegistroFeedback:
    atendente: str
    nota_geral: Optional[int] = None
    nota_clareza: Optional[int] = None
    problema_resolvido: Optional[str] = None    # sim | parcialmente | nao
    modulo: Optional[str] = None
    empresa: Optional[str] = None
    chave: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None
    id_atendimento: Optional[str] = None
    solicitante: Optional[str] = None
    comentario: Optional[str] = None


@dataclass(frozen=True)
class FiltroFeedback:
    periodo: Periodo = None
    atendente: Optional[str] = None
    modulo: Optional[str] = None
    resolucao: Optional[str] = None
    nota: Optional[int] = None
    busca: Optional[str] = None


@dataclass
class DesempenhoFeedback:
    nome: str
    feedbacks: int = 0
    nota: float = 0.0
    clareza: float = 0.0
    resolvidos: int = 0
    parciais: int = 0
    nao_resolvidos: int = 0
    taxa_resolucao: float = 0.0
    score: float = 0.0


@dataclass
class PontoTendenciaFeedback:
    chave: str      # DD/MM
    dia: date
    feedbacks: int = 0
    nota: float = 0.0


@dataclass
class EstatisticasFeedback:
    total: int = 0
    nota_media: float = 0.0
    clareza_media: float = 0.0
    taxa_resolucao: float = 0.0
    distribuicao_notas: Dict[int, int] = field(default_factory=dict)
    distribuicao_resolucao: Dict[str, int] = field(default_factory=dict)
    por_atendente: List[DesempenhoFeedback] = field(default_factory=list)
    por_modulo: List[DesempenhoFeedback] = field(default_factory=list)
    melhor_atendente: Optional[str] = None
    pior_atendente: Optional[str] = None
    melhor_modulo: Optional[str] = None
    tendencia: List[PontoTendenciaFeedback] = field(default_factory=list)


def _ativo(valor) -> bool:
    return valor is not None and valor != TODOS and valor != ""


def _casa_busca(feedback: RegistroFeedback, termo: str) -> bool:
    termo = termo.lower()
    campos = (feedback.atendente, feedback.modulo, feedback.comentario, feedback.empresa, feedback.solicitante)
    return any(c and termo in c.lower() for c in campos)


def filtrar_feedbacks(
    feedbacks: Iterable[RegistroFeedback],
    filtro: FiltroFeedback,
    hoje: Optional[date] = None,
) -> List[RegistroFeedback]:
    janela = resolver_janela(filtro.periodo, hoje)
    resultado = []
    for f in feedbacks:
        if janela is not None:
            if f.created_at is None or not (janela[0] <= f.created_at.date() <= janela[1]):
                continue
        if _ativo(filtro.atendente) and f.atendente != filtro.atendente:
            continue
        if _ativo(filtro.modulo) and f.modulo != filtro.modulo:
            continue
        if _ativo(filtro.resolucao) and f.problema_resolvido != filtro.resolucao:
            continue
        if _ativo(filtro.nota) and f.nota_geral != int(filtro.nota):
            continue
        if _ativo(filtro.busca) and not _casa_busca(f, filtro.busca):
            continue
        resultado.append(f)
    return resultado


def _media(valores: List[float]) -> float:
    return sum(valores) / len(valores) if valores else 0.0


def desempenho(nome: str, feedbacks: Sequence[RegistroFeedback]) -> DesempenhoFeedback:
    n = len(feedbacks)
    if n == 0:
        return DesempenhoFeedback(nome=nome)

    nota = _media([f.nota_geral or 0 for f in feedbacks])
    clareza = _media([f.nota_clareza or 0 for f in feedbacks])
    resolvidos = sum(1 for f in feedbacks if f.problema_resolvido == "sim")
    parciais = sum(1 for f in feedbacks if f.problema_resolvido == "parcialmente")
    nao_resolvidos = sum(1 for f in feedbacks if f.problema_resolvido == "nao")
    taxa = resolvidos / n * 100

    return DesempenhoFeedback(
        nome=nome,
        feedbacks=n,
        nota=nota,
        clareza=clareza,
        resolvidos=resolvidos,
        parciais=parciais,
        nao_resolvidos=nao_resolvidos,
        taxa_resolucao=taxa,
        score=nota * PESO_NOTA + clareza * PESO_CLAREZA + taxa * PESO_RESOLUCAO,
    )


def tendencia_feedback(
    feedbacks: Sequence[RegistroFeedback], dias: int = 7, hoje: Optional[date] = None
) -> List[PontoTendenciaFeedback]:
    """Últimos `dias` dias (incluindo hoje) pela data de criação do feedback."""
    hoje = hoje or date.today()
    serie = []
    for i in range(dias - 1, -1, -1):
        dia = hoje - timedelta(days=i)
        do_dia = [f for f in feedbacks if f.created_at is not None and f.created_at.date() == dia]
        serie.append(PontoTendenciaFeedback(
            chave=dia.strftime("%d/%m"),
            dia=dia,
            feedbacks=len(do_dia),
            nota=_media([f.nota_geral or 0 for f in do_dia]),
        ))
    return serie


def estatisticas_feedback(
    feedbacks: Sequence[RegistroFeedback],
    atendentes: Sequence[Atendente],
    modulos: Sequence[Modulo] = (),
    hoje: Optional[date] = None,
) -> EstatisticasFeedback:
    """
    Indicadores de um conjunto já filtrado de feedbacks.

    Todos os atendentes do roster aparecem em `por_atendente` (zerados se
    não houver feedback); melhor/pior consideram só quem tem feedback.
    Módulos sem feedback não aparecem em `por_modulo`.
    """
    total = len(feedbacks)
    if total == 0:
        return EstatisticasFeedback(
            distribuicao_notas={n: 0 for n in range(1, 6)},
            distribuicao_resolucao={r: 0 for r in RESOLUCOES},
            por_atendente=[DesempenhoFeedback(nome=a.nome) for a in atendentes],
            tendencia=tendencia_feedback([], hoje=hoje),
        )

    geral = desempenho("", feedbacks)

    por_atendente = [
        desempenho(a.nome, [f for f in feedbacks if f.atendente == a.nome])
        for a in atendentes
    ]
    com_dados = sorted(
        (d for d in por_atendente if d.feedbacks > 0), key=lambda d: d.score, reverse=True
    )

    por_modulo = []
    for m in modulos:
        do_modulo = [f for f in feedbacks if f.modulo == m.nome]
        if do_modulo:
            por_modulo.append(desempenho(m.nome, do_modulo))

    melhor_modulo = None
    for d in por_modulo:
        if melhor_modulo is None or d.nota > melhor_modulo.nota:
            melhor_modulo = d

    return EstatisticasFeedback(
        total=total,
        nota_media=geral.nota,
        clareza_media=geral.clareza,
        taxa_resolucao=geral.taxa_resolucao,
        distribuicao_notas={n: sum(1 for f in feedbacks if f.nota_geral == n) for n in range(1, 6)},
        distribuicao_resolucao={r: sum(1 for f in feedbacks if f.problema_resolvido == r) for r in RESOLUCOES},
        por_atendente=por_atendente,
        por_modulo=por_modulo,
        melhor_atendente=com_dados[0].nome if com_dados else None,
        pior_atendente=com_dados[-1].nome if com_dados else None,
        melhor_modulo=melhor_modulo.nome if melhor_modulo else None,
        tendencia=tendencia_feedback(feedbacks, hoje=hoje),
    )
