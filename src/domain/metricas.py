"""
Deduplicação e cálculo de métricas por atendente.

Regras:
  - Um atendimento é identificado pelo id_atendimento; a primeira linha
    vista vence e as repetições (vindas de joins na origem) são descartadas
    antes de qualquer contagem.
  - Situação: resolvido=True ou status 'Finalizado' → finalizado;
    status 'Pendente' → pendente; o resto → em andamento. Checado sempre
    nessa ordem, então as três contagens particionam o conjunto.
  - IEA = total / tempo_medio (0 se tempo_medio = 0). Volume conta por si:
    não é 1 / tempo_medio.
  - Nada é arredondado aqui; quem apresenta arredonda.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from src.domain.entities.atendimento import MetricaAtendente, RegistroAtendimento, Situacao

logger = logging.getLogger(__name__)


def deduplicar(registros: Iterable[RegistroAtendimento]) -> List[RegistroAtendimento]:
    unicos: Dict[str, RegistroAtendimento] = {}
    for r in registros:
        if not r.id_atendimento:
            logger.debug("Registro sem id_atendimento descartado: %r", r)
            continue
        if r.id_atendimento not in unicos:
            unicos[r.id_atendimento] = r
    return list(unicos.values())


def classificar_situacao(registro: RegistroAtendimento) -> Situacao:
    if registro.resolvido is True or registro.status == Situacao.FINALIZADO.value:
        return Situacao.FINALIZADO
    if registro.status == Situacao.PENDENTE.value:
        return Situacao.PENDENTE
    return Situacao.EM_ANDAMENTO


def _dividir(numerador: float, denominador: float) -> float:
    return numerador / denominador if denominador > 0 else 0.0


def indice_eficiencia(total: int, tempo_medio: float) -> float:
    return _dividir(total, tempo_medio)


def calcular_metricas(registros: Sequence[RegistroAtendimento], atendente: str = "") -> MetricaAtendente:
    """Métricas de um conjunto já deduplicado. Conjunto vazio → tudo zero."""
    total = len(registros)
    tempo_total = 0.0
    contagem = {s: 0 for s in Situacao}

    for r in registros:
        tempo_total += r.tempo_total or 0.0
        contagem[classificar_situacao(r)] += 1

    tempo_medio = _dividir(tempo_total, total)
    return MetricaAtendente(
        atendente=atendente,
        total=total,
        tempo_total=tempo_total,
        tempo_medio=tempo_medio,
        iea=indice_eficiencia(total, tempo_medio),
        resolvidos=contagem[Situacao.FINALIZADO],
        em_andamento=contagem[Situacao.EM_ANDAMENTO],
        pendentes=contagem[Situacao.PENDENTE],
        taxa_resolucao=_dividir(100 * contagem[Situacao.FINALIZADO], total),
    )


def metricas_por_atendente(
    registros: Iterable[RegistroAtendimento],
    atendentes: Optional[Sequence[str]] = None,
) -> List[MetricaAtendente]:
    """
    Deduplica e agrupa por nome exato de atendente.

    Com `atendentes` (roster), devolve exatamente uma métrica por nome,
    na ordem do roster, com zeros para quem não teve atendimento; nomes
    fora do roster ficam de fora. Sem roster, uma métrica por nome
    encontrado, na ordem em que aparecem.
    """
    grupos: Dict[str, List[RegistroAtendimento]] = {}
    for r in deduplicar(registros):
        grupos.setdefault(r.atendente, []).append(r)

    if atendentes is None:
        nomes = list(grupos)
    else:
        nomes = list(dict.fromkeys(atendentes))
        fora = set(grupos) - set(nomes)
        if fora:
            logger.debug("Atendentes fora do roster ignorados: %s", sorted(fora))

    return [calcular_metricas(grupos.get(nome, []), nome) for nome in nomes]


def combinar_metricas(metricas: Iterable[MetricaAtendente], atendente: str = "") -> MetricaAtendente:
    """
    Soma métricas de janelas disjuntas (ex: vários dias do resumo) e
    recalcula médias, taxa e IEA a partir dos totais. Nunca faz média de IEA.
    """
    total = tempo_total = resolvidos = em_andamento = pendentes = 0
    for m in metricas:
        total += m.total
        tempo_total += m.tempo_total
        resolvidos += m.resolvidos
        em_andamento += m.em_andamento
        pendentes += m.pendentes

    tempo_medio = _dividir(tempo_total, total)
    return MetricaAtendente(
        atendente=atendente,
        total=total,
        tempo_total=float(tempo_total),
        tempo_medio=tempo_medio,
        iea=indice_eficiencia(total, tempo_medio),
        resolvidos=resolvidos,
        em_andamento=em_andamento,
        pendentes=pendentes,
        taxa_resolucao=_dividir(100 * resolvidos, total),
    )
