"""
Service Layer para os indicadores dos painéis de atendimento.
Centraliza a agregação que antes se repetia em cada painel (monitor,
dashboard, lista de atendimentos):

  atendimentos brutos → filtros → deduplicação → métricas / tendência / ranking

IEA (Índice de Eficiência do Atendente):
  - IEA = total de atendimentos / tempo médio por atendimento
  - Ranking por IEA decrescente; quem não atendeu no período fica por último
  - Valores sem arredondamento; a camada GraphQL arredonda para 2 casas
"""

from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from src.domain.entities.atendimento import (
    EstatisticasSituacao,
    MetricaAtendente,
    PontoTendencia,
    RegistroAtendimento,
)
from src.domain.entities.dimensoes import Atendente
from src.domain.filtros import FiltroAtendimento, Periodo, aplicar_filtros
from src.domain.metricas import calcular_metricas, deduplicar, metricas_por_atendente
from src.domain.ranking import Ranking, ranquear_atendentes
from src.domain.tendencia import Granularidade, calcular_tendencia, ultimos_dias
from src.infrastructure.repositories.atendimento_repository import (
    AtendenteRepository,
    AtendimentoRepository,
)


# =====================================================
# OPERAÇÕES PURAS (sem banco)
# =====================================================

def calcular_metricas_atendentes(
    registros: Sequence[RegistroAtendimento],
    filtro: Optional[FiltroAtendimento] = None,
    roster: Optional[Sequence[Atendente]] = None,
    hoje: Optional[date] = None,
) -> List[MetricaAtendente]:
    """
    Uma métrica por membro do roster (zerada se não atendeu). Sem roster,
    uma por atendente encontrado nos registros filtrados.
    """
    filtrados = aplicar_filtros(registros, filtro or FiltroAtendimento(), hoje)
    nomes = [a.nome for a in roster] if roster is not None else None
    return metricas_por_atendente(filtrados, nomes)


def estatisticas_situacao(registros: Sequence[RegistroAtendimento]) -> EstatisticasSituacao:
    metrica = calcular_metricas(deduplicar(registros))
    return EstatisticasSituacao(
        total=metrica.total,
        finalizados=metrica.resolvidos,
        em_andamento=metrica.em_andamento,
        pendentes=metrica.pendentes,
        tempo_medio=metrica.tempo_medio,
    )


class DashboardService:

    def __init__(self, db: Session, hoje: Optional[date] = None):
        self.db = db
        self.hoje = hoje
        self.atendimentos = AtendimentoRepository(db)
        self.atendentes = AtendenteRepository(db)

    # =====================================================
    # HELPERS INTERNOS
    # =====================================================

    def _registros(self, filtro: FiltroAtendimento) -> List[RegistroAtendimento]:
        # O repositório já restringe período/atendente/chave/ano no SQL;
        # aplicar_filtros cobre situação e busca textual.
        registros = self.atendimentos.buscar_registros(filtro, self.hoje)
        return aplicar_filtros(registros, filtro, self.hoje)

    # =====================================================
    # PAINÉIS
    # =====================================================

    def metricas_atendentes(self, filtro: Optional[FiltroAtendimento] = None) -> List[MetricaAtendente]:
        filtro = filtro or FiltroAtendimento()
        return calcular_metricas_atendentes(
            self._registros(filtro), filtro, self.atendentes.listar_ativos(), self.hoje
        )

    def ranking_atendentes(
        self, filtro: Optional[FiltroAtendimento] = None, destaques: int = 3
    ) -> Ranking:
        """Ranking completo + top N (monitor de TV)."""
        filtro = filtro or FiltroAtendimento()
        roster = self.atendentes.listar_ativos()
        metricas = calcular_metricas_atendentes(self._registros(filtro), filtro, roster, self.hoje)
        return ranquear_atendentes(metricas, roster, destaques)

    def tendencia(
        self,
        filtro: Optional[FiltroAtendimento] = None,
        granularidade: Granularidade = Granularidade.DIA,
        janela: Periodo = None,
    ) -> List[PontoTendencia]:
        filtro = filtro or FiltroAtendimento()
        registros = deduplicar(self._registros(filtro))
        janela = janela or filtro.periodo or ultimos_dias(7, self.hoje)
        return calcular_tendencia(registros, granularidade, janela, self.hoje)

    def estatisticas_atendimentos(self, filtro: Optional[FiltroAtendimento] = None) -> EstatisticasSituacao:
        """Cards do topo da lista: total, finalizados, em andamento, pendentes, tempo médio."""
        return estatisticas_situacao(self._registros(filtro or FiltroAtendimento()))

    def listar_atendimentos(self, filtro: Optional[FiltroAtendimento] = None) -> List[RegistroAtendimento]:
        return deduplicar(self._registros(filtro or FiltroAtendimento()))

    def atendimentos_recentes(self, limite: int = 50) -> List[RegistroAtendimento]:
        return self.atendimentos.buscar_recentes(limite)
