"""
Service Layer do resumo materializado (resumo_atendimentos).

  - atualizar_resumo() recalcula, para cada tipo de período, a janela de
    calendário que contém "hoje" e substitui as linhas dessa janela numa
    única transação. Se algo falhar, a janela fica como estava.
  - Atualizações do mesmo tipo de período são serializadas por um lock
    por tipo dentro do processo e, no PostgreSQL, por um advisory lock de
    transação entre processos (API e worker). A chave é o tipo e não a
    janela: na virada do dia/semana/mês, duas atualizações com "hoje"
    diferentes também esperam uma pela outra. Tipos diferentes não se
    bloqueiam.
  - consultar_resumo() só lê; nunca dispara recálculo. O resumo fica
    desatualizado até a próxima chamada de atualizar_resumo().

Janelas (calendário completo, estáveis durante o período):
  diario  → o próprio dia
  semanal → domingo a sábado
  mensal  → mês inteiro
  anual   → ano inteiro
"""

import calendar
import logging
import threading
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from src.domain.entities.atendimento import LinhaResumo
from src.domain.filtros import FiltroAtendimento, inicio_da_semana
from src.domain.metricas import combinar_metricas, metricas_por_atendente
from src.domain.ranking import Ranking, ranquear_atendentes
from src.infrastructure.repositories.atendimento_repository import (
    AtendenteRepository,
    AtendimentoRepository,
)
from src.infrastructure.repositories.resumo_repository import ResumoRepository
from src.shared.exceptions import FalhaGravacaoResumo

logger = logging.getLogger(__name__)

TIPOS_PERIODO = ("diario", "semanal", "mensal", "anual")

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def lock_do_tipo(tipo_periodo: str) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(tipo_periodo, threading.Lock())


def janela_do_periodo(tipo_periodo: str, hoje: Optional[date] = None) -> Tuple[date, date]:
    hoje = hoje or date.today()
    if tipo_periodo == "diario":
        return hoje, hoje
    if tipo_periodo == "semanal":
        inicio = inicio_da_semana(hoje)
        return inicio, inicio + timedelta(days=6)
    if tipo_periodo == "mensal":
        ultimo_dia = calendar.monthrange(hoje.year, hoje.month)[1]
        return hoje.replace(day=1), hoje.replace(day=ultimo_dia)
    if tipo_periodo == "anual":
        return date(hoje.year, 1, 1), date(hoje.year, 12, 31)
    raise ValueError(
        f"Tipo de período inválido: {tipo_periodo!r}. Use um de {', '.join(TIPOS_PERIODO)}."
    )


class ResumoService:
    def __init__(self, db: Session):
        self.db = db
        self.atendimentos = AtendimentoRepository(db)
        self.atendentes = AtendenteRepository(db)
        self.resumo = ResumoRepository(db)

    # =====================================================
    # RECÁLCULO
    # =====================================================

    def calcular_linhas(self, tipo_periodo: str, inicio: date, fim: date) -> List[LinhaResumo]:
        """Linhas da janela a partir dos atendimentos brutos (sem gravar)."""
        registros = self.atendimentos.buscar_registros(FiltroAtendimento(periodo=(inicio, fim)))

        # Roster primeiro (ordem estável), depois quem atendeu e não está no roster
        nomes = [a.nome for a in self.atendentes.listar_ativos()]
        nomes += [r.atendente for r in registros if r.atendente]

        return [
            LinhaResumo.de_metrica(m, tipo_periodo, inicio, fim)
            for m in metricas_por_atendente(registros, list(dict.fromkeys(nomes)))
        ]

    def _atualizar_janela(self, tipo_periodo: str, inicio: date, fim: date) -> int:
        with lock_do_tipo(tipo_periodo):
            try:
                # Lock entre processos antes de ler os atendimentos
                self.resumo.bloquear_tipo(tipo_periodo)
                linhas = self.calcular_linhas(tipo_periodo, inicio, fim)
                self.resumo.substituir_linhas(tipo_periodo, inicio, fim, linhas)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.exception(
                    "Falha ao atualizar resumo %s %s–%s; janela mantida como estava",
                    tipo_periodo, inicio, fim,
                )
                raise FalhaGravacaoResumo(
                    f"Erro ao atualizar resumo {tipo_periodo} ({inicio} a {fim}): {e}",
                    tipo_periodo=tipo_periodo,
                    inicio=inicio,
                    fim=fim,
                ) from e

        logger.info("Resumo %s %s–%s atualizado (%d linhas)", tipo_periodo, inicio, fim, len(linhas))
        return len(linhas)

    def atualizar_resumo(
        self, tipo_periodo: Optional[str] = None, hoje: Optional[date] = None
    ) -> List[Dict]:
        """
        Recalcula o resumo de um tipo de período (ou de todos). Síncrono e
        idempotente: rodar de novo sobre os mesmos dados brutos gera as
        mesmas linhas. Levanta FalhaGravacaoResumo na primeira janela que
        falhar; janelas já gravadas antes dela permanecem gravadas.
        """
        tipos = [tipo_periodo] if tipo_periodo else list(TIPOS_PERIODO)
        janelas = [(tipo, *janela_do_periodo(tipo, hoje)) for tipo in tipos]

        resultado = []
        for tipo, inicio, fim in janelas:
            total_linhas = self._atualizar_janela(tipo, inicio, fim)
            resultado.append({
                "tipo_periodo": tipo,
                "periodo_inicio": inicio,
                "periodo_fim": fim,
                "linhas": total_linhas,
            })
        return resultado

    # =====================================================
    # LEITURA
    # =====================================================

    def consultar_resumo(
        self,
        tipo_periodo: str,
        intervalo: Optional[Tuple[date, date]] = None,
        atendente: Optional[str] = None,
    ) -> List[LinhaResumo]:
        if tipo_periodo not in TIPOS_PERIODO:
            raise ValueError(f"Tipo de período inválido: {tipo_periodo!r}")
        inicio, fim = intervalo if intervalo else (None, None)
        return self.resumo.ler_linhas(tipo_periodo, inicio, fim, atendente)

    def ranking_do_resumo(
        self,
        tipo_periodo: str,
        intervalo: Optional[Tuple[date, date]] = None,
        hoje: Optional[date] = None,
        destaques: int = 3,
    ) -> Ranking:
        """
        Ranking lido do resumo (sem deduplicar: o resumo já é canônico).
        Sem intervalo, usa a janela corrente do tipo de período. Quando o
        intervalo cobre várias janelas, as linhas de cada atendente são
        somadas antes de recalcular o IEA.
        """
        intervalo = intervalo or janela_do_periodo(tipo_periodo, hoje)
        linhas = self.consultar_resumo(tipo_periodo, intervalo)

        por_atendente: Dict[str, list] = {}
        for l in linhas:
            por_atendente.setdefault(l.atendente, []).append(l.para_metrica())

        metricas = [combinar_metricas(ms, nome) for nome, ms in por_atendente.items()]
        return ranquear_atendentes(metricas, self.atendentes.listar_ativos(), destaques)
