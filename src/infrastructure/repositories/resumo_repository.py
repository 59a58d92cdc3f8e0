import zlib
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.orm import Session

from src.domain.entities.atendimento import LinhaResumo
from src.domain.filtros import TODOS
from src.infrastructure.database import models


def _para_linha(r: models.ResumoAtendimento) -> LinhaResumo:
    return LinhaResumo(
        atendente=r.atendente,
        tipo_periodo=r.tipo_periodo,
        periodo_inicio=r.periodo_inicio,
        periodo_fim=r.periodo_fim,
        total=r.total_atendimentos,
        tempo_total=r.tempo_total,
        tempo_medio=r.tempo_medio,
        finalizados=r.finalizados,
        em_andamento=r.em_andamento,
        pendentes=r.pendentes,
        taxa_resolucao=r.taxa_resolucao,
        iea=r.eficiencia_iea,
    )


def chave_do_lock(tipo_periodo: str) -> int:
    """Chave estável entre processos para pg_advisory_xact_lock (hash() muda a cada processo)."""
    return zlib.crc32(f"resumo_atendimentos:{tipo_periodo}".encode("utf-8"))


class ResumoRepository:
    def __init__(self, db: Session):
        self.db = db

    def bloquear_tipo(self, tipo_periodo: str) -> None:
        """
        No PostgreSQL, segura um advisory lock de transação para o tipo de
        período: outro processo (API ou worker) que tente atualizar o mesmo
        tipo espera o commit/rollback desta transação. Em outros bancos não
        faz nada.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        self.db.execute(
            text("SELECT pg_advisory_xact_lock(:chave)"),
            {"chave": chave_do_lock(tipo_periodo)},
        )

    def substituir_linhas(
        self, tipo_periodo: str, inicio: date, fim: date, linhas: Sequence[LinhaResumo]
    ) -> None:
        """
        Troca todas as linhas da janela. Não faz commit: quem chama decide
        a fronteira da transação (tudo ou nada por janela).
        """
        self.db.query(models.ResumoAtendimento).filter(
            models.ResumoAtendimento.tipo_periodo == tipo_periodo,
            models.ResumoAtendimento.periodo_inicio == inicio,
            models.ResumoAtendimento.periodo_fim == fim,
        ).delete(synchronize_session="fetch")

        self.db.add_all([
            models.ResumoAtendimento(
                tipo_periodo=tipo_periodo,
                periodo_inicio=inicio,
                periodo_fim=fim,
                atendente=l.atendente,
                total_atendimentos=l.total,
                tempo_total=l.tempo_total,
                tempo_medio=l.tempo_medio,
                finalizados=l.finalizados,
                em_andamento=l.em_andamento,
                pendentes=l.pendentes,
                taxa_resolucao=l.taxa_resolucao,
                eficiencia_iea=l.iea,
            )
            for l in linhas
        ])
        self.db.flush()

    def ler_linhas(
        self,
        tipo_periodo: str,
        inicio: Optional[date] = None,
        fim: Optional[date] = None,
        atendente: Optional[str] = None,
    ) -> List[LinhaResumo]:
        """Linhas cujas janelas estão contidas em [inicio, fim]."""
        query = self.db.query(models.ResumoAtendimento).filter(
            models.ResumoAtendimento.tipo_periodo == tipo_periodo
        )
        if inicio:
            query = query.filter(models.ResumoAtendimento.periodo_inicio >= inicio)
        if fim:
            query = query.filter(models.ResumoAtendimento.periodo_fim <= fim)
        if atendente and atendente != TODOS:
            query = query.filter(models.ResumoAtendimento.atendente == atendente)

        query = query.order_by(
            models.ResumoAtendimento.periodo_inicio,
            models.ResumoAtendimento.atendente,
        )
        return [_para_linha(r) for r in query.all()]
