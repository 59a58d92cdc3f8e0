import strawberry
from typing import List, Optional
from datetime import date
from src.infrastructure.database.config import SessionLocal
from src.infrastructure.database import models
from src.infrastructure.settings import settings
from src.application.services.dashboard_service import DashboardService
from src.application.services.feedback_service import FeedbackService
from src.application.services.resumo_service import ResumoService
from src.domain.entities.atendimento import MetricaAtendente
from src.domain.feedback import DesempenhoFeedback, FiltroFeedback
from src.domain.filtros import FiltroAtendimento
from src.domain.metricas import classificar_situacao
from src.domain.ranking import Ranking
from src.domain.tendencia import Granularidade
from .schema import (
    AtendimentoType,
    DesempenhoFeedbackType,
    DistribuicaoType,
    EstatisticasAtendimentosType,
    EstatisticasFeedbackType,
    FeedbackType,
    MetricaAtendenteType,
    PontoTendenciaType,
    RankingAtendenteType,
    RankingType,
    ResumoAtendimentoType,
    TendenciaFeedbackType,
    UploadHistoricoType,
)


# ==========================================
# CONVERSÃO PARA OS TIPOS GRAPHQL
# Arredondamento (2 casas) só acontece aqui.
# ==========================================

def _r2(valor: float) -> float:
    return round(valor, 2)


def _intervalo(data_inicio: Optional[date], data_fim: Optional[date]):
    if data_inicio is None and data_fim is None:
        return None
    if data_inicio is None or data_fim is None:
        raise ValueError("Informe dataInicio e dataFim juntos (ou nenhum dos dois).")
    return data_inicio, data_fim


def _filtro(
    periodo: Optional[str],
    data_inicio: Optional[date],
    data_fim: Optional[date],
    atendente: Optional[str],
    chave: Optional[str] = None,
    ano: Optional[int] = None,
    situacao: Optional[str] = None,
    busca: Optional[str] = None,
) -> FiltroAtendimento:
    # Intervalo explícito tem precedência sobre a janela nomeada
    intervalo = _intervalo(data_inicio, data_fim)
    return FiltroAtendimento(
        periodo=intervalo if intervalo is not None else periodo,
        atendente=atendente,
        chave=chave,
        ano=ano,
        situacao=situacao,
        busca=busca,
    )


def _metrica_type(m: MetricaAtendente) -> MetricaAtendenteType:
    return MetricaAtendenteType(
        atendente=m.atendente,
        total_atendimentos=m.total,
        tempo_total=_r2(m.tempo_total),
        tempo_medio=_r2(m.tempo_medio),
        eficiencia_iea=_r2(m.iea),
        resolvidos=m.resolvidos,
        em_andamento=m.em_andamento,
        pendentes=m.pendentes,
        taxa_resolucao=_r2(m.taxa_resolucao),
    )


def _ranking_type(ranking: Ranking) -> RankingType:
    def _item(r) -> RankingAtendenteType:
        return RankingAtendenteType(
            posicao=r.posicao,
            atendente=r.atendente,
            foto_url=r.foto_url,
            total_atendimentos=r.metrica.total,
            tempo_medio=_r2(r.metrica.tempo_medio),
            eficiencia_iea=_r2(r.metrica.iea),
            taxa_resolucao=_r2(r.metrica.taxa_resolucao),
        )

    return RankingType(
        todos=[_item(r) for r in ranking.todos],
        destaques=[_item(r) for r in ranking.destaques],
        melhor_atendente=ranking.melhor.atendente if ranking.melhor else None,
        pior_atendente=ranking.pior.atendente if ranking.pior else None,
    )


def _desempenho_type(d: DesempenhoFeedback) -> DesempenhoFeedbackType:
    return DesempenhoFeedbackType(
        nome=d.nome,
        feedbacks=d.feedbacks,
        nota=round(d.nota, 1),
        clareza=round(d.clareza, 1),
        resolvidos=d.resolvidos,
        parciais=d.parciais,
        nao_resolvidos=d.nao_resolvidos,
        taxa_resolucao=round(d.taxa_resolucao, 1),
        score=round(d.score, 1),
    )


@strawberry.type
class Query:

    @strawberry.field
    def metricas_atendentes(
        self,
        periodo: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        atendente: Optional[str] = None,
        chave: Optional[str] = None,
        ano: Optional[int] = None,
    ) -> List[MetricaAtendenteType]:
        """
        Métricas por atendente (todos os ativos, mesmo sem atendimento).
        periodo: today | 7d | 30d | 90d | week | month | year | all
        """
        db = SessionLocal()
        try:
            service = DashboardService(db)
            filtro = _filtro(periodo, data_inicio, data_fim, atendente, chave, ano)
            return [_metrica_type(m) for m in service.metricas_atendentes(filtro)]
        finally:
            db.close()

    @strawberry.field
    def ranking_atendentes(
        self,
        periodo: Optional[str] = "month",
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        chave: Optional[str] = None,
        ano: Optional[int] = None,
        destaques: Optional[int] = None,
    ) -> RankingType:
        """Ranking por IEA calculado sobre os atendimentos brutos."""
        db = SessionLocal()
        try:
            service = DashboardService(db)
            filtro = _filtro(periodo, data_inicio, data_fim, None, chave, ano)
            ranking = service.ranking_atendentes(
                filtro, settings.ranking_destaques if destaques is None else destaques
            )
            return _ranking_type(ranking)
        finally:
            db.close()

    @strawberry.field
    def tendencia_atendimentos(
        self,
        granularidade: str = "day",
        periodo: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        atendente: Optional[str] = None,
        chave: Optional[str] = None,
    ) -> List[PontoTendenciaType]:
        """
        Série por dia (DD/MM) ou mês (MM/YYYY), sem buracos na janela.
        Sem período nem datas, usa os últimos 7 dias.
        """
        db = SessionLocal()
        try:
            service = DashboardService(db)
            filtro = _filtro(periodo, data_inicio, data_fim, atendente, chave)
            serie = service.tendencia(filtro, Granularidade(granularidade))
            return [
                PontoTendenciaType(chave=p.chave, inicio=p.inicio, total=p.total, tempo_medio=_r2(p.tempo_medio))
                for p in serie
            ]
        finally:
            db.close()

    @strawberry.field
    def estatisticas_atendimentos(
        self,
        periodo: Optional[str] = None,
        atendente: Optional[str] = None,
        situacao: Optional[str] = None,
        busca: Optional[str] = None,
    ) -> EstatisticasAtendimentosType:
        db = SessionLocal()
        try:
            service = DashboardService(db)
            filtro = _filtro(periodo, None, None, atendente, situacao=situacao, busca=busca)
            e = service.estatisticas_atendimentos(filtro)
            return EstatisticasAtendimentosType(
                total=e.total,
                finalizados=e.finalizados,
                em_andamento=e.em_andamento,
                pendentes=e.pendentes,
                tempo_medio=_r2(e.tempo_medio),
            )
        finally:
            db.close()

    @strawberry.field
    def atendimentos(
        self,
        periodo: Optional[str] = None,
        atendente: Optional[str] = None,
        situacao: Optional[str] = None,
        busca: Optional[str] = None,
        recentes: Optional[int] = None,
    ) -> List[AtendimentoType]:
        """
        Lista de atendimentos (deduplicada). Com `recentes`, devolve os N
        últimos inseridos, ignorando os demais filtros.
        """
        db = SessionLocal()
        try:
            service = DashboardService(db)
            if recentes:
                registros = service.atendimentos_recentes(recentes)
            else:
                filtro = _filtro(periodo, None, None, atendente, situacao=situacao, busca=busca)
                registros = service.listar_atendimentos(filtro)
            return [
                AtendimentoType(
                    id_atendimento=r.id_atendimento,
                    atendente=r.atendente,
                    data=r.data,
                    tempo_total=r.tempo_total,
                    resolvido=r.resolvido,
                    status=r.status,
                    situacao=classificar_situacao(r).value,
                    empresa=r.empresa,
                    chave=r.chave,
                    tipo=r.tipo,
                )
                for r in registros
            ]
        finally:
            db.close()

    @strawberry.field
    def resumo_atendimentos(
        self,
        tipo_periodo: str = "mensal",
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        atendente: Optional[str] = None,
    ) -> List[ResumoAtendimentoType]:
        """
        Linhas do resumo materializado. Não recalcula: use POST
        /resumo/atualizar para renovar os dados.
        """
        db = SessionLocal()
        try:
            service = ResumoService(db)
            intervalo = _intervalo(data_inicio, data_fim)
            return [
                ResumoAtendimentoType(
                    atendente=l.atendente,
                    tipo_periodo=l.tipo_periodo,
                    periodo_inicio=l.periodo_inicio,
                    periodo_fim=l.periodo_fim,
                    total_atendimentos=l.total,
                    tempo_total=_r2(l.tempo_total),
                    tempo_medio=_r2(l.tempo_medio),
                    finalizados=l.finalizados,
                    em_andamento=l.em_andamento,
                    pendentes=l.pendentes,
                    taxa_resolucao=_r2(l.taxa_resolucao),
                    eficiencia_iea=_r2(l.iea),
                )
                for l in service.consultar_resumo(tipo_periodo, intervalo, atendente)
            ]
        finally:
            db.close()

    @strawberry.field
    def ranking_resumo(
        self,
        tipo_periodo: str = "mensal",
        destaques: Optional[int] = None,
    ) -> RankingType:
        """Ranking lido do resumo da janela corrente (monitor de TV)."""
        db = SessionLocal()
        try:
            service = ResumoService(db)
            ranking = service.ranking_do_resumo(
                tipo_periodo, destaques=settings.ranking_destaques if destaques is None else destaques
            )
            return _ranking_type(ranking)
        finally:
            db.close()

    @strawberry.field
    def estatisticas_feedback(
        self,
        periodo: Optional[str] = "7days",
        atendente: Optional[str] = None,
        modulo: Optional[str] = None,
        resolucao: Optional[str] = None,
    ) -> EstatisticasFeedbackType:
        """
        Painel de feedbacks. resolucao: sim | parcialmente | nao
        """
        db = SessionLocal()
        try:
            service = FeedbackService(db)
            e = service.estatisticas(FiltroFeedback(periodo, atendente, modulo, resolucao))
            return EstatisticasFeedbackType(
                total_feedbacks=e.total,
                nota_media=round(e.nota_media, 1),
                clareza_media=round(e.clareza_media, 1),
                taxa_resolucao=round(e.taxa_resolucao, 1),
                distribuicao_notas=[
                    DistribuicaoType(chave=str(n), total=t) for n, t in e.distribuicao_notas.items()
                ],
                distribuicao_resolucao=[
                    DistribuicaoType(chave=r, total=t) for r, t in e.distribuicao_resolucao.items()
                ],
                por_atendente=[_desempenho_type(d) for d in e.por_atendente],
                por_modulo=[_desempenho_type(d) for d in e.por_modulo],
                melhor_atendente=e.melhor_atendente,
                pior_atendente=e.pior_atendente,
                melhor_modulo=e.melhor_modulo,
                tendencia=[
                    TendenciaFeedbackType(chave=p.chave, dia=p.dia, feedbacks=p.feedbacks, nota=round(p.nota, 1))
                    for p in e.tendencia
                ],
            )
        finally:
            db.close()

    @strawberry.field
    def feedbacks(
        self,
        periodo: Optional[str] = None,
        atendente: Optional[str] = None,
        modulo: Optional[str] = None,
        nota: Optional[int] = None,
        resolucao: Optional[str] = None,
        busca: Optional[str] = None,
        limite: Optional[int] = None,
    ) -> List[FeedbackType]:
        """
        Lista de feedbacks, mais recentes primeiro.
        busca procura em atendente, módulo, comentário, empresa e solicitante.
        """
        db = SessionLocal()
        try:
            service = FeedbackService(db)
            filtro = FiltroFeedback(periodo, atendente, modulo, resolucao, nota, busca)
            return [
                FeedbackType(
                    id=f.id,
                    id_atendimento=f.id_atendimento,
                    atendente=f.atendente,
                    modulo=f.modulo,
                    nota_geral=f.nota_geral,
                    nota_clareza=f.nota_clareza,
                    problema_resolvido=f.problema_resolvido,
                    comentario=f.comentario,
                    empresa=f.empresa,
                    chave=f.chave,
                    solicitante=f.solicitante,
                    created_at=f.created_at.isoformat() if f.created_at is not None else None,
                )
                for f in service.listar(filtro, limite)
            ]
        finally:
            db.close()

    @strawberry.field
    def historico_uploads(self) -> List[UploadHistoricoType]:
        """
        Lista os arquivos importados com status e possíveis erros.
        Útil para auditoria e diagnóstico de importações anteriores.
        """
        db = SessionLocal()
        try:
            uploads = db.query(models.Upload).order_by(
                models.Upload.created_at.desc()
            ).limit(100).all()

            return [
                UploadHistoricoType(
                    id=str(u.id),
                    file_path=u.file_path,
                    status=u.status,
                    total_registros=u.total_registros,
                    created_at=u.created_at.isoformat() if u.created_at is not None else None,
                    processed_at=u.processed_at.isoformat() if u.processed_at is not None else None,
                    error=u.error,
                )
                for u in uploads
            ]
        finally:
            db.close()
