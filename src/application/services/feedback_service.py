import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.application.dto.feedback_schema import FeedbackCreateSchema
from src.domain.feedback import (
    EstatisticasFeedback,
    FiltroFeedback,
    RegistroFeedback,
    estatisticas_feedback,
    filtrar_feedbacks,
)
from src.infrastructure.repositories.atendimento_repository import AtendenteRepository
from src.infrastructure.repositories.feedback_repository import FeedbackRepository
from src.shared.exceptions import DadosEntradaInvalidos, FeedbackDuplicado
from src.shared.utils.conversores import texto_ou_none

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, db: Session, hoje: Optional[date] = None):
        self.db = db
        self.hoje = hoje
        self.feedbacks = FeedbackRepository(db)
        self.atendentes = AtendenteRepository(db)

    # =====================================================
    # ESCRITA
    # =====================================================

    def registrar(self, dados: FeedbackCreateSchema) -> RegistroFeedback:
        """
        Grava o feedback de um atendimento. Levanta FeedbackDuplicado se o
        código já tem feedback (inclusive quando outro envio chega junto e
        só o índice único percebe).
        """
        id_atendimento = dados.id_atendimento.strip()
        atendente = dados.atendente.strip()
        if not id_atendimento or not atendente:
            raise DadosEntradaInvalidos("Código do atendimento e atendente são obrigatórios.")

        if self.feedbacks.existe_para_atendimento(id_atendimento):
            raise FeedbackDuplicado(id_atendimento)

        try:
            registro = self.feedbacks.adicionar(
                id_atendimento=id_atendimento,
                atendente=atendente,
                modulo=texto_ou_none(dados.modulo),
                nota_geral=dados.nota_geral,
                nota_clareza=dados.nota_clareza,
                problema_resolvido=dados.problema_resolvido,
                comentario=texto_ou_none(dados.comentario),
                empresa=texto_ou_none(dados.empresa),
                chave=texto_ou_none(dados.chave),
                solicitante=texto_ou_none(dados.solicitante),
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise FeedbackDuplicado(id_atendimento) from e

        logger.info("Feedback do atendimento %s registrado (%s, nota %d)", id_atendimento, atendente, dados.nota_geral)
        return registro

    # =====================================================
    # LEITURA
    # =====================================================

    def listar(self, filtro: Optional[FiltroFeedback] = None, limite: Optional[int] = None) -> List[RegistroFeedback]:
        """Feedbacks filtrados, mais recentes primeiro."""
        feedbacks = filtrar_feedbacks(self.feedbacks.listar(), filtro or FiltroFeedback(), self.hoje)
        feedbacks.reverse()
        return feedbacks[:limite] if limite else feedbacks

    def estatisticas(self, filtro: Optional[FiltroFeedback] = None) -> EstatisticasFeedback:
        """Indicadores do painel de feedbacks; todos os atendentes ativos aparecem."""
        feedbacks = filtrar_feedbacks(self.feedbacks.listar(), filtro or FiltroFeedback(), self.hoje)
        return estatisticas_feedback(
            feedbacks,
            self.atendentes.listar_ativos(),
            self.feedbacks.listar_modulos(),
            self.hoje,
        )
