from typing import List

from sqlalchemy.orm import Session

from src.domain.entities.dimensoes import Modulo
from src.domain.feedback import RegistroFeedback
from src.infrastructure.database import models


def _para_registro(f: models.Feedback) -> RegistroFeedback:
    return RegistroFeedback(
        atendente=f.atendente,
        nota_geral=f.nota_geral,
        nota_clareza=f.nota_clareza,
        problema_resolvido=f.problema_resolvido,
        modulo=f.modulo,
        empresa=f.empresa,
        chave=f.chave,
        created_at=f.created_at,
        id=f.id,
        id_atendimento=f.id_atendimento,
        solicitante=f.solicitante,
        comentario=f.comentario,
    )


class FeedbackRepository:
    def __init__(self, db: Session):
        self.db = db

    def listar(self) -> List[RegistroFeedback]:
        feedbacks = self.db.query(models.Feedback).order_by(
            models.Feedback.created_at,
            models.Feedback.id,
        ).all()
        return [_para_registro(f) for f in feedbacks]

    def listar_modulos(self) -> List[Modulo]:
        linhas = self.db.query(models.Feedback.modulo).filter(
            models.Feedback.modulo.isnot(None)
        ).distinct().order_by(models.Feedback.modulo).all()
        return [Modulo(nome=m) for (m,) in linhas]

    def existe_para_atendimento(self, id_atendimento: str) -> bool:
        return self.db.query(models.Feedback.id).filter(
            models.Feedback.id_atendimento == id_atendimento
        ).first() is not None

    def adicionar(self, **campos) -> RegistroFeedback:
        """Insere e faz flush (sem commit) para o id e o created_at ficarem disponíveis."""
        feedback = models.Feedback(**campos)
        self.db.add(feedback)
        self.db.flush()
        return _para_registro(feedback)
