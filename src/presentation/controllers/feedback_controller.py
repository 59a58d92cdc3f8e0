from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from src.application.dto.feedback_schema import FeedbackCreateSchema
from src.application.services.feedback_service import FeedbackService
from src.infrastructure.database.config import get_db
from src.shared.exceptions import DadosEntradaInvalidos, FeedbackDuplicado

router = APIRouter(prefix="/feedbacks", tags=["Feedbacks"])


# ==========================================
# ENDPOINT: REGISTRAR FEEDBACK
# ==========================================

@router.post("", status_code=201)
def registrar_feedback(
    dados: FeedbackCreateSchema,
    db: Session = Depends(get_db),
):
    """
    Recebe a avaliação do cliente ao final do atendimento.
    Cada código de atendimento aceita um único feedback (409 no segundo).
    """
    try:
        feedback = FeedbackService(db).registrar(dados)
    except FeedbackDuplicado:
        raise HTTPException(
            status_code=409,
            detail="Este código de atendimento já possui um feedback registrado anteriormente."
        )
    except DadosEntradaInvalidos as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "status": "success",
        "message": "Feedback enviado com sucesso! Obrigado pela avaliação.",
        "feedback": {
            "id": feedback.id,
            "id_atendimento": feedback.id_atendimento,
            "atendente": feedback.atendente,
            "created_at": feedback.created_at.isoformat() if feedback.created_at else None,
        },
    }
