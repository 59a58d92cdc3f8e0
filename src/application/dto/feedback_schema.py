from pydantic import BaseModel, Field
from typing import Literal, Optional


class FeedbackCreateSchema(BaseModel):
    """
    Avaliação enviada pelo cliente (formulário público de feedback).
    id_atendimento é o código do atendimento avaliado: um feedback por código.
    """
    id_atendimento: str = Field(min_length=1, max_length=100)
    atendente: str = Field(min_length=1)
    modulo: Optional[str] = None

    # Notas de 1 a 5
    nota_geral: int = Field(ge=1, le=5)
    nota_clareza: int = Field(ge=1, le=5)
    problema_resolvido: Literal["sim", "parcialmente", "nao"]

    comentario: Optional[str] = None
    empresa: Optional[str] = None
    chave: Optional[str] = Field(default=None, max_length=100)
    solicitante: Optional[str] = None
