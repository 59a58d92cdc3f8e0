from pydantic import BaseModel, Field
from datetime import date
from typing import Optional

class AtendimentoImportSchema(BaseModel):
    """
    Esquema de Validação para as planilhas de atendimentos.
    O Controller converte os valores brutos antes de chegar aqui; data e
    tempo malformados chegam como None (o registro ainda conta no total).
    """
    id_atendimento: str = Field(min_length=1)
    atendente: str = Field(min_length=1)
    data: Optional[date] = None

    # Tempo total em minutos
    tempo_total: Optional[float] = Field(default=None, ge=0)

    # Dois sinais de resolução (reconciliados na leitura)
    resolvido: Optional[bool] = None
    status: Optional[str] = None

    empresa: Optional[str] = None
    chave: Optional[str] = None
    tipo: Optional[str] = None
