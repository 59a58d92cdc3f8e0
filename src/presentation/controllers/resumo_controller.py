from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from src.application.services.resumo_service import ResumoService, TIPOS_PERIODO
from src.infrastructure.database.config import get_db
from src.shared.exceptions import FalhaGravacaoResumo

router = APIRouter(prefix="/resumo", tags=["Resumo"])


# ==========================================
# ENDPOINT: ATUALIZAR RESUMO
# ==========================================

@router.post("/atualizar")
def atualizar_resumo(
    tipo_periodo: Optional[str] = Query(None, description="diario | semanal | mensal | anual (vazio = todos)"),
    db: Session = Depends(get_db),
):
    """
    Recalcula o resumo materializado a partir dos atendimentos brutos.
    Só retorna depois que todas as janelas pedidas foram gravadas.
    """
    if tipo_periodo and tipo_periodo not in TIPOS_PERIODO:
        raise HTTPException(
            status_code=400,
            detail=f"Tipo de período inválido. Use um de: {', '.join(TIPOS_PERIODO)}."
        )

    try:
        janelas = ResumoService(db).atualizar_resumo(tipo_periodo)
    except FalhaGravacaoResumo as e:
        raise HTTPException(
            status_code=503,
            detail=(
                f"Não foi possível atualizar o resumo {e.tipo_periodo}. "
                "Nenhum dado dessa janela foi alterado; tente novamente."
            )
        )

    return {
        "status": "success",
        "message": "Dados de resumo atualizados com sucesso!",
        "janelas": [
            {
                "tipo_periodo": j["tipo_periodo"],
                "periodo_inicio": j["periodo_inicio"].isoformat(),
                "periodo_fim": j["periodo_fim"].isoformat(),
                "linhas": j["linhas"],
            }
            for j in janelas
        ],
    }
