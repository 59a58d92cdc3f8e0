"""
Worker do resumo materializado: recalcula as janelas correntes
(diario, semanal, mensal, anual) a cada RESUMO_INTERVALO_SEGUNDOS.

    python -m src.worker
"""

import logging
import time

from src.application.services.resumo_service import ResumoService
from src.infrastructure.database.config import SessionLocal
from src.infrastructure.settings import settings, configurar_logging
from src.shared.exceptions import FalhaGravacaoResumo

logger = logging.getLogger(__name__)


def executar_ciclo() -> bool:
    """Uma rodada de atualização. Retorna False se alguma janela falhou."""
    db = SessionLocal()
    try:
        janelas = ResumoService(db).atualizar_resumo()
        logger.info("Ciclo concluído: %d janelas atualizadas", len(janelas))
        return True
    except FalhaGravacaoResumo as e:
        # A janela que falhou ficou como estava; tenta de novo no próximo ciclo
        logger.error("Ciclo interrompido em %s: %s", e.tipo_periodo, e)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    configurar_logging()
    logger.info("Worker do resumo iniciado (intervalo %ss)", settings.resumo_intervalo_segundos)

    while True:
        executar_ciclo()
        time.sleep(settings.resumo_intervalo_segundos)
