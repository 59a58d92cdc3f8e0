"""
Service Layer para Ingestão de atendimentos.

As linhas são gravadas como chegam: o mesmo id_atendimento pode ser
inserido mais de uma vez (planilhas exportadas de joins repetem a linha).
A deduplicação acontece na leitura, nunca aqui.

Atendentes que não estão no roster não são criados automaticamente;
voltam em 'nomes_sem_match' para o admin cadastrar (o casamento é pelo
nome exato).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from sqlalchemy import insert
from sqlalchemy.orm import Session

from src.application.dto.ingestion_schema import AtendimentoImportSchema
from src.infrastructure.database import models
from src.shared.exceptions import PainelError

logger = logging.getLogger(__name__)

TAMANHO_LOTE = 6000


@dataclass
class ResultadoImportacao:
    importados: int = 0
    nomes_sem_match: List[str] = field(default_factory=list)

    def registrar_lote(self, importados: int, nomes: Iterable[str]) -> None:
        self.importados += importados
        for nome in nomes:
            if nome not in self.nomes_sem_match:
                self.nomes_sem_match.append(nome)


class IngestionService:
    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # DUPLICIDADE DE ARQUIVO
    # =====================================================

    def verificar_hash_duplicado(self, file_hash: str) -> bool:
        return self.db.query(models.Upload.id).filter(
            models.Upload.file_hash == file_hash,
            models.Upload.status.in_(("success", "warning")),
        ).first() is not None

    # =====================================================
    # BATCH DE ATENDIMENTOS
    # =====================================================

    def process_atendimentos_batch(self, registros: List[AtendimentoImportSchema]) -> dict:
        roster = {
            nome for (nome,) in self.db.query(models.Atendente.nome).filter(
                models.Atendente.ativo.is_(True)
            ).all()
        }

        nomes_sem_match: List[str] = []
        agora = datetime.utcnow()
        linhas = []

        for data in registros:
            if data.atendente not in roster and data.atendente not in nomes_sem_match:
                nomes_sem_match.append(data.atendente)

            linhas.append({
                "id_atendimento": data.id_atendimento,
                "atendente": data.atendente,
                "data": data.data,
                "tempo_total": data.tempo_total,
                "resolvido": data.resolvido,
                "status": data.status,
                "empresa": data.empresa,
                "chave": data.chave,
                "tipo": data.tipo,
                "created_at": agora,
            })

        try:
            if linhas:
                self.db.execute(insert(models.Atendimento), linhas)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception("Erro ao inserir lote de %d atendimentos", len(linhas))
            raise PainelError(f"Erro ao inserir lote: {str(e)}") from e

        if nomes_sem_match:
            logger.warning("Atendentes fora do roster no lote: %s", nomes_sem_match)

        return {
            "success_count": len(linhas),
            "nomes_sem_match": nomes_sem_match,
        }

    def importar(self, registros: Iterable[AtendimentoImportSchema]) -> ResultadoImportacao:
        """Grava em lotes de TAMANHO_LOTE; cada lote é uma transação."""
        resultado = ResultadoImportacao()
        lote: List[AtendimentoImportSchema] = []

        for registro in registros:
            lote.append(registro)
            if len(lote) >= TAMANHO_LOTE:
                res = self.process_atendimentos_batch(lote)
                resultado.registrar_lote(res["success_count"], res["nomes_sem_match"])
                lote = []

        if lote:
            res = self.process_atendimentos_batch(lote)
            resultado.registrar_lote(res["success_count"], res["nomes_sem_match"])
        return resultado
