"""
Leitura dos atendimentos brutos e do roster.

Os predicados de período, atendente, chave e ano são empurrados para o SQL
para reduzir o volume lido; a deduplicação NÃO é feita aqui (o banco
guarda as linhas repetidas como chegaram).
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import extract
from sqlalchemy.orm import Session

from src.domain.entities.atendimento import RegistroAtendimento
from src.domain.entities.dimensoes import Atendente
from src.domain.filtros import FiltroAtendimento, resolver_janela, TODOS
from src.infrastructure.database import models


def _para_registro(a: models.Atendimento) -> RegistroAtendimento:
    return RegistroAtendimento.de_linha({
        "id_atendimento": a.id_atendimento,
        "atendente": a.atendente,
        "data": a.data,
        "tempo_total": a.tempo_total,
        "resolvido": a.resolvido,
        "status": a.status,
        "empresa": a.empresa,
        "chave": a.chave,
        "tipo": a.tipo,
        "created_at": a.created_at,
    })


class AtendimentoRepository:
    def __init__(self, db: Session):
        self.db = db

    def buscar_registros(
        self, filtro: Optional[FiltroAtendimento] = None, hoje: Optional[date] = None
    ) -> List[RegistroAtendimento]:
        """
        Linhas brutas na ordem de inserção (id), que é a ordem usada pela
        deduplicação "primeira linha vence".
        """
        filtro = filtro or FiltroAtendimento()
        query = self.db.query(models.Atendimento)

        janela = resolver_janela(filtro.periodo, hoje)
        if janela is not None:
            query = query.filter(
                models.Atendimento.data >= janela[0],
                models.Atendimento.data <= janela[1],
            )
        if filtro.atendente and filtro.atendente != TODOS:
            query = query.filter(models.Atendimento.atendente == filtro.atendente)
        if filtro.chave and filtro.chave != TODOS:
            query = query.filter(models.Atendimento.chave == filtro.chave)
        if filtro.ano and filtro.ano != TODOS:
            query = query.filter(extract("year", models.Atendimento.data) == int(filtro.ano))

        return [_para_registro(a) for a in query.order_by(models.Atendimento.id).all()]

    def buscar_recentes(self, limite: int = 50) -> List[RegistroAtendimento]:
        query = self.db.query(models.Atendimento).order_by(
            models.Atendimento.created_at.desc(),
            models.Atendimento.id.desc(),
        ).limit(limite)
        return [_para_registro(a) for a in query.all()]


class AtendenteRepository:
    def __init__(self, db: Session):
        self.db = db

    def listar_ativos(self) -> List[Atendente]:
        atendentes = self.db.query(models.Atendente).filter(
            models.Atendente.ativo.is_(True)
        ).order_by(models.Atendente.nome).all()
        return [Atendente(nome=a.nome, foto_url=a.foto_url) for a in atendentes]
