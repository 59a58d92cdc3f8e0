from sqlalchemy import Column, Integer, String, DateTime, Date, Numeric, Text, Boolean, Float, Uuid
from sqlalchemy.orm import Mapped, mapped_column, declarative_base
import uuid
from datetime import datetime
from typing import Optional

Base = declarative_base()

# ==========================================
# CADASTROS
# ==========================================

class Atendente(Base):
    """
    Roster de atendentes. Atendimentos e resumo referenciam o atendente
    pelo nome exato (sem chave estrangeira).
    """
    __tablename__ = "atendentes"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String, unique=True, nullable=False)
    foto_url = Column(Text, nullable=True)
    ativo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=True, default=datetime.utcnow)


# ==========================================
# FATOS
# ==========================================

class Atendimento(Base):
    """
    Linhas brutas de atendimento. O mesmo id_atendimento pode aparecer
    mais de uma vez (joins da origem); a deduplicação é feita na leitura.
    """
    __tablename__ = "atendimentos"

    id = Column(Integer, primary_key=True, index=True)
    id_atendimento = Column(String(100), nullable=False, index=True)
    atendente = Column(String, nullable=False, index=True)
    data = Column(Date, nullable=True, index=True)

    tempo_total = Column(Numeric(10, 2), nullable=True)   # minutos
    resolvido = Column(Boolean, nullable=True)
    status = Column(String(30), nullable=True)            # Finalizado | Em Andamento | Pendente

    empresa = Column(String, nullable=True)
    chave = Column(String(100), nullable=True, index=True)
    tipo = Column(String(50), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


class Feedback(Base):
    """Avaliação enviada pelo cliente ao final do atendimento."""
    __tablename__ = "feedbacks"

    id = Column(Integer, primary_key=True, index=True)
    # Um feedback por atendimento; NULL só em registros antigos sem código
    id_atendimento = Column(String(100), nullable=True, unique=True, index=True)
    atendente = Column(String, nullable=False, index=True)
    modulo = Column(String, nullable=True)
    nota_geral = Column(Integer, nullable=True)           # 1 a 5
    nota_clareza = Column(Integer, nullable=True)         # 1 a 5
    problema_resolvido = Column(String(20), nullable=True)  # sim | parcialmente | nao
    empresa = Column(String, nullable=True)
    chave = Column(String(100), nullable=True)
    solicitante = Column(String, nullable=True)
    comentario = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


# ==========================================
# RESUMO (CACHE MATERIALIZADO)
# ==========================================

class ResumoAtendimento(Base):
    """
    Agregado por atendente × tipo de período × janela.

    Escrito apenas por ResumoService.atualizar_resumo, que substitui todas
    as linhas de uma janela numa única transação. Valores guardados sem
    arredondamento; o arredondamento é feito na apresentação.
    """
    __tablename__ = "resumo_atendimentos"

    tipo_periodo = Column(String(10), primary_key=True)   # diario | semanal | mensal | anual
    periodo_inicio = Column(Date, primary_key=True)
    periodo_fim = Column(Date, primary_key=True)
    atendente = Column(String, primary_key=True)

    total_atendimentos = Column(Integer, nullable=False, default=0)
    tempo_total = Column(Float, nullable=False, default=0.0)
    tempo_medio = Column(Float, nullable=False, default=0.0)
    finalizados = Column(Integer, nullable=False, default=0)
    em_andamento = Column(Integer, nullable=False, default=0)
    pendentes = Column(Integer, nullable=False, default=0)
    taxa_resolucao = Column(Float, nullable=False, default=0.0)
    eficiencia_iea = Column(Float, nullable=False, default=0.0)


# ==========================================
# AUDITORIA DE UPLOADS
# ==========================================

class Upload(Base):
    """Registro de cada arquivo importado; permite auditoria e diagnóstico."""
    __tablename__ = "uploads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[Optional[str]] = mapped_column(String, default="pending")
    total_registros: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
