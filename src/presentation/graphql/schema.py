import strawberry
from typing import List, Optional
from datetime import date


# ==========================================
# MÉTRICAS POR ATENDENTE
# ==========================================

@strawberry.type
class MetricaAtendenteType:
    atendente: str
    total_atendimentos: int
    tempo_total: float          # minutos
    tempo_medio: float          # minutos por atendimento
    eficiencia_iea: float       # total / tempo médio
    resolvidos: int
    em_andamento: int
    pendentes: int
    taxa_resolucao: float       # %


# ==========================================
# RANKING (MONITOR)
# ==========================================

@strawberry.type
class RankingAtendenteType:
    posicao: int
    atendente: str
    foto_url: Optional[str]
    total_atendimentos: int
    tempo_medio: float
    eficiencia_iea: float
    taxa_resolucao: float


@strawberry.type
class RankingType:
    todos: List[RankingAtendenteType]
    destaques: List[RankingAtendenteType]   # top N (cards do monitor)
    melhor_atendente: Optional[str]
    pior_atendente: Optional[str]


# ==========================================
# TENDÊNCIA
# ==========================================

@strawberry.type
class PontoTendenciaType:
    chave: str          # DD/MM ou MM/YYYY
    inicio: date
    total: int
    tempo_medio: float


# ==========================================
# LISTA DE ATENDIMENTOS
# ==========================================

@strawberry.type
class EstatisticasAtendimentosType:
    total: int
    finalizados: int
    em_andamento: int
    pendentes: int
    tempo_medio: float


@strawberry.type
class AtendimentoType:
    id_atendimento: str
    atendente: str
    data: Optional[date]
    tempo_total: Optional[float]
    resolvido: Optional[bool]
    status: Optional[str]
    situacao: str               # Finalizado | Em Andamento | Pendente (reconciliado)
    empresa: Optional[str]
    chave: Optional[str]
    tipo: Optional[str]


# ==========================================
# RESUMO MATERIALIZADO
# ==========================================

@strawberry.type
class ResumoAtendimentoType:
    atendente: str
    tipo_periodo: str
    periodo_inicio: date
    periodo_fim: date
    total_atendimentos: int
    tempo_total: float
    tempo_medio: float
    finalizados: int
    em_andamento: int
    pendentes: int
    taxa_resolucao: float
    eficiencia_iea: float


# ==========================================
# FEEDBACKS
# ==========================================

@strawberry.type
class DistribuicaoType:
    chave: str
    total: int


@strawberry.type
class DesempenhoFeedbackType:
    nome: str
    feedbacks: int
    nota: float
    clareza: float
    resolvidos: int
    parciais: int
    nao_resolvidos: int
    taxa_resolucao: float
    score: float


@strawberry.type
class TendenciaFeedbackType:
    chave: str
    dia: date
    feedbacks: int
    nota: float


@strawberry.type
class FeedbackType:
    """Uma avaliação da lista de feedbacks."""
    id: Optional[int]
    id_atendimento: Optional[str]
    atendente: str
    modulo: Optional[str]
    nota_geral: Optional[int]
    nota_clareza: Optional[int]
    problema_resolvido: Optional[str]
    comentario: Optional[str]
    empresa: Optional[str]
    chave: Optional[str]
    solicitante: Optional[str]
    created_at: Optional[str]


@strawberry.type
class EstatisticasFeedbackType:
    total_feedbacks: int
    nota_media: float
    clareza_media: float
    taxa_resolucao: float
    distribuicao_notas: List[DistribuicaoType]
    distribuicao_resolucao: List[DistribuicaoType]
    por_atendente: List[DesempenhoFeedbackType]
    por_modulo: List[DesempenhoFeedbackType]
    melhor_atendente: Optional[str]
    pior_atendente: Optional[str]
    melhor_modulo: Optional[str]
    tendencia: List[TendenciaFeedbackType]


# ==========================================
# HISTÓRICO DE UPLOADS
# ==========================================

@strawberry.type
class UploadHistoricoType:
    """Registro de um arquivo importado."""
    id: str
    file_path: str
    status: Optional[str]
    total_registros: Optional[int]
    created_at: Optional[str]
    processed_at: Optional[str]
    error: Optional[str]
