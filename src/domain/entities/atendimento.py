from dataclasses import dataclass
from datetime import datetime, date
from enum import Enum
from typing import Any, Mapping, Optional

from src.shared.utils.conversores import (
    booleano_ou_none,
    data_ou_none,
    duracao_ou_none,
    texto_ou_none,
)


class Situacao(str, Enum):
    FINALIZADO = "Finalizado"
    EM_ANDAMENTO = "Em Andamento"
    PENDENTE = "Pendente"


@dataclass(frozen=True)
class RegistroAtendimento:
    """Linha bruta de atendimento (pode estar duplicada pelo id_atendimento)."""
    id_atendimento: str
    atendente: str
    data: Optional[date] = None
    tempo_total: Optional[float] = None     # minutos
    resolvido: Optional[bool] = None
    status: Optional[str] = None
    empresa: Optional[str] = None
    chave: Optional[str] = None
    tipo: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def de_linha(cls, linha: Mapping[str, Any]) -> "RegistroAtendimento":
        """
        Monta o registro a partir de um dicionário (linha do banco ou da
        planilha). Data malformada e tempo não numérico viram None: o
        registro continua contando no total, mas não nas somas de tempo.
        """
        created_at = linha.get("created_at")
        return cls(
            id_atendimento=str(linha.get("id_atendimento") or "").strip(),
            atendente=str(linha.get("atendente") or "").strip(),
            data=data_ou_none(linha.get("data")),
            tempo_total=duracao_ou_none(linha.get("tempo_total")),
            resolvido=booleano_ou_none(linha.get("resolvido")),
            status=texto_ou_none(linha.get("status")),
            empresa=texto_ou_none(linha.get("empresa")),
            chave=texto_ou_none(linha.get("chave")),
            tipo=texto_ou_none(linha.get("tipo")),
            created_at=created_at if isinstance(created_at, datetime) else None,
        )


@dataclass
class MetricaAtendente:
    atendente: str
    total: int = 0
    tempo_total: float = 0.0
    tempo_medio: float = 0.0
    iea: float = 0.0
    resolvidos: int = 0
    em_andamento: int = 0
    pendentes: int = 0
    taxa_resolucao: float = 0.0

    @property
    def ativo(self) -> bool:
        return self.total > 0


@dataclass
class AtendenteRanqueado:
    posicao: int
    metrica: MetricaAtendente
    foto_url: Optional[str] = None

    @property
    def atendente(self) -> str:
        return self.metrica.atendente


@dataclass
class LinhaResumo:
    """Linha do resumo materializado (uma por atendente × período × janela)."""
    atendente: str
    tipo_periodo: str
    periodo_inicio: date
    periodo_fim: date
    total: int = 0
    tempo_total: float = 0.0
    tempo_medio: float = 0.0
    finalizados: int = 0
    em_andamento: int = 0
    pendentes: int = 0
    taxa_resolucao: float = 0.0
    iea: float = 0.0

    @classmethod
    def de_metrica(
        cls, metrica: MetricaAtendente, tipo_periodo: str, inicio: date, fim: date
    ) -> "LinhaResumo":
        return cls(
            atendente=metrica.atendente,
            tipo_periodo=tipo_periodo,
            periodo_inicio=inicio,
            periodo_fim=fim,
            total=metrica.total,
            tempo_total=metrica.tempo_total,
            tempo_medio=metrica.tempo_medio,
            finalizados=metrica.resolvidos,
            em_andamento=metrica.em_andamento,
            pendentes=metrica.pendentes,
            taxa_resolucao=metrica.taxa_resolucao,
            iea=metrica.iea,
        )

    def para_metrica(self) -> MetricaAtendente:
        return MetricaAtendente(
            atendente=self.atendente,
            total=self.total,
            tempo_total=self.tempo_total,
            tempo_medio=self.tempo_medio,
            iea=self.iea,
            resolvidos=self.finalizados,
            em_andamento=self.em_andamento,
            pendentes=self.pendentes,
            taxa_resolucao=self.taxa_resolucao,
        )


@dataclass
class PontoTendencia:
    chave: str          # DD/MM ou MM/YYYY
    inicio: date        # data usada na ordenação
    total: int = 0
    tempo_medio: float = 0.0


@dataclass
class EstatisticasSituacao:
    """Totais da lista de atendimentos (cards do topo)."""
    total: int = 0
    finalizados: int = 0
    em_andamento: int = 0
    pendentes: int = 0
    tempo_medio: float = 0.0
