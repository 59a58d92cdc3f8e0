from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from src.domain.entities.atendimento import AtendenteRanqueado, MetricaAtendente
from src.domain.entities.dimensoes import Atendente


@dataclass
class Ranking:
    todos: List[AtendenteRanqueado] = field(default_factory=list)
    destaques: List[AtendenteRanqueado] = field(default_factory=list)

    @property
    def melhor(self) -> Optional[AtendenteRanqueado]:
        ativos = [r for r in self.todos if r.metrica.ativo]
        return ativos[0] if ativos else None

    @property
    def pior(self) -> Optional[AtendenteRanqueado]:
        ativos = [r for r in self.todos if r.metrica.ativo]
        return ativos[-1] if ativos else None


def _chave_ordenacao(metrica: MetricaAtendente):
    # Quem não atendeu fica sempre depois de quem atendeu, seja qual for o IEA
    return (metrica.total == 0, -metrica.iea)


def ranquear_atendentes(
    metricas: Iterable[MetricaAtendente],
    roster: Optional[Sequence[Atendente]] = None,
    destaques: int = 3,
) -> Ranking:
    """
    Ordena por IEA decrescente, atendentes sem atendimento por último.

    Com roster, apenas os membros do roster são ranqueados, na ordem do
    roster antes da ordenação (empates mantêm essa ordem); membros sem
    métrica entram zerados. Os destaques são uma fatia da mesma lista.
    """
    metricas = list(metricas)

    fotos = {}
    if roster is not None:
        roster = list({a.nome: a for a in roster}.values())
        por_nome = {m.atendente: m for m in metricas}
        fotos = {a.nome: a.foto_url for a in roster}
        metricas = [por_nome.get(a.nome) or MetricaAtendente(atendente=a.nome) for a in roster]

    ordenadas = sorted(metricas, key=_chave_ordenacao)
    todos = [
        AtendenteRanqueado(posicao=i, metrica=m, foto_url=fotos.get(m.atendente))
        for i, m in enumerate(ordenadas, start=1)
    ]
    return Ranking(todos=todos, destaques=todos[:max(destaques, 0)])
