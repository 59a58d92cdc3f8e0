from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Atendente:
    """Membro ativo do roster; casado com os atendimentos pelo nome exato."""
    nome: str
    foto_url: Optional[str] = None

@dataclass(frozen=True)
class Modulo:
    nome: str  # Ex: Financeiro, Fiscal, Estoque
