from datetime import date
from typing import Optional


class PainelError(Exception):
    """Base para erros de regra de negócio do painel."""


class DadosEntradaInvalidos(PainelError):
    """Valor bruto que não pôde ser convertido (data malformada, tempo não numérico)."""


class FalhaGravacaoResumo(PainelError):
    """
    A atualização do resumo de uma janela falhou e foi desfeita.

    Nenhuma linha da janela foi alterada; o chamador deve repetir a
    atualização inteira, não corrigir linhas individuais.
    """

    def __init__(
        self,
        mensagem: str,
        tipo_periodo: Optional[str] = None,
        inicio: Optional[date] = None,
        fim: Optional[date] = None,
    ):
        super().__init__(mensagem)
        self.tipo_periodo = tipo_periodo
        self.inicio = inicio
        self.fim = fim


class FeedbackDuplicado(PainelError):
    """Já existe feedback registrado para este atendimento."""

    def __init__(self, id_atendimento: str):
        super().__init__(
            f"O atendimento {id_atendimento} já possui um feedback registrado anteriormente."
        )
        self.id_atendimento = id_atendimento
