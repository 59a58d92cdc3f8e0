"""
Conversores tolerantes para valores vindos de planilhas e do banco.

As versões estritas (`converter_*`) levantam DadosEntradaInvalidos; as
versões `*_ou_none` devolvem None e são as usadas pelo núcleo de métricas,
que nunca deve quebrar por causa de um registro malformado.
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Optional

from src.shared.exceptions import DadosEntradaInvalidos

logger = logging.getLogger(__name__)

FORMATOS_DATA = ("%Y-%m-%d", "%d/%m/%Y", "%d/%m/%Y %H:%M:%S", "%Y-%m-%d %H:%M:%S")


def converter_data(valor: Any) -> date:
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if valor is None or not str(valor).strip():
        raise DadosEntradaInvalidos("Data ausente")

    texto = str(valor).strip()
    # ISO com horário/fuso (ex: 2024-01-31T10:00:00+00:00)
    if "T" in texto:
        texto = texto.split("T")[0]
    for formato in FORMATOS_DATA:
        try:
            return datetime.strptime(texto, formato).date()
        except ValueError:
            continue
    raise DadosEntradaInvalidos(f"Data em formato não reconhecido: {valor!r}")


def converter_duracao(valor: Any) -> float:
    """Tempo total em minutos; aceita vírgula decimal. Negativos são inválidos."""
    if isinstance(valor, bool):
        raise DadosEntradaInvalidos(f"Tempo inválido: {valor!r}")
    if isinstance(valor, (int, float)):
        numero = float(valor)
    else:
        texto = str(valor).replace(",", ".").strip() if valor is not None else ""
        if not texto or texto == "-":
            raise DadosEntradaInvalidos("Tempo ausente")
        try:
            numero = float(texto)
        except ValueError:
            raise DadosEntradaInvalidos(f"Tempo não numérico: {valor!r}")

    if not math.isfinite(numero) or numero < 0:
        raise DadosEntradaInvalidos(f"Tempo fora do intervalo: {valor!r}")
    return numero


def data_ou_none(valor: Any) -> Optional[date]:
    if valor is None or valor == "":
        return None
    try:
        return converter_data(valor)
    except DadosEntradaInvalidos as e:
        logger.debug("Data descartada: %s", e)
        return None


def duracao_ou_none(valor: Any) -> Optional[float]:
    if valor is None or valor == "":
        return None
    try:
        return converter_duracao(valor)
    except DadosEntradaInvalidos as e:
        logger.debug("Tempo descartado: %s", e)
        return None


def booleano_ou_none(valor: Any) -> Optional[bool]:
    if valor is None or isinstance(valor, bool):
        return valor
    texto = str(valor).strip().lower()
    if texto in ("true", "sim", "s", "1", "yes"):
        return True
    if texto in ("false", "nao", "não", "n", "0", "no"):
        return False
    return None


def texto_ou_none(valor: Any) -> Optional[str]:
    if valor is None:
        return None
    texto = str(valor).strip()
    return texto or None
