import io
from datetime import date

import openpyxl
import pytest
from pydantic import ValidationError

from src.application.dto.ingestion_schema import AtendimentoImportSchema
from src.application.services import ingestion_service
from src.application.services.ingestion_service import IngestionService
from src.infrastructure.database import models
from src.presentation.controllers.ingestion_controller import (
    ler_planilha,
    mapear_colunas,
    parse_row_to_dto,
)


def _dto(id_atendimento, atendente="Ana", **extra):
    return AtendimentoImportSchema(id_atendimento=id_atendimento, atendente=atendente, **extra)


def test_importar_splits_into_batches(db, atendente_factory, monkeypatch):
    atendente_factory("Ana")
    monkeypatch.setattr(ingestion_service, "TAMANHO_LOTE", 2)

    chamadas = []
    original = IngestionService.process_atendimentos_batch

    def contar(self, registros):
        chamadas.append(len(registros))
        return original(self, registros)

    monkeypatch.setattr(IngestionService, "process_atendimentos_batch", contar)

    resultado = IngestionService(db).importar(
        [_dto("1"), _dto("1"), _dto("2", "Carlos"), _dto("3", "Dani"), _dto("4", "Carlos")]
    )

    assert chamadas == [2, 2, 1]
    assert resultado.importados == 5
    assert resultado.nomes_sem_match == ["Carlos", "Dani"]
    assert db.query(models.Atendimento).filter(models.Atendimento.id_atendimento == "1").count() == 2


def test_parse_row_keeps_record_when_date_or_time_is_bad():
    mapa = mapear_colunas(["Id Atendimento", "Atendente", "Data", "Tempo", "Colaborador extra"])

    dto, avisos = parse_row_to_dto(
        {"Id Atendimento": "77", "Atendente": "Ana", "Data": "31/02/2024", "Tempo": "-5"}, mapa
    )

    assert (dto.id_atendimento, dto.data, dto.tempo_total) == ("77", None, None)
    assert len(avisos) == 2


def test_parse_row_accepts_comma_decimal_and_flags():
    mapa = mapear_colunas(["ID", "ATENDENTE", "DATA", "TEMPO_TOTAL", "RESOLVIDO"])

    dto, avisos = parse_row_to_dto(
        {"ID": "8", "ATENDENTE": "Bia", "DATA": "2024-01-15", "TEMPO_TOTAL": "12,5", "RESOLVIDO": "Sim"}, mapa
    )

    assert avisos == []
    assert (dto.data, dto.tempo_total, dto.resolvido) == (date(2024, 1, 15), 12.5, True)


def test_row_without_attendant_is_rejected():
    mapa = mapear_colunas(["ID", "ATENDENTE", "DATA"])

    with pytest.raises(ValidationError):
        parse_row_to_dto({"ID": "9", "ATENDENTE": "", "DATA": "2024-01-15"}, mapa)


def _xlsx(*linhas):
    wb = openpyxl.Workbook()
    for linha in linhas:
        wb.active.append(linha)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def test_xlsx_blank_header_does_not_shift_columns():
    raw = _xlsx(
        ["ID", None, "ATENDENTE", "DATA", "TEMPO"],
        ["11", "anotação solta", "Ana", "15/01/2024", 30],
        ["12", None, "Bia", "16/01/2024"],
    )

    headers, rows = ler_planilha("atendimentos.xlsx", raw)

    assert headers == ["ID", "ATENDENTE", "DATA", "TEMPO"]
    assert rows[0] == {"ID": "11", "ATENDENTE": "Ana", "DATA": "15/01/2024", "TEMPO": 30}
    assert rows[1]["ATENDENTE"] == "Bia"
    assert rows[1]["TEMPO"] == ""

    dto, avisos = parse_row_to_dto(rows[0], mapear_colunas(headers))
    assert (dto.id_atendimento, dto.atendente, dto.data) == ("11", "Ana", date(2024, 1, 15))
    assert avisos == []
