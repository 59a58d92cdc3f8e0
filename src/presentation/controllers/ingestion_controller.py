from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
import chardet
import csv
import hashlib
import logging
import openpyxl
import io
import unicodedata
from datetime import datetime, date, timedelta
from pydantic import ValidationError
from sqlalchemy.orm import Session
from src.infrastructure.database.config import get_db
from src.infrastructure.database import models
from src.application.services.ingestion_service import IngestionService
from src.application.dto.ingestion_schema import AtendimentoImportSchema
from src.shared.utils.conversores import (
    booleano_ou_none,
    data_ou_none,
    duracao_ou_none,
    texto_ou_none,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingestion", tags=["Ingestão"])

# ==========================================
# LIMITES
# ==========================================

TAMANHO_MAXIMO_MB = 50
DATA_MINIMA = date(2020, 1, 1)
TOLERANCIA_FUTURO_DIAS = 1
MAX_MENSAGENS = 20

# Cabeçalho normalizado → campo do DTO
COLUNAS = {
    "ID_ATENDIMENTO": "id_atendimento",
    "ID": "id_atendimento",
    "ATENDENTE": "atendente",
    "DATA": "data",
    "TEMPO_TOTAL": "tempo_total",
    "TEMPO": "tempo_total",
    "RESOLVIDO": "resolvido",
    "STATUS": "status",
    "EMPRESA": "empresa",
    "CHAVE": "chave",
    "TIPO": "tipo",
}
COLUNAS_OBRIGATORIAS = {"id_atendimento", "atendente", "data"}

PALAVRAS_ERRO_BANCO = (
    "sqlalchemy", "psycopg", "duplicate key", "unique constraint", "violates",
    "relation", "column", "insert into", "background on this error",
)
PALAVRAS_ERRO_CONEXAO = ("connection", "timeout", "refused", "unreachable")


def sanitizar_erro(erro: Exception) -> str:
    """Mensagem para o usuário; o detalhe técnico fica só no log e no Upload."""
    msg = str(erro).lower()
    if any(p in msg for p in PALAVRAS_ERRO_CONEXAO):
        return "Sem conexão com o banco de dados no momento. Tente de novo em instantes."
    if any(p in msg for p in PALAVRAS_ERRO_BANCO):
        return "Não foi possível gravar os atendimentos. Tente de novo ou fale com o administrador."
    return "Falha inesperada ao processar a planilha. Tente de novo ou fale com o administrador."


# ==========================================
# LEITURA DA PLANILHA
# ==========================================

def decodificar_csv(raw: bytes) -> str:
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass
    encoding = chardet.detect(raw).get("encoding") or "iso-8859-1"
    try:
        return raw.decode(encoding)
    except (LookupError, UnicodeDecodeError):
        return raw.decode("iso-8859-1", errors="replace")


def detectar_separador(texto: str) -> str:
    cabecalho = texto.split("\n", 1)[0]
    return "," if cabecalho.count(",") > cabecalho.count(";") else ";"


def normalizar_cabecalho(nome: str) -> str:
    sem_acento = "".join(
        c for c in unicodedata.normalize("NFKD", nome) if not unicodedata.combining(c)
    )
    return "_".join(sem_acento.upper().split())


def ler_planilha(filename: str, raw_content: bytes) -> tuple[list[str], list[dict]]:
    if filename.endswith(".xlsx"):
        wb = openpyxl.load_workbook(io.BytesIO(raw_content), data_only=True, read_only=True)
        try:
            linhas = wb.active.iter_rows(values_only=True) if wb.active is not None else iter(())
            cabecalho = next(linhas, None)
            if cabecalho is None:
                raise HTTPException(status_code=400, detail="Planilha Excel vazia ou inválida.")
            # Colunas sem título são puladas, mas cada título fica preso à sua posição
            colunas = [
                (indice, str(h).strip())
                for indice, h in enumerate(cabecalho)
                if h is not None and str(h).strip()
            ]
            headers = [h for _, h in colunas]
            rows = [
                {
                    h: ("" if indice >= len(valores) or valores[indice] is None else valores[indice])
                    for indice, h in colunas
                }
                for valores in linhas
                if any(v is not None for v in valores)
            ]
        finally:
            wb.close()
        return headers, rows

    texto = decodificar_csv(raw_content)
    reader = csv.DictReader(io.StringIO(texto), delimiter=detectar_separador(texto))
    headers = [h.strip() for h in (reader.fieldnames or [])]
    rows = [
        {k.strip(): (v or "").strip() for k, v in row.items() if k}
        for row in reader
    ]
    return headers, rows


# ==========================================
# VALIDAÇÃO E CONVERSÃO DAS LINHAS
# ==========================================

def validar_data(dia: date) -> str | None:
    if dia < DATA_MINIMA:
        return f"data {dia.strftime('%d/%m/%Y')} anterior a {DATA_MINIMA.strftime('%d/%m/%Y')}"
    if dia > date.today() + timedelta(days=TOLERANCIA_FUTURO_DIAS):
        return f"data {dia.strftime('%d/%m/%Y')} no futuro"
    return None


def mapear_colunas(headers: list[str]) -> dict[str, str]:
    """Cabeçalho original → campo do DTO (colunas desconhecidas são ignoradas)."""
    mapa = {}
    for h in headers:
        campo = COLUNAS.get(normalizar_cabecalho(h))
        if campo and campo not in mapa.values():
            mapa[h] = campo
    return mapa


def parse_row_to_dto(row: dict, mapa: dict[str, str]) -> tuple[AtendimentoImportSchema, list[str]]:
    """
    Converte uma linha em DTO. Data e tempo malformados viram None e
    geram um aviso; o atendimento continua sendo importado.
    """
    valores = {campo: row.get(coluna) for coluna, campo in mapa.items()}
    avisos = []

    data_bruta = valores.get("data")
    data_ref = data_ou_none(data_bruta)
    if data_bruta and data_ref is None:
        avisos.append(f"data '{data_bruta}' não reconhecida")
    elif data_ref is not None:
        problema = validar_data(data_ref)
        if problema:
            avisos.append(problema)
            data_ref = None

    tempo_bruto = valores.get("tempo_total")
    tempo = duracao_ou_none(tempo_bruto)
    if tempo_bruto not in (None, "") and tempo is None:
        avisos.append(f"tempo '{tempo_bruto}' não numérico")

    dto = AtendimentoImportSchema(
        id_atendimento=str(valores.get("id_atendimento") or "").strip(),
        atendente=str(valores.get("atendente") or "").strip(),
        data=data_ref,
        tempo_total=tempo,
        resolvido=booleano_ou_none(valores.get("resolvido")),
        status=texto_ou_none(valores.get("status")),
        empresa=texto_ou_none(valores.get("empresa")),
        chave=texto_ou_none(valores.get("chave")),
        tipo=texto_ou_none(valores.get("tipo")),
    )
    return dto, avisos


def _status_importacao(importados: int, erros: int, avisos: int) -> str:
    if importados == 0:
        return "error"
    return "success" if erros == 0 and avisos == 0 else "warning"


# ==========================================
# ENDPOINT: UPLOAD DE PLANILHA
# ==========================================

@router.post("/upload-csv")
async def upload_csv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """
    Importa uma planilha de atendimentos (.csv ou .xlsx).

    Linhas repetidas são gravadas como vieram. Linhas sem id ou atendente
    são rejeitadas; data ou tempo ilegíveis só geram aviso.
    """
    if not file.filename or not file.filename.endswith((".csv", ".xlsx")):
        raise HTTPException(status_code=400, detail="Envie um arquivo .csv ou .xlsx.")

    raw_content = await file.read()
    if not raw_content:
        raise HTTPException(status_code=400, detail="O arquivo enviado está vazio.")
    if len(raw_content) > TAMANHO_MAXIMO_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"O arquivo excede o limite de {TAMANHO_MAXIMO_MB} MB. Divida em partes menores."
        )

    service = IngestionService(db)
    file_hash = hashlib.sha256(raw_content).hexdigest()
    if service.verificar_hash_duplicado(file_hash):
        raise HTTPException(status_code=409, detail="Este arquivo já foi importado.")

    upload = models.Upload(
        file_path=file.filename,
        file_hash=file_hash,
        status="pending",
        created_at=datetime.utcnow(),
    )
    db.add(upload)
    db.commit()

    try:
        headers, rows = ler_planilha(file.filename, raw_content)
        if not rows:
            upload.error = "Arquivo sem dados"
            raise HTTPException(status_code=400, detail="A planilha não tem linhas de dados.")

        mapa = mapear_colunas(headers)
        faltando = sorted(COLUNAS_OBRIGATORIAS - set(mapa.values()))
        if faltando:
            upload.error = f"Colunas ausentes: {', '.join(faltando)}"
            raise HTTPException(
                status_code=400,
                detail=f"Colunas obrigatórias ausentes: {', '.join(faltando)}."
            )

        erros: list[str] = []
        avisos: list[str] = []

        def dtos_validos():
            for numero, row in enumerate(rows, start=1):
                try:
                    dto, avisos_linha = parse_row_to_dto(row, mapa)
                except ValidationError as e:
                    erros.append(f"Linha {numero}: {e.errors()[0]['loc'][0]} inválido")
                    continue
                avisos.extend(f"Linha {numero}: {a}" for a in avisos_linha)
                yield dto

        resultado = service.importar(dtos_validos())
        status = _status_importacao(resultado.importados, len(erros), len(avisos))

        upload.status = status
        upload.total_registros = resultado.importados
        upload.processed_at = datetime.utcnow()
        if erros:
            upload.error = "; ".join(erros[:5])
        db.commit()

        logger.info(
            "Upload %s: %s (%d importados, %d rejeitados, %d avisos)",
            file.filename, status, resultado.importados, len(erros), len(avisos),
        )

        return {
            "status": status,
            "message": (
                f"{resultado.importados} atendimentos importados, "
                f"{len(erros)} linhas rejeitadas, {len(avisos)} avisos."
            ),
            "detalhes": {
                "total_linhas_arquivo": len(rows),
                "success_count": resultado.importados,
                "error_count": len(erros),
                "errors": erros[:MAX_MENSAGENS],
                "avisos": avisos[:MAX_MENSAGENS],
                "nomes_sem_match": resultado.nomes_sem_match,
            }
        }

    except HTTPException:
        upload.status = "error"
        upload.processed_at = datetime.utcnow()
        db.commit()
        raise
    except Exception as e:
        logger.exception("Falha ao processar upload %s", file.filename)
        db.rollback()
        upload.status = "error"
        upload.processed_at = datetime.utcnow()
        upload.error = str(e)[:500]
        db.commit()
        raise HTTPException(status_code=500, detail=sanitizar_erro(e))


# ==========================================
# ENDPOINT: LISTAR ATENDENTES
# ==========================================

@router.get("/atendentes")
def listar_atendentes(db: Session = Depends(get_db)):
    """Roster completo (ativos primeiro) para conferir nomes_sem_match."""
    atendentes = db.query(models.Atendente).order_by(
        models.Atendente.ativo.desc(),
        models.Atendente.nome
    ).all()
    return [
        {"id": a.id, "nome": a.nome, "foto_url": a.foto_url, "ativo": a.ativo}
        for a in atendentes
    ]
