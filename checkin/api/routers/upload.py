"""Upload endpoints: Excel validation and import, template download and OCR."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from checkin.api.deps import get_config, service_errors
from checkin.api.schemas import ImportResponse, OCRResponse
from checkin.database.database import get_db
from checkin.extraction.rule_extractor import RuleExtractor, extract_document_data
from checkin.importer.excel import (
    TEMPLATE_FILENAME,
    XLSX_MEDIA_TYPE,
    SpreadsheetImporter,
    build_template,
)
from checkin.ocr.tesseract_engine import TesseractEngine
from checkin.utils.logger import get_logger
from checkin.validation.rules_engine import RowRulesEngine

logger = get_logger(__name__)

router = APIRouter()

DB = Annotated[Session, Depends(get_db)]

_EXCEL_CONTENT_TYPES = {
    XLSX_MEDIA_TYPE,
    "application/vnd.ms-excel",
    "application/octet-stream",
}
_EXCEL_EXTENSIONS = {".xlsx", ".xls"}
_IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}


def _get_components() -> tuple[TesseractEngine, RuleExtractor]:
    """Build the OCR engine and field extractor from configuration."""
    config = get_config()
    return TesseractEngine(config.ocr), RuleExtractor()


def _get_importer(db: Session) -> SpreadsheetImporter:
    config = get_config()
    rules = RowRulesEngine(Path(config.validation.rules_path))
    return SpreadsheetImporter(db, rules=rules, config=config.upload)


async def _read_upload(file: UploadFile | None, missing_message: str) -> bytes:
    if file is None:
        raise HTTPException(status_code=400, detail=missing_message)
    limit = get_config().upload.max_file_size_bytes
    too_large = HTTPException(status_code=413, detail="Arquivo excede o tamanho máximo")
    if file.size is not None and file.size > limit:
        raise too_large
    # One byte past the limit is enough to tell an oversized upload apart.
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise too_large
    return content


def _check_excel(file: UploadFile | None) -> None:
    if file is None:
        return
    extension = Path(file.filename or "").suffix.lower()
    if file.content_type not in _EXCEL_CONTENT_TYPES and extension not in _EXCEL_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Apenas arquivos Excel (.xlsx, .xls) são permitidos",
        )


def _check_image(file: UploadFile | None) -> None:
    if file is None:
        return
    if file.content_type not in _IMAGE_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Apenas imagens (JPEG, PNG, GIF) são permitidas",
        )


@router.post("/excel/validar")
async def validate_excel(
    db: DB, excel: Annotated[UploadFile | None, File()] = None
) -> dict:
    """Validate a spreadsheet without importing it."""
    _check_excel(excel)
    content = await _read_upload(excel, "Nenhum arquivo foi enviado")
    with service_errors("Erro ao processar arquivo Excel"):
        result = await run_in_threadpool(_get_importer(db).validate, content)
    if not result.valid:
        raise HTTPException(status_code=400, detail=result.to_dict())
    return result.to_dict()


@router.post("/excel", response_model=ImportResponse)
async def import_excel(
    db: DB, excel: Annotated[UploadFile | None, File()] = None
) -> dict:
    """Import people from a spreadsheet, creating missing companies."""
    _check_excel(excel)
    content = await _read_upload(excel, "Nenhum arquivo foi enviado")
    with service_errors("Erro ao importar arquivo Excel"):
        summary = await run_in_threadpool(_get_importer(db).import_rows, content)
    return summary.to_dict()


@router.get("/template")
def download_template() -> Response:
    """Download the sample import spreadsheet."""
    with service_errors("Erro ao gerar template"):
        content = build_template()
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post("/ocr", response_model=OCRResponse)
async def ocr_document(
    documento: Annotated[UploadFile | None, File()] = None,
) -> dict:
    """Read an identity document image and extract its fields.

    Returns the full OCR text and the extracted data, including the primary
    document chosen among the valid CPF, CNH and RG numbers found.
    """
    _check_image(documento)
    content = await _read_upload(documento, "Nenhuma imagem foi enviada")
    logger.info("Processing OCR for %s", documento.filename)

    with service_errors("Erro ao processar OCR do documento"):
        engine, extractor = _get_components()
        ocr_result = await run_in_threadpool(engine.extract_text, content)
        data = extract_document_data(ocr_result.text, extractor)

    return {"texto_completo": ocr_result.text, "dados_extraidos": data.to_dict()}
