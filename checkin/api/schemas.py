"""Pydantic request/response schemas for the FastAPI endpoints.

Request bodies declare every field optional so that missing values are
answered with the API's own 400 messages instead of generic 422 errors.
"""

from datetime import datetime

from pydantic import BaseModel


class CompanyIn(BaseModel):
    """Request body for creating or renaming a company."""

    nome: str | None = None


class CompanyOut(BaseModel):
    """A company as returned by the API."""

    id: int
    nome: str
    created_at: datetime
    updated_at: datetime
    total_pessoas: int | None = None
    total_checkins: int | None = None


class PersonIn(BaseModel):
    """Request body for creating or updating a person."""

    nome: str | None = None
    documento: str | None = None
    setor: str | None = None
    empresa_id: int | None = None


class PersonOut(BaseModel):
    """A person as returned by the API."""

    id: int
    nome: str
    documento: str
    setor: str | None = None
    empresa_id: int | None = None
    created_at: datetime
    updated_at: datetime
    empresa_nome: str | None = None
    checkin_realizado: bool | None = None
    pulseira: str | None = None
    checkin_at: datetime | None = None


class PersonLookupOut(PersonOut):
    """A person found by document, with their company's progress."""

    total_empresa: int
    checkins_empresa: int
    posicao_empresa: int


class CheckInIn(BaseModel):
    """Request body for checking a person in."""

    pessoa_id: int | None = None
    pulseira: str | int | None = None


class CheckInOut(BaseModel):
    """A check-in with the person's and company's names."""

    id: int
    pessoa_id: int
    pulseira: str
    checkin_at: datetime
    pessoa_nome: str
    documento: str
    setor: str | None = None
    empresa_nome: str


class CheckInStats(BaseModel):
    """Global check-in statistics."""

    total_checkins: int
    total_pessoas_checkin: int
    total_empresas_checkin: int
    total_pessoas_cadastradas: int
    total_empresas_cadastradas: int
    percentual_checkin: float


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class ExtractedDocumentResponse(BaseModel):
    """Fields captured from a scanned identity document."""

    nome: str | None = None
    documento: str | None = None
    tipo_documento: str | None = None
    data_nascimento: str | None = None
    nome_mae: str | None = None
    cpf: list[str]
    rg: list[str]
    cnh: list[str]


class OCRResponse(BaseModel):
    """Response schema for the OCR capture endpoint."""

    texto_completo: str
    dados_extraidos: ExtractedDocumentResponse


class ImportResponse(BaseModel):
    """Response schema for a completed spreadsheet import."""

    message: str
    empresas_criadas: int
    pessoas_criadas: int
    total_processados: int
    errors: list[str]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    database_connected: bool
