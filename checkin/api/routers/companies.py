"""Company CRUD endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkin.api.deps import service_errors
from checkin.api.schemas import CompanyIn, CompanyOut, MessageResponse
from checkin.database.database import get_db
from checkin.database.repository import CompanyRepository
from checkin.errors import ValidationError

router = APIRouter()

DB = Annotated[Session, Depends(get_db)]


def _require_name(body: CompanyIn) -> str:
    if not body.nome or not body.nome.strip():
        raise ValidationError("Nome da empresa é obrigatório")
    return body.nome.strip()


@router.get("", response_model=list[CompanyOut])
def list_companies(db: DB) -> list[dict]:
    """List companies with people and check-in totals."""
    with service_errors("Erro ao listar empresas"):
        return CompanyRepository(db).list_all()


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: int, db: DB) -> dict:
    with service_errors("Erro ao buscar empresa"):
        return CompanyRepository(db).get(company_id)


@router.post("", response_model=CompanyOut, status_code=201)
def create_company(body: CompanyIn, db: DB) -> dict:
    nome = _require_name(body)
    with service_errors("Erro ao criar empresa"):
        return CompanyRepository(db).create(nome)


@router.put("/{company_id}", response_model=CompanyOut)
def update_company(company_id: int, body: CompanyIn, db: DB) -> dict:
    nome = _require_name(body)
    with service_errors("Erro ao atualizar empresa"):
        return CompanyRepository(db).update(company_id, nome)


@router.delete("/{company_id}", response_model=MessageResponse)
def delete_company(company_id: int, db: DB) -> dict:
    """Delete a company without registered people."""
    with service_errors("Erro ao deletar empresa"):
        CompanyRepository(db).delete(company_id)
    return {"message": "Empresa deletada com sucesso"}
