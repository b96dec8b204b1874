"""Person CRUD endpoints and lookup by document."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkin.api.deps import service_errors
from checkin.api.schemas import MessageResponse, PersonIn, PersonLookupOut, PersonOut
from checkin.database.database import get_db
from checkin.database.repository import PersonRepository
from checkin.errors import ValidationError

router = APIRouter()

DB = Annotated[Session, Depends(get_db)]


def _require_fields(body: PersonIn) -> None:
    if not body.nome or not body.documento or not body.empresa_id:
        raise ValidationError("Nome, documento e empresa são obrigatórios")


@router.get("", response_model=list[PersonOut])
def list_people(db: DB) -> list[dict]:
    """List people with their company and check-in status."""
    with service_errors("Erro ao listar pessoas"):
        return PersonRepository(db).list_all()


@router.get("/documento/{documento}", response_model=PersonLookupOut)
def get_person_by_document(documento: str, db: DB) -> dict:
    """Find a person by document, as used at the check-in desk."""
    with service_errors("Erro ao buscar pessoa por documento"):
        return PersonRepository(db).get_by_document(documento)


@router.get("/{person_id}", response_model=PersonOut)
def get_person(person_id: int, db: DB) -> dict:
    with service_errors("Erro ao buscar pessoa"):
        return PersonRepository(db).get(person_id)


@router.post("", response_model=PersonOut, status_code=201)
def create_person(body: PersonIn, db: DB) -> dict:
    _require_fields(body)
    with service_errors("Erro ao criar pessoa"):
        return PersonRepository(db).create(
            nome=body.nome,
            documento=body.documento,
            empresa_id=body.empresa_id,
            setor=body.setor,
        )


@router.put("/{person_id}", response_model=PersonOut)
def update_person(person_id: int, body: PersonIn, db: DB) -> dict:
    _require_fields(body)
    with service_errors("Erro ao atualizar pessoa"):
        return PersonRepository(db).update(
            person_id,
            nome=body.nome,
            documento=body.documento,
            empresa_id=body.empresa_id,
            setor=body.setor,
        )


@router.delete("/{person_id}", response_model=MessageResponse)
def delete_person(person_id: int, db: DB) -> dict:
    with service_errors("Erro ao deletar pessoa"):
        PersonRepository(db).delete(person_id)
    return {"message": "Pessoa deletada com sucesso"}
