"""Check-in endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkin.api.deps import service_errors
from checkin.api.schemas import CheckInIn, CheckInOut, CheckInStats, MessageResponse
from checkin.database.database import get_db
from checkin.database.repository import CheckInRepository
from checkin.errors import ValidationError

router = APIRouter()

DB = Annotated[Session, Depends(get_db)]


@router.get("", response_model=list[CheckInOut])
def list_checkins(db: DB) -> list[dict]:
    """List check-ins, newest first."""
    with service_errors("Erro ao listar check-ins"):
        return CheckInRepository(db).list_all()


@router.get("/stats/geral", response_model=CheckInStats)
def checkin_stats(db: DB) -> dict:
    with service_errors("Erro ao buscar estatísticas"):
        return CheckInRepository(db).stats()


@router.get("/pessoa/{person_id}", response_model=list[CheckInOut])
def list_person_checkins(person_id: int, db: DB) -> list[dict]:
    with service_errors("Erro ao buscar check-ins da pessoa"):
        return CheckInRepository(db).list_for_person(person_id)


@router.get("/{checkin_id}", response_model=CheckInOut)
def get_checkin(checkin_id: int, db: DB) -> dict:
    with service_errors("Erro ao buscar check-in"):
        return CheckInRepository(db).get(checkin_id)


@router.post("", response_model=CheckInOut, status_code=201)
def create_checkin(body: CheckInIn, db: DB) -> dict:
    """Check a person in and bind the wristband number."""
    pulseira = str(body.pulseira).strip() if body.pulseira is not None else ""
    if not body.pessoa_id or not pulseira:
        raise ValidationError("ID da pessoa e número da pulseira são obrigatórios")
    with service_errors("Erro ao realizar check-in"):
        return CheckInRepository(db).create(body.pessoa_id, pulseira)


@router.delete("/{checkin_id}", response_model=MessageResponse)
def cancel_checkin(checkin_id: int, db: DB) -> dict:
    with service_errors("Erro ao cancelar check-in"):
        CheckInRepository(db).delete(checkin_id)
    return {"message": "Check-in cancelado com sucesso"}
