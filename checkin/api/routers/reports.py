"""Reporting endpoints: dashboard, per-company, per-sector and per-period views."""

from datetime import datetime, time
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkin.api.deps import service_errors
from checkin.database.database import get_db
from checkin.database.reports import ReportRepository
from checkin.errors import ValidationError

router = APIRouter()

DB = Annotated[Session, Depends(get_db)]


def parse_bound(value: str | None, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime query parameter.

    A bare date used as an upper bound covers the whole day.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Data inválida: {value}") from exc
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


@router.get("/dashboard")
def dashboard(db: DB) -> dict:
    with service_errors("Erro ao buscar dados do dashboard"):
        return ReportRepository(db).dashboard()


@router.get("/empresas")
def companies_report(db: DB) -> list[dict]:
    with service_errors("Erro ao buscar relatório por empresas"):
        return ReportRepository(db).by_company()


@router.get("/setores")
def sectors_report(db: DB) -> list[dict]:
    with service_errors("Erro ao buscar relatório por setores"):
        return ReportRepository(db).by_sector()


@router.get("/empresa/{company_id}")
def company_report(company_id: int, db: DB) -> dict:
    with service_errors("Erro ao buscar relatório da empresa"):
        return ReportRepository(db).company_detail(company_id)


@router.get("/periodo")
def period_report(
    db: DB,
    inicio: Annotated[str | None, Query()] = None,
    fim: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """Check-ins per day between ``inicio`` and ``fim`` (both optional)."""
    start = parse_bound(inicio)
    end = parse_bound(fim, end_of_day=True)
    with service_errors("Erro ao buscar relatório por período"):
        return ReportRepository(db).by_period(start, end)


@router.get("/export/csv")
def export_rows(db: DB) -> list[dict]:
    """All people with check-in data as flat rows for spreadsheet export."""
    with service_errors("Erro ao exportar dados"):
        return ReportRepository(db).export_rows()
