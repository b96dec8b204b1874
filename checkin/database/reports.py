"""Read-only reporting queries over check-in data.

Aggregations that depend on date arithmetic (per hour, per day) are grouped
in Python so the same code runs on PostgreSQL and SQLite.
"""

from collections import defaultdict
from datetime import datetime, timedelta

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from checkin.errors import NotFoundError

from .models import CheckIn, Company, Person
from .repository import percentual

UNINFORMED_SECTOR = "Não informado"
RECENT_CHECKINS = 10
EXPORT_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


class ReportRepository:
    """Aggregated views for the dashboard, reports and data export."""

    def __init__(self, db: Session):
        self.db = db

    def dashboard(self, now: datetime | None = None) -> dict:
        """Overall totals, hourly activity, per-company progress and latest check-ins.

        Args:
            now: Reference time for the 24-hour window. Defaults to the
                current local time.
        """
        now = now or datetime.now()
        estatisticas = {
            "total_empresas": self.db.query(func.count(Company.id)).scalar(),
            "total_pessoas": self.db.query(func.count(Person.id)).scalar(),
            "total_checkins": self.db.query(func.count(CheckIn.id)).scalar(),
            "pessoas_com_checkin": self.db.query(
                func.count(distinct(CheckIn.pessoa_id))
            ).scalar(),
        }

        per_hour: dict[int, int] = defaultdict(int)
        for (checkin_at,) in self.db.query(CheckIn.checkin_at).filter(
            CheckIn.checkin_at >= now - timedelta(hours=24)
        ):
            per_hour[checkin_at.hour] += 1

        por_empresa = [
            {
                "empresa": row["empresa"],
                "total_pessoas": row["total_pessoas"],
                "total_checkins": row["total_checkins"],
                "percentual_checkin": row["percentual_checkin"],
            }
            for row in sorted(
                self._company_totals(), key=lambda r: -r["total_checkins"]
            )
        ]

        recentes = (
            self.db.query(
                CheckIn.checkin_at,
                Person.nome,
                Person.documento,
                Company.nome,
                CheckIn.pulseira,
            )
            .join(Person, CheckIn.pessoa_id == Person.id)
            .join(Company, Person.empresa_id == Company.id)
            .order_by(CheckIn.checkin_at.desc(), CheckIn.id.desc())
            .limit(RECENT_CHECKINS)
            .all()
        )

        return {
            "estatisticas": estatisticas,
            "checkins_por_hora": [
                {"hora": hour, "total": total} for hour, total in sorted(per_hour.items())
            ],
            "checkins_por_empresa": por_empresa,
            "checkins_recentes": [
                {
                    "checkin_at": checkin_at,
                    "pessoa_nome": pessoa_nome,
                    "documento": documento,
                    "empresa_nome": empresa_nome,
                    "pulseira": pulseira,
                }
                for checkin_at, pessoa_nome, documento, empresa_nome, pulseira in recentes
            ],
        }

    def _company_totals(self) -> list[dict]:
        rows = (
            self.db.query(
                Company.id,
                Company.nome,
                func.count(distinct(Person.id)),
                func.count(distinct(CheckIn.id)),
                func.count(distinct(Person.setor)),
                func.min(CheckIn.checkin_at),
                func.max(CheckIn.checkin_at),
            )
            .outerjoin(Person, Person.empresa_id == Company.id)
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
            .group_by(Company.id, Company.nome)
            .order_by(Company.nome)
            .all()
        )
        return [
            {
                "id": company_id,
                "empresa": nome,
                "total_pessoas": pessoas,
                "total_checkins": checkins,
                "total_setores": setores,
                "percentual_checkin": percentual(checkins, pessoas),
                "primeiro_checkin": primeiro,
                "ultimo_checkin": ultimo,
            }
            for company_id, nome, pessoas, checkins, setores, primeiro, ultimo in rows
        ]

    def by_company(self) -> list[dict]:
        """Per-company totals, most check-ins first, then by name."""
        return sorted(
            self._company_totals(),
            key=lambda r: (-r["total_checkins"], r["empresa"]),
        )

    def _sector_totals(self, company_id: int | None = None) -> list[dict]:
        query = (
            self.db.query(
                Person.setor,
                func.count(distinct(Person.id)),
                func.count(distinct(CheckIn.id)),
                func.count(distinct(Company.id)),
            )
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
            .outerjoin(Company, Person.empresa_id == Company.id)
        )
        if company_id is not None:
            query = query.filter(Person.empresa_id == company_id)
        rows = query.group_by(Person.setor).all()

        totals = [
            {
                "setor": setor if setor is not None else UNINFORMED_SECTOR,
                "total_pessoas": pessoas,
                "total_checkins": checkins,
                "total_empresas": empresas,
                "percentual_checkin": percentual(checkins, pessoas),
            }
            for setor, pessoas, checkins, empresas in rows
        ]
        return sorted(totals, key=lambda r: (-r["total_checkins"], r["setor"]))

    def by_sector(self) -> list[dict]:
        """Per-sector totals; people without a sector are grouped as "Não informado"."""
        return self._sector_totals()

    def company_detail(self, company_id: int) -> dict:
        """A company with its people and per-sector progress."""
        company = self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Empresa não encontrada")

        rows = (
            self.db.query(Person, CheckIn)
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
            .filter(Person.empresa_id == company_id)
            .order_by(Person.nome, Person.id)
            .all()
        )
        pessoas = [
            {
                **person.to_dict(),
                "checkin_realizado": checkin is not None,
                "pulseira": checkin.pulseira if checkin else None,
                "checkin_at": checkin.checkin_at if checkin else None,
            }
            for person, checkin in rows
        ]
        setores = [
            {
                "setor": row["setor"],
                "total_pessoas": row["total_pessoas"],
                "total_checkins": row["total_checkins"],
            }
            for row in self._sector_totals(company_id)
        ]
        return {"empresa": company.to_dict(), "pessoas": pessoas, "setores": setores}

    def by_period(
        self, inicio: datetime | None = None, fim: datetime | None = None
    ) -> list[dict]:
        """Check-ins per day within optional inclusive bounds, newest day first."""
        query = self.db.query(CheckIn.checkin_at, Person.empresa_id, Person.setor).join(
            Person, CheckIn.pessoa_id == Person.id
        )
        if inicio is not None:
            query = query.filter(CheckIn.checkin_at >= inicio)
        if fim is not None:
            query = query.filter(CheckIn.checkin_at <= fim)

        days: dict = defaultdict(lambda: {"total": 0, "empresas": set(), "setores": set()})
        for checkin_at, empresa_id, setor in query:
            day = days[checkin_at.date()]
            day["total"] += 1
            day["empresas"].add(empresa_id)
            if setor is not None:
                day["setores"].add(setor)

        return [
            {
                "data": data,
                "total_checkins": day["total"],
                "empresas_ativas": len(day["empresas"]),
                "setores_ativos": len(day["setores"]),
            }
            for data, day in sorted(days.items(), reverse=True)
        ]

    def export_rows(self) -> list[dict]:
        """One flat row per person, ready for CSV export."""
        rows = (
            self.db.query(Person, Company.nome, CheckIn)
            .join(Company, Person.empresa_id == Company.id)
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
            .order_by(Company.nome, Person.nome)
            .all()
        )
        return [
            {
                "Nome": person.nome,
                "Documento": person.documento,
                "Setor": person.setor,
                "Empresa": empresa,
                "Check-in Realizado": "Sim" if checkin else "Não",
                "Pulseira": checkin.pulseira if checkin else None,
                "Data/Hora Check-in": (
                    checkin.checkin_at.strftime(EXPORT_TIMESTAMP_FORMAT) if checkin else None
                ),
            }
            for person, empresa, checkin in rows
        ]
