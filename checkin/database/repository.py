"""Repositories for company, person and check-in records.

Each repository wraps a SQLAlchemy session and returns plain dictionaries
shaped like the API responses. Expected failures are raised as
``checkin.errors`` exceptions.
"""

from datetime import datetime

from sqlalchemy import distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkin.errors import ConflictError, NotFoundError, ValidationError
from checkin.utils.logger import get_logger

from .models import CheckIn, Company, Person

logger = get_logger(__name__)


def percentual(part: int, whole: int) -> float:
    """Percentage of ``part`` in ``whole`` rounded to two decimals."""
    return round(part / whole * 100, 2) if whole > 0 else 0.0


class CompanyRepository:
    """Repository for companies."""

    def __init__(self, db: Session):
        self.db = db

    def _with_totals(self):
        return (
            self.db.query(
                Company,
                func.count(distinct(Person.id)).label("total_pessoas"),
                func.count(distinct(CheckIn.id)).label("total_checkins"),
            )
            .outerjoin(Person, Person.empresa_id == Company.id)
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
            .group_by(Company.id)
        )

    @staticmethod
    def _row(company: Company, total_pessoas: int, total_checkins: int) -> dict:
        return {
            **company.to_dict(),
            "total_pessoas": total_pessoas,
            "total_checkins": total_checkins,
        }

    def list_all(self) -> list[dict]:
        """All companies ordered by name, with people and check-in totals."""
        rows = self._with_totals().order_by(Company.nome).all()
        return [self._row(*row) for row in rows]

    def get(self, company_id: int) -> dict:
        row = self._with_totals().filter(Company.id == company_id).first()
        if row is None:
            raise NotFoundError("Empresa não encontrada")
        return self._row(*row)

    def create(self, nome: str) -> dict:
        company = Company(nome=nome)
        self.db.add(company)
        self._commit("Empresa com este nome já existe")
        self.db.refresh(company)
        logger.info("Company created: %s (id=%d)", company.nome, company.id)
        return company.to_dict()

    def update(self, company_id: int, nome: str) -> dict:
        company = self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Empresa não encontrada")
        company.nome = nome
        company.updated_at = datetime.now()
        self._commit("Empresa com este nome já existe")
        self.db.refresh(company)
        return company.to_dict()

    def delete(self, company_id: int) -> None:
        """Delete a company that has no registered people."""
        people = (
            self.db.query(func.count(Person.id))
            .filter(Person.empresa_id == company_id)
            .scalar()
        )
        if people:
            raise ConflictError(
                "Não é possível deletar empresa com pessoas cadastradas"
            )
        company = self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Empresa não encontrada")
        self.db.delete(company)
        self.db.commit()
        logger.info("Company deleted: id=%d", company_id)

    def get_or_create(self, nome: str) -> tuple[Company, bool]:
        """Find a company by exact name, adding it to the session if absent.

        The new company is flushed but not committed.
        """
        company = self.db.query(Company).filter(Company.nome == nome).first()
        if company is not None:
            return company, False
        company = Company(nome=nome)
        self.db.add(company)
        self.db.flush()
        return company, True

    def _commit(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Company write rejected: %s", exc.orig)
            raise ConflictError(conflict_message) from exc


class PersonRepository:
    """Repository for people (event attendees)."""

    def __init__(self, db: Session):
        self.db = db

    def _with_checkin(self):
        return (
            self.db.query(Person, Company.nome.label("empresa_nome"), CheckIn)
            .join(Company, Person.empresa_id == Company.id)
            .outerjoin(CheckIn, CheckIn.pessoa_id == Person.id)
        )

    @staticmethod
    def _row(person: Person, empresa_nome: str, checkin: CheckIn | None) -> dict:
        return {
            **person.to_dict(),
            "empresa_nome": empresa_nome,
            "checkin_realizado": checkin is not None,
            "pulseira": checkin.pulseira if checkin else None,
            "checkin_at": checkin.checkin_at if checkin else None,
        }

    def list_all(self) -> list[dict]:
        rows = self._with_checkin().order_by(Person.nome, Person.id).all()
        return [self._row(*row) for row in rows]

    def get(self, person_id: int) -> dict:
        row = self._with_checkin().filter(Person.id == person_id).first()
        if row is None:
            raise NotFoundError("Pessoa não encontrada")
        return self._row(*row)

    def get_by_document(self, documento: str) -> dict:
        """Look a person up by document, with their company's progress.

        Besides the person's data the result holds ``total_empresa`` (people
        registered for the company), ``checkins_empresa`` (of those, people
        already checked in) and ``posicao_empresa`` (the person's 1-based
        registration order within the company).
        """
        row = self._with_checkin().filter(Person.documento == documento).first()
        if row is None:
            raise NotFoundError("Pessoa não encontrada")
        person = row[0]
        result = self._row(*row)

        same_company = Person.empresa_id == person.empresa_id
        result["total_empresa"] = (
            self.db.query(func.count(Person.id)).filter(same_company).scalar()
        )
        result["checkins_empresa"] = (
            self.db.query(func.count(Person.id))
            .join(CheckIn, CheckIn.pessoa_id == Person.id)
            .filter(same_company)
            .scalar()
        )
        result["posicao_empresa"] = (
            self.db.query(func.count(Person.id))
            .filter(same_company, Person.id < person.id)
            .scalar()
            + 1
        )
        return result

    def _require_company(self, empresa_id: int) -> None:
        if self.db.get(Company, empresa_id) is None:
            raise ValidationError("Empresa não encontrada")

    def create(
        self, nome: str, documento: str, empresa_id: int, setor: str | None = None
    ) -> dict:
        self._require_company(empresa_id)
        person = Person(nome=nome, documento=documento, setor=setor, empresa_id=empresa_id)
        self.db.add(person)
        self._commit()
        self.db.refresh(person)
        logger.info("Person created: id=%d company=%d", person.id, empresa_id)
        return person.to_dict()

    def update(
        self,
        person_id: int,
        nome: str,
        documento: str,
        empresa_id: int,
        setor: str | None = None,
    ) -> dict:
        self._require_company(empresa_id)
        person = self.db.get(Person, person_id)
        if person is None:
            raise NotFoundError("Pessoa não encontrada")
        person.nome = nome
        person.documento = documento
        person.setor = setor
        person.empresa_id = empresa_id
        person.updated_at = datetime.now()
        self._commit()
        self.db.refresh(person)
        return person.to_dict()

    def delete(self, person_id: int) -> None:
        """Delete a person who has not checked in."""
        checkins = (
            self.db.query(func.count(CheckIn.id))
            .filter(CheckIn.pessoa_id == person_id)
            .scalar()
        )
        if checkins:
            raise ConflictError("Não é possível deletar pessoa com check-in realizado")
        person = self.db.get(Person, person_id)
        if person is None:
            raise NotFoundError("Pessoa não encontrada")
        self.db.delete(person)
        self.db.commit()
        logger.info("Person deleted: id=%d", person_id)

    def existing_documents(self, documents: list[str]) -> list[str]:
        """Return the given documents that are already registered, in input order."""
        if not documents:
            return []
        found = {
            doc
            for (doc,) in self.db.query(Person.documento)
            .filter(Person.documento.in_(documents))
            .all()
        }
        return [doc for doc in documents if doc in found]

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Person write rejected: %s", exc.orig)
            raise ConflictError("Pessoa com este documento já existe") from exc


class CheckInRepository:
    """Repository for wristband check-ins."""

    def __init__(self, db: Session):
        self.db = db

    def _detailed(self):
        return (
            self.db.query(
                CheckIn,
                Person.nome.label("pessoa_nome"),
                Person.documento,
                Person.setor,
                Company.nome.label("empresa_nome"),
            )
            .join(Person, CheckIn.pessoa_id == Person.id)
            .join(Company, Person.empresa_id == Company.id)
        )

    @staticmethod
    def _row(
        checkin: CheckIn,
        pessoa_nome: str,
        documento: str,
        setor: str | None,
        empresa_nome: str,
    ) -> dict:
        return {
            **checkin.to_dict(),
            "pessoa_nome": pessoa_nome,
            "documento": documento,
            "setor": setor,
            "empresa_nome": empresa_nome,
        }

    def list_all(self) -> list[dict]:
        """All check-ins, newest first."""
        rows = (
            self._detailed()
            .order_by(CheckIn.checkin_at.desc(), CheckIn.id.desc())
            .all()
        )
        return [self._row(*row) for row in rows]

    def get(self, checkin_id: int) -> dict:
        row = self._detailed().filter(CheckIn.id == checkin_id).first()
        if row is None:
            raise NotFoundError("Check-in não encontrado")
        return self._row(*row)

    def list_for_person(self, person_id: int) -> list[dict]:
        rows = (
            self._detailed()
            .filter(CheckIn.pessoa_id == person_id)
            .order_by(CheckIn.checkin_at.desc(), CheckIn.id.desc())
            .all()
        )
        return [self._row(*row) for row in rows]

    def create(self, person_id: int, pulseira: str) -> dict:
        """Check a person in with a wristband.

        A person checks in at most once and a wristband is handed out once.
        """
        person = self.db.get(Person, person_id)
        if person is None or person.empresa is None:
            raise NotFoundError("Pessoa não encontrada")

        already = self.db.query(CheckIn.id).filter(CheckIn.pessoa_id == person_id).first()
        if already is not None:
            raise ConflictError("Pessoa já realizou check-in")

        used = self.db.query(CheckIn.id).filter(CheckIn.pulseira == pulseira).first()
        if used is not None:
            raise ConflictError("Pulseira já foi utilizada")

        checkin = CheckIn(pessoa_id=person_id, pulseira=pulseira)
        self.db.add(checkin)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Pulseira já foi utilizada") from exc

        logger.info("Check-in: person=%d wristband=%s", person_id, pulseira)
        return self.get(checkin.id)

    def delete(self, checkin_id: int) -> None:
        """Cancel a check-in."""
        checkin = self.db.get(CheckIn, checkin_id)
        if checkin is None:
            raise NotFoundError("Check-in não encontrado")
        self.db.delete(checkin)
        self.db.commit()
        logger.info("Check-in cancelled: id=%d", checkin_id)

    def stats(self) -> dict:
        """Overall check-in totals and the share of people checked in."""
        total_checkins, pessoas_checkin, empresas_checkin = (
            self.db.query(
                func.count(distinct(CheckIn.id)),
                func.count(distinct(Person.id)),
                func.count(distinct(Company.id)),
            )
            .select_from(CheckIn)
            .join(Person, CheckIn.pessoa_id == Person.id)
            .join(Company, Person.empresa_id == Company.id)
            .one()
        )
        total_pessoas = self.db.query(func.count(Person.id)).scalar()
        total_empresas = self.db.query(func.count(Company.id)).scalar()
        return {
            "total_checkins": total_checkins,
            "total_pessoas_checkin": pessoas_checkin,
            "total_empresas_checkin": empresas_checkin,
            "total_pessoas_cadastradas": total_pessoas,
            "total_empresas_cadastradas": total_empresas,
            "percentual_checkin": percentual(pessoas_checkin, total_pessoas),
        }
