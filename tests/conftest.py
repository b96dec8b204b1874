"""Shared test fixtures for the check-in test suite."""

import io
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from checkin.api.app import app
from checkin.database.database import build_engine, get_db
from checkin.database.models import Base, CheckIn, Company, Person
from checkin.utils.config import DatabaseConfig


@pytest.fixture
def db_session() -> Iterator[Session]:
    """In-memory SQLite session with all tables created."""
    engine = build_engine(DatabaseConfig(url="sqlite://"))
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    """FastAPI test client bound to the in-memory database."""

    def _override_get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Seeder:
    """Inserts records directly, bypassing the repositories under test."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def company(self, nome: str) -> Company:
        company = Company(nome=nome)
        self.db.add(company)
        self.db.commit()
        return company

    def person(
        self, company: Company, nome: str, documento: str, setor: str | None = None
    ) -> Person:
        person = Person(
            nome=nome, documento=documento, setor=setor, empresa_id=company.id
        )
        self.db.add(person)
        self.db.commit()
        return person

    def checkin(
        self, person: Person, pulseira: str, checkin_at: datetime | None = None
    ) -> CheckIn:
        checkin = CheckIn(pessoa_id=person.id, pulseira=pulseira)
        if checkin_at is not None:
            checkin.checkin_at = checkin_at
        self.db.add(checkin)
        self.db.commit()
        return checkin


@pytest.fixture
def seed(db_session: Session) -> Seeder:
    return Seeder(db_session)


def _build_workbook(rows: list[dict], columns: list[str] | None = None) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows, columns=columns).to_excel(writer, index=False)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    """Factory for in-memory XLSX files with one sheet."""
    return _build_workbook


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
