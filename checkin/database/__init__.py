"""Persistence layer: models, session management and repositories."""

from .database import check_connection, get_db, get_session, init_db
from .models import Base, CheckIn, Company, Person
from .reports import ReportRepository
from .repository import CheckInRepository, CompanyRepository, PersonRepository

__all__ = [
    "Base",
    "CheckIn",
    "CheckInRepository",
    "Company",
    "CompanyRepository",
    "Person",
    "PersonRepository",
    "ReportRepository",
    "check_connection",
    "get_db",
    "get_session",
    "init_db",
]
