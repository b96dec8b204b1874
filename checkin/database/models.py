"""SQLAlchemy models for companies, people and wristband check-ins."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Company(Base):
    """A company whose staff attend the event."""

    __tablename__ = "empresas"

    id = Column(Integer, primary_key=True)
    nome = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)

    pessoas = relationship("Person", back_populates="empresa")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nome": self.nome,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Person(Base):
    """An attendee, identified by a unique document number."""

    __tablename__ = "pessoas"

    id = Column(Integer, primary_key=True)
    nome = Column(String(255), nullable=False)
    documento = Column(String(50), nullable=False, unique=True, index=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id"), index=True)
    setor = Column(String(255))
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)

    empresa = relationship("Company", back_populates="pessoas")
    checkins = relationship("CheckIn", back_populates="pessoa")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nome": self.nome,
            "documento": self.documento,
            "empresa_id": self.empresa_id,
            "setor": self.setor,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class CheckIn(Base):
    """A person's arrival, bound to the wristband handed out."""

    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True)
    pessoa_id = Column(Integer, ForeignKey("pessoas.id"), index=True)
    pulseira = Column(String(50), nullable=False, unique=True, index=True)
    checkin_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    pessoa = relationship("Person", back_populates="checkins")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pessoa_id": self.pessoa_id,
            "pulseira": self.pulseira,
            "checkin_at": self.checkin_at,
        }
