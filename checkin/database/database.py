"""Database engine and session management.

The engine is built lazily from the application configuration. SQLite
databases use a static pool so the same connection can be shared across
the API's worker threads.
"""

from collections.abc import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from checkin.utils.config import DatabaseConfig, load_config
from checkin.utils.logger import get_logger

from .models import Base

logger = get_logger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def build_engine(config: DatabaseConfig) -> Engine:
    """Create an engine for the configured database URL."""
    if config.url.startswith("sqlite"):
        return create_engine(
            config.url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=config.echo,
        )
    return create_engine(config.url, echo=config.echo, pool_pre_ping=True)


def configure(config: DatabaseConfig | None = None) -> Engine:
    """(Re)build the module engine and session factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    config = config or load_config().database
    _engine = build_engine(config)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_engine() -> Engine:
    """Return the module engine, configuring it on first use."""
    if _engine is None:
        configure()
    return _engine


def get_session() -> Session:
    """Open a new session; the caller is responsible for closing it."""
    if _session_factory is None:
        configure()
    return _session_factory()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session closed after the request."""
    db = get_session()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine | None = None) -> None:
    """Create all tables and indexes that do not exist yet."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def check_connection(engine: Engine | None = None) -> bool:
    """Run a trivial query to confirm the database is reachable."""
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.error("Database connection failed: %s", exc)
        return False


def dispose() -> None:
    """Close all pooled connections."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        logger.info("Database connection pool closed")
    _engine = None
    _session_factory = None
