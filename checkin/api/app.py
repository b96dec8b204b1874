"""FastAPI application for the event check-in backend.

Mounts the company, person, check-in, report and upload routers, maps
domain errors to JSON ``{"error": ...}`` responses and prepares the
database on start-up.
"""

import shutil
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from checkin.database import database
from checkin.errors import CheckinError
from checkin.utils.logger import get_logger, setup_logging

from .deps import get_config
from .routers import checkins, companies, people, reports, upload
from .schemas import HealthResponse

logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the database and create missing tables before serving."""
    config = get_config()
    setup_logging(config.log_level)
    database.configure(config.database)
    if not database.check_connection():
        raise RuntimeError("Não foi possível conectar ao banco de dados")
    database.init_db()
    logger.info("Check-in API ready")
    yield
    database.dispose()


app = FastAPI(
    title="Event Check-in API",
    description="Companies, attendees and wristband check-ins with reports, "
    "Excel import and OCR document capture",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().server.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(companies.router, prefix="/api/empresas", tags=["empresas"])
app.include_router(people.router, prefix="/api/pessoas", tags=["pessoas"])
app.include_router(checkins.router, prefix="/api/checkins", tags=["checkins"])
app.include_router(reports.router, prefix="/api/relatorios", tags=["relatorios"])
app.include_router(upload.router, prefix="/api/upload", tags=["upload"])


@app.exception_handler(CheckinError)
async def checkin_error_handler(request: Request, exc: CheckinError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Dados inválidos", "details": jsonable_encoder(exc.errors())},
    )


@app.get("/health", response_model=HealthResponse)
def health_check(db: Annotated[Session, Depends(database.get_db)]) -> HealthResponse:
    """Return system health status."""
    try:
        db.execute(text("SELECT 1"))
        connected = True
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unavailable: %s", exc)
        connected = False
    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=VERSION,
        tesseract_available=shutil.which("tesseract") is not None,
        database_connected=connected,
    )
