"""Excel bulk import of people and their companies.

Reads the first worksheet of an uploaded spreadsheet, validates it before
import and upserts rows one by one, collecting per-row errors instead of
aborting the whole file.
"""

import io
from dataclasses import asdict, dataclass, field

import pandas as pd
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from checkin.database.models import Person
from checkin.database.repository import CompanyRepository, PersonRepository
from checkin.errors import SpreadsheetError
from checkin.utils.config import UploadConfig
from checkin.utils.logger import get_logger
from checkin.validation.rules_engine import RowRulesEngine

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEMPLATE_FILENAME = "template-importacao.xlsx"
TEMPLATE_SHEET = "Pessoas"
TEMPLATE_ROWS: list[dict[str, str]] = [
    {
        "nome": "Joao Silva Santos",
        "documento": "12345678901",
        "empresa": "Empresa Exemplo Ltda",
        "setor": "Tecnologia",
    },
    {
        "nome": "Maria Oliveira Costa",
        "documento": "98765432100",
        "empresa": "Outra Empresa S.A.",
        "setor": "Marketing",
    },
]

# Data starts on spreadsheet row 2; row 1 is the header.
FIRST_DATA_ROW = 2


@dataclass
class SheetValidation:
    """Outcome of a pre-import check of a spreadsheet."""

    valid: bool
    error: str | None = None
    errors: list[str] = field(default_factory=list)
    total_errors: int = 0
    required: list[str] = field(default_factory=list)
    found: list[str] = field(default_factory=list)
    total_registros: int = 0
    empresas_encontradas: list[str] = field(default_factory=list)
    preview: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        if self.valid:
            return {
                "message": "Arquivo válido",
                "total_registros": self.total_registros,
                "empresas_encontradas": self.empresas_encontradas,
                "preview": self.preview,
            }
        data: dict = {"error": self.error}
        if self.required:
            data["required"] = self.required
            data["found"] = self.found
        if self.errors:
            data["errors"] = self.errors
            data["total_errors"] = self.total_errors
        return data


@dataclass
class ImportSummary:
    """Counters and per-row errors of a completed import."""

    empresas_criadas: int = 0
    pessoas_criadas: int = 0
    total_processados: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"message": "Importação concluída", **asdict(self)}


def read_sheet(content: bytes) -> tuple[list[str], list[dict[str, str]]]:
    """Read the first worksheet into column names and string-valued rows.

    Empty cells become ``""`` and fully blank rows are dropped.

    Raises:
        SpreadsheetError: If the bytes are not a readable Excel workbook.
    """
    try:
        frame = pd.read_excel(
            io.BytesIO(content), sheet_name=0, dtype=str, keep_default_na=False
        )
    except Exception as exc:
        logger.error("Failed to read spreadsheet: %s", exc)
        raise SpreadsheetError("Erro ao processar arquivo Excel") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    rows = [
        row
        for row in frame.to_dict(orient="records")
        if any(str(value).strip() for value in row.values())
    ]
    return list(frame.columns), rows


def build_template() -> bytes:
    """Build the sample import workbook."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(TEMPLATE_ROWS).to_excel(
            writer, sheet_name=TEMPLATE_SHEET, index=False
        )
    return buffer.getvalue()


class SpreadsheetImporter:
    """Validates and imports person spreadsheets.

    Args:
        db: Open database session.
        rules: Row rules engine; defaults to the configured rules file.
        config: Upload limits for error reporting and previews.
    """

    def __init__(
        self,
        db: Session,
        rules: RowRulesEngine | None = None,
        config: UploadConfig | None = None,
    ) -> None:
        self.db = db
        self.rules = rules or RowRulesEngine()
        self.config = config or UploadConfig()
        self.companies = CompanyRepository(db)
        self.people = PersonRepository(db)

    def validate(self, content: bytes) -> SheetValidation:
        """Check structure, row rules and already-registered documents."""
        columns, rows = read_sheet(content)

        if not rows:
            return SheetValidation(valid=False, error="Planilha está vazia")

        required = self.rules.required_fields()
        missing = [name for name in required if name not in columns]
        if missing:
            return SheetValidation(
                valid=False,
                error=f"Campos obrigatórios ausentes: {', '.join(missing)}",
                required=required,
                found=columns,
            )

        report = self.rules.validate(rows, first_row_number=FIRST_DATA_ROW)
        errors = report.errors

        documents = list(
            dict.fromkeys(
                str(row.get("documento", "")).strip()
                for row in rows
                if str(row.get("documento", "")).strip()
            )
        )
        for documento in self.people.existing_documents(documents):
            errors.append(f"Documento {documento} já existe no sistema")

        if errors:
            logger.info("Spreadsheet rejected with %d errors", len(errors))
            return SheetValidation(
                valid=False,
                error="Erros encontrados na validação",
                errors=errors[: self.config.max_reported_errors],
                total_errors=len(errors),
            )

        empresas = list(dict.fromkeys(str(row["empresa"]).strip() for row in rows))
        return SheetValidation(
            valid=True,
            total_registros=len(rows),
            empresas_encontradas=empresas,
            preview=rows[: self.config.preview_rows],
        )

    def import_rows(self, content: bytes) -> ImportSummary:
        """Import every row, committing each one on its own.

        A failing row is rolled back and reported as ``Linha N: ...``;
        the remaining rows are still imported.
        """
        _, rows = read_sheet(content)
        summary = ImportSummary(total_processados=len(rows))

        for index, row in enumerate(rows):
            row_number = FIRST_DATA_ROW + index
            row_errors = self.rules.validate_row(row, row_number)
            if row_errors:
                summary.errors.extend(row_errors)
                continue

            documento = str(row["documento"]).strip()
            try:
                company, created = self.companies.get_or_create(
                    str(row["empresa"]).strip()
                )
                setor = str(row.get("setor") or "").strip() or None
                self.db.add(
                    Person(
                        nome=str(row["nome"]).strip(),
                        documento=documento,
                        setor=setor,
                        empresa_id=company.id,
                    )
                )
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning("Row %d: duplicate document %s", row_number, documento)
                summary.errors.append(
                    f"Linha {row_number}: Documento {documento} já existe"
                )
                continue
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.error("Row %d failed: %s", row_number, exc)
                summary.errors.append(f"Linha {row_number}: {exc}")
                continue

            if created:
                summary.empresas_criadas += 1
            summary.pessoas_criadas += 1

        logger.info(
            "Import finished: %d people, %d companies created, %d errors",
            summary.pessoas_criadas,
            summary.empresas_criadas,
            len(summary.errors),
        )
        return summary
