"""Command-line interface for database set-up, spreadsheet import, OCR and export.

Provides subcommands that run the same operations as the REST API directly
against the configured database, which is handy for bulk loads before an
event and for exporting the attendance list afterwards.
"""

import argparse
import csv
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from checkin.database import database
from checkin.database.reports import ReportRepository
from checkin.errors import CheckinError
from checkin.extraction.rule_extractor import extract_document_data
from checkin.importer.excel import SpreadsheetImporter, build_template
from checkin.ocr.tesseract_engine import TesseractEngine
from checkin.utils.config import CONFIG_ENV_VAR, AppConfig, load_config
from checkin.utils.logger import get_logger, setup_logging
from checkin.validation.rules_engine import RowRulesEngine

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "Nome",
    "Documento",
    "Setor",
    "Empresa",
    "Check-in Realizado",
    "Pulseira",
    "Data/Hora Check-in",
]


def _importer(config: AppConfig) -> SpreadsheetImporter:
    rules = RowRulesEngine(Path(config.validation.rules_path))
    return SpreadsheetImporter(database.get_session(), rules=rules, config=config.upload)


def validate_sheet(file_path: Path, config: AppConfig) -> dict:
    """Validate a spreadsheet against the row rules and the database.

    Args:
        file_path: Path to the ``.xlsx`` file.
        config: Application configuration.

    Returns:
        The validation outcome as returned by the API.
    """
    importer = _importer(config)
    try:
        return importer.validate(file_path.read_bytes()).to_dict()
    finally:
        importer.db.close()


def import_sheet(file_path: Path, config: AppConfig) -> dict:
    """Import people from a spreadsheet.

    Args:
        file_path: Path to the ``.xlsx`` file.
        config: Application configuration.

    Returns:
        Import summary with created counts and per-row errors.
    """
    importer = _importer(config)
    try:
        return importer.import_rows(file_path.read_bytes()).to_dict()
    finally:
        importer.db.close()


def ocr_file(file_path: Path, config: AppConfig) -> dict:
    """Run OCR on an image and extract identity document fields."""
    engine = TesseractEngine(config.ocr)
    result = engine.extract_text(file_path)
    data = extract_document_data(result.text)
    return {"texto_completo": result.text, "dados_extraidos": data.to_dict()}


def export_csv(output_path: Path) -> int:
    """Write the attendance list to a CSV file.

    Args:
        output_path: Destination CSV path.

    Returns:
        Number of rows written.
    """
    db = database.get_session()
    try:
        rows = ReportRepository(db).export_rows()
    finally:
        db.close()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    return len(rows)


def _emit(result: dict, output: Path | None) -> None:
    output_str = json.dumps(result, indent=2, ensure_ascii=False, default=str)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def _require_file(path: Path) -> None:
    if not path.exists():
        print(f"Error: {path} does not exist", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Event check-in administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the API server")
    subparsers.add_parser("init-db", help="Create database tables")

    validate_parser = subparsers.add_parser(
        "validate-sheet", help="Validate an import spreadsheet"
    )
    validate_parser.add_argument("file", type=Path, help="Spreadsheet (.xlsx)")

    import_parser = subparsers.add_parser("import", help="Import people from a spreadsheet")
    import_parser.add_argument("file", type=Path, help="Spreadsheet (.xlsx)")

    template_parser = subparsers.add_parser("template", help="Write the import template")
    template_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("template-importacao.xlsx"),
        help="Output file (default: template-importacao.xlsx)",
    )

    ocr_parser = subparsers.add_parser("ocr", help="Extract fields from a document image")
    ocr_parser.add_argument("file", type=Path, help="Document image")
    ocr_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    export_parser = subparsers.add_parser("export", help="Export attendance to CSV")
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("checkins.csv"),
        help="Output CSV file (default: checkins.csv)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    load_dotenv()
    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "serve":
        from checkin.main import main as serve

        # The server process reloads its config; point it at the same file.
        if args.config:
            os.environ[CONFIG_ENV_VAR] = str(args.config.resolve())
        serve()
        return

    if args.command == "template":
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(build_template())
        print(f"Template written to {args.output}")
        return

    try:
        if args.command == "ocr":
            _require_file(args.file)
            _emit(ocr_file(args.file, config), args.output)
            return

        database.configure(config.database)
        database.init_db()

        if args.command == "init-db":
            print("Database tables initialized")
        elif args.command == "validate-sheet":
            _require_file(args.file)
            _emit(validate_sheet(args.file, config), None)
        elif args.command == "import":
            _require_file(args.file)
            _emit(import_sheet(args.file, config), None)
        elif args.command == "export":
            count = export_csv(args.output)
            print(f"{count} rows written to {args.output}")
    except CheckinError as exc:
        logger.error("%s failed: %s", args.command, exc.message)
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
