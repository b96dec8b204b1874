"""Spreadsheet import of people and companies."""

from .excel import (
    ImportSummary,
    SheetValidation,
    SpreadsheetImporter,
    build_template,
    read_sheet,
)

__all__ = [
    "ImportSummary",
    "SheetValidation",
    "SpreadsheetImporter",
    "build_template",
    "read_sheet",
]
