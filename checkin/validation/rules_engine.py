"""Configurable validation rules for spreadsheet import rows.

Checks required columns, uniqueness within a sheet, document plausibility
and maximum lengths. Rules are loaded from a YAML file keyed by record type,
with defaults matching the person import sheet.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from checkin.utils.logger import get_logger

from .documents import validate_any

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a single rule applied to one cell."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    row_number: int | None = None


@dataclass
class ValidationReport:
    """Aggregated validation report for a batch of rows."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Failed checks rendered as ``Linha N: message``."""
        return [
            f"Linha {r.row_number}: {r.message}" if r.row_number else r.message
            for r in self.results
            if not r.is_valid
        ]


class RowRulesEngine:
    """Configurable rules engine for tabular import data.

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[str, Any] = {
            "required": self._validate_required,
            "unique": self._validate_unique,
            "document": self._validate_document,
            "max_length": self._validate_max_length,
        }

    def _load_rules(self, path: Path) -> dict:
        """Load validation rules from YAML file.

        Args:
            path: Path to the rules file.

        Returns:
            Dictionary of record-type-specific rules.
        """
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f)
                if data:
                    logger.info("Loaded validation rules from %s", path)
                    return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        """Rules for the person import sheet.

        Returns:
            Default rules dictionary.
        """
        return {
            "pessoas": {
                "nome": [{"type": "required", "message": "Nome é obrigatório"}],
                "documento": [
                    {"type": "required", "message": "Documento é obrigatório"},
                    {"type": "unique"},
                ],
                "empresa": [{"type": "required", "message": "Empresa é obrigatória"}],
            },
        }

    def required_fields(self, record_type: str = "pessoas") -> list[str]:
        """Columns that carry a ``required`` rule for ``record_type``."""
        return [
            name
            for name, rules in self.rules.get(record_type, {}).items()
            if any(rule.get("type") == "required" for rule in rules)
        ]

    def validate(
        self,
        rows: list[dict[str, Any]],
        record_type: str = "pessoas",
        first_row_number: int = 2,
    ) -> ValidationReport:
        """Validate every row of a sheet.

        Args:
            rows: Row dictionaries keyed by column name.
            record_type: Key into the rules file.
            first_row_number: Spreadsheet row number of ``rows[0]``
                (row 1 holds the header).

        Returns:
            Report with one result per rule and row.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        seen: dict[str, set[str]] = {}

        for index, row in enumerate(rows):
            row_number = first_row_number + index
            row_results, row_warnings = self._validate_row(
                row, record_type, row_number, seen
            )
            results.extend(row_results)
            warnings.extend(w for w in row_warnings if w not in warnings)

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Validation for %s: %s (%d rows, %d checks)",
            record_type,
            "PASSED" if all_valid else "FAILED",
            len(rows),
            len(results),
        )
        return ValidationReport(all_valid=all_valid, results=results, warnings=warnings)

    def validate_row(
        self, row: dict[str, Any], row_number: int, record_type: str = "pessoas"
    ) -> list[str]:
        """Validate a single row in isolation and return its error messages.

        Uniqueness cannot be judged from one row and always passes here.
        """
        results, _ = self._validate_row(row, record_type, row_number, None)
        return [f"Linha {row_number}: {r.message}" for r in results if not r.is_valid]

    def _validate_row(
        self,
        row: dict[str, Any],
        record_type: str,
        row_number: int,
        seen: dict[str, set[str]] | None,
    ) -> tuple[list[ValidationResult], list[str]]:
        results: list[ValidationResult] = []
        warnings: list[str] = []

        for field_name, rules in self.rules.get(record_type, {}).items():
            value = row.get(field_name)
            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)

                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue

                if rule_type == "unique":
                    if seen is None:
                        continue
                    result = validator(field_name, value, rule, seen)
                else:
                    result = validator(field_name, value, rule)
                result.row_number = row_number
                results.append(result)

        return results, warnings

    @staticmethod
    def _text(value: Any) -> str:
        return "" if value is None else str(value).strip()

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a required cell is present and non-blank."""
        if self._text(value):
            return ValidationResult(field_name, True, "Required field present", "required")
        return ValidationResult(
            field_name,
            False,
            rule.get("message", f"Campo obrigatório ausente: {field_name}"),
            "required",
        )

    def _validate_unique(
        self, field_name: str, value: Any, rule: dict, seen: dict[str, set[str]]
    ) -> ValidationResult:
        """Check that a value does not repeat an earlier row of the sheet."""
        text = self._text(value)
        if not text:
            return ValidationResult(field_name, True, "No value to validate", "unique")

        values = seen.setdefault(field_name, set())
        if text in values:
            message = rule.get("message", "{label} {value} duplicado na planilha")
            return ValidationResult(
                field_name,
                False,
                message.format(label=field_name.capitalize(), value=text),
                "unique",
            )
        values.add(text)
        return ValidationResult(field_name, True, "Unique value", "unique")

    def _validate_document(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is a valid CPF, CNH or RG."""
        text = self._text(value)
        if not text:
            return ValidationResult(field_name, True, "No value to validate", "document")

        if validate_any(text) is not None:
            return ValidationResult(field_name, True, "Valid document", "document")
        return ValidationResult(
            field_name,
            False,
            rule.get("message", f"Documento inválido: {text}"),
            "document",
        )

    def _validate_max_length(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value fits its database column."""
        limit = int(rule.get("max", 255))
        text = self._text(value)
        if len(text) <= limit:
            return ValidationResult(field_name, True, "Length within limit", "max_length")
        return ValidationResult(
            field_name,
            False,
            rule.get("message", f"{field_name} excede {limit} caracteres"),
            "max_length",
        )
