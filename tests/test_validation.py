"""Tests for the spreadsheet row rules engine."""

from pathlib import Path

import yaml

from checkin.validation.rules_engine import RowRulesEngine, ValidationReport


def _write_rules(tmp_path: Path, rules: dict) -> Path:
    rules_file = tmp_path / "rules.yaml"
    with open(rules_file, "w") as f:
        yaml.dump(rules, f, allow_unicode=True)
    return rules_file


class TestRowRulesEngine:
    """Tests for RowRulesEngine with the bundled rules file."""

    def setup_method(self) -> None:
        self.engine = RowRulesEngine(Path("configs/validation_rules.yaml"))

    def test_required_fields(self) -> None:
        assert self.engine.required_fields() == ["nome", "documento", "empresa"]

    def test_required_fields_unknown_record_type(self) -> None:
        assert self.engine.required_fields("unknown") == []

    def test_valid_rows(self) -> None:
        rows = [
            {"nome": "Ana", "documento": "1", "empresa": "Acme"},
            {"nome": "Bia", "documento": "2", "empresa": "Acme"},
        ]
        report = self.engine.validate(rows)
        assert isinstance(report, ValidationReport)
        assert report.all_valid is True
        assert report.errors == []

    def test_errors_use_spreadsheet_row_numbers(self) -> None:
        rows = [
            {"nome": "Ana", "documento": "1", "empresa": "Acme"},
            {"nome": "", "documento": "1", "empresa": "  "},
        ]
        report = self.engine.validate(rows)
        assert report.all_valid is False
        assert report.errors == [
            "Linha 3: Nome é obrigatório",
            "Linha 3: Documento 1 duplicado na planilha",
            "Linha 3: Empresa é obrigatória",
        ]

    def test_missing_column_counts_as_blank(self) -> None:
        report = self.engine.validate([{"nome": "Ana", "empresa": "Acme"}])
        assert report.errors == ["Linha 2: Documento é obrigatório"]

    def test_first_row_number(self) -> None:
        report = self.engine.validate(
            [{"nome": "", "documento": "1", "empresa": "A"}], first_row_number=10
        )
        assert report.errors == ["Linha 10: Nome é obrigatório"]

    def test_validate_row_skips_uniqueness(self) -> None:
        row = {"nome": "", "documento": "1", "empresa": "Acme"}
        assert self.engine.validate_row(row, 5) == ["Linha 5: Nome é obrigatório"]
        assert self.engine.validate_row(row, 6) == ["Linha 6: Nome é obrigatório"]

    def test_numeric_values_accepted(self) -> None:
        row = {"nome": "Ana", "documento": 123, "empresa": "A"}
        assert self.engine.validate_row(row, 2) == []


class TestCustomRules:
    """Tests for rule types configured from YAML."""

    def test_document_rule(self, tmp_path: Path) -> None:
        rules_file = _write_rules(
            tmp_path, {"pessoas": {"documento": [{"type": "document"}]}}
        )
        engine = RowRulesEngine(rules_file)
        report = engine.validate(
            [{"documento": "111.444.777-35"}, {"documento": "abc"}, {"documento": ""}]
        )
        assert report.errors == ["Linha 3: Documento inválido: abc"]

    def test_max_length_rule(self, tmp_path: Path) -> None:
        rules_file = _write_rules(
            tmp_path, {"pessoas": {"setor": [{"type": "max_length", "max": 3}]}}
        )
        engine = RowRulesEngine(rules_file)
        assert engine.validate_row({"setor": "abc"}, 2) == []
        assert engine.validate_row({"setor": "abcd"}, 2) == [
            "Linha 2: setor excede 3 caracteres"
        ]

    def test_custom_unique_message(self, tmp_path: Path) -> None:
        rules_file = _write_rules(
            tmp_path,
            {"pessoas": {"documento": [{"type": "unique", "message": "{value} repetido"}]}},
        )
        engine = RowRulesEngine(rules_file)
        report = engine.validate([{"documento": "9"}, {"documento": "9"}])
        assert report.errors == ["Linha 3: 9 repetido"]

    def test_unknown_rule_type_warns(self, tmp_path: Path) -> None:
        rules_file = _write_rules(
            tmp_path, {"pessoas": {"nome": [{"type": "regex"}]}}
        )
        report = RowRulesEngine(rules_file).validate([{"nome": "a"}, {"nome": "b"}])
        assert report.all_valid is True
        assert report.warnings == ["Unknown rule type: regex"]

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        engine = RowRulesEngine(tmp_path / "missing.yaml")
        assert engine.required_fields() == ["nome", "documento", "empresa"]

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        rules_file = tmp_path / "empty.yaml"
        rules_file.write_text("")
        assert RowRulesEngine(rules_file).required_fields() == [
            "nome",
            "documento",
            "empresa",
        ]
