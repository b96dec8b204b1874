"""Tests for the administration CLI."""

import csv
import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from PIL import Image

from checkin.cli import EXPORT_COLUMNS, main
from checkin.database import database
from checkin.importer.excel import TEMPLATE_ROWS, read_sheet
from checkin.ocr.tesseract_engine import OCRResult


@pytest.fixture
def config_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, project_root: Path
) -> Iterator[Path]:
    """Config pointing at a throwaway SQLite file."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    # `serve` exports the config path; monkeypatch restores the variable.
    monkeypatch.setenv("CHECKIN_CONFIG", "")
    config = {
        "database": {"url": f"sqlite:///{tmp_path / 'checkin.db'}"},
        "server": {"host": "127.0.0.1", "port": 12345},
        "validation": {
            "rules_path": str(project_root / "configs" / "validation_rules.yaml")
        },
    }
    path = tmp_path / "config.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)
    yield path
    database.dispose()


@pytest.fixture
def sheet(tmp_path: Path, make_workbook) -> Path:
    path = tmp_path / "pessoas.xlsx"
    path.write_bytes(
        make_workbook(
            [
                {"nome": "Ana", "documento": "1", "empresa": "Acme", "setor": "TI"},
                {"nome": "Bia", "documento": "2", "empresa": "Beta", "setor": ""},
            ]
        )
    )
    return path


class TestMain:
    """Tests for argument parsing and command dispatch."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_template(self, tmp_path: Path, config_file: Path) -> None:
        output = tmp_path / "out" / "template.xlsx"
        main(["-c", str(config_file), "template", "-o", str(output)])
        _, rows = read_sheet(output.read_bytes())
        assert rows == TEMPLATE_ROWS

    def test_init_db(self, tmp_path: Path, config_file: Path) -> None:
        main(["-c", str(config_file), "init-db"])
        assert (tmp_path / "checkin.db").exists()

    @patch("checkin.main.uvicorn.run")
    def test_serve_uses_given_config(
        self, mock_run: MagicMock, config_file: Path
    ) -> None:
        main(["-c", str(config_file), "serve"])
        mock_run.assert_called_once_with(
            "checkin.api.app:app", host="127.0.0.1", port=12345
        )
        assert os.environ["CHECKIN_CONFIG"] == str(config_file.resolve())

    def test_missing_file(self, tmp_path: Path, config_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "import", str(tmp_path / "missing.xlsx")])
        assert exc_info.value.code == 1


class TestSpreadsheetCommands:
    """Tests for validate-sheet, import and export."""

    def test_validate_sheet(
        self, config_file: Path, sheet: Path, capsys: pytest.CaptureFixture
    ) -> None:
        main(["-c", str(config_file), "validate-sheet", str(sheet)])
        out = capsys.readouterr().out
        assert '"message": "Arquivo válido"' in out
        assert '"total_registros": 2' in out

    def test_import_then_export(
        self,
        tmp_path: Path,
        config_file: Path,
        sheet: Path,
        capsys: pytest.CaptureFixture,
    ) -> None:
        main(["-c", str(config_file), "import", str(sheet)])
        assert '"pessoas_criadas": 2' in capsys.readouterr().out

        output = tmp_path / "checkins.csv"
        main(["-c", str(config_file), "export", "-o", str(output)])
        with open(output, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            rows = list(reader)
        assert reader.fieldnames == EXPORT_COLUMNS
        assert [row["Nome"] for row in rows] == ["Ana", "Bia"]
        assert rows[0]["Check-in Realizado"] == "Não"

    def test_unreadable_sheet(
        self, tmp_path: Path, config_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        bad = tmp_path / "bad.xlsx"
        bad.write_bytes(b"not excel")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "import", str(bad)])
        assert exc_info.value.code == 1
        assert "Erro ao processar arquivo Excel" in capsys.readouterr().err


class TestOCRCommand:
    """Tests for the ocr command."""

    @patch("checkin.cli.TesseractEngine")
    def test_ocr_writes_json(
        self, mock_engine_cls: MagicMock, tmp_path: Path, config_file: Path
    ) -> None:
        mock_engine_cls.return_value.extract_text.return_value = OCRResult(
            text="NOME: JOAO DA SILVA\nCPF: 111.444.777-35",
            confidence=0.9,
            language="por",
            line_count=2,
        )
        image = tmp_path / "rg.png"
        Image.new("RGB", (50, 20), "white").save(image)
        output = tmp_path / "rg.json"

        main(["-c", str(config_file), "ocr", str(image), "-o", str(output)])

        content = output.read_text(encoding="utf-8")
        assert '"tipo_documento": "CPF"' in content
        assert '"documento": "111.444.777-35"' in content
