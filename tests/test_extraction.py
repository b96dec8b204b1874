"""Tests for rule-based field extraction from identity document text."""

from checkin.extraction.rule_extractor import (
    DocumentData,
    RuleExtractor,
    extract_document_data,
)
from checkin.validation.documents import DocumentType

RG_CARD_TEXT = """REPUBLICA FEDERATIVA DO BRASIL
NOME: JOAO DA SILVA
CPF: 111.444.777-35
DATA DE NASCIMENTO: 01/02/1990
FILIAÇÃO: MARIA DA SILVA
"""


class TestRuleExtractor:
    """Tests for the RuleExtractor class."""

    def setup_method(self) -> None:
        self.extractor = RuleExtractor()

    def test_extract_name(self) -> None:
        result = self.extractor.extract(RG_CARD_TEXT, fields=["nome"])
        assert result == {"nome": ["JOAO DA SILVA"]}

    def test_name_stops_at_line_end(self) -> None:
        result = self.extractor.extract("Nome: Ana Paula\nCPF 111", fields=["nome"])
        assert result["nome"] == ["Ana Paula"]

    def test_extract_full_name_label(self) -> None:
        result = self.extractor.extract("Nome completo: Carlos Souza", fields=["nome"])
        assert result["nome"] == ["Carlos Souza"]

    def test_extract_cpf(self) -> None:
        result = self.extractor.extract(RG_CARD_TEXT, fields=["cpf"])
        assert result["cpf"] == ["111.444.777-35"]

    def test_extract_birth_date(self) -> None:
        result = self.extractor.extract(RG_CARD_TEXT, fields=["data_nascimento"])
        assert result["data_nascimento"] == ["01/02/1990"]

    def test_extract_birth_date_abbreviated(self) -> None:
        result = self.extractor.extract("NASC. 15.03.1985", fields=["data_nascimento"])
        assert result["data_nascimento"] == ["15.03.1985"]

    def test_extract_mother_name(self) -> None:
        result = self.extractor.extract(RG_CARD_TEXT, fields=["nome_mae"])
        assert result["nome_mae"] == ["MARIA DA SILVA"]

    def test_extract_cnh_requires_label(self) -> None:
        result = self.extractor.extract("REGISTRO: 12345678900", fields=["cnh"])
        assert result["cnh"] == ["12345678900"]
        assert self.extractor.extract("12345678900", fields=["cnh"])["cnh"] == []

    def test_extract_rg(self) -> None:
        result = self.extractor.extract("RG 12.345.678-9", fields=["rg"])
        assert result["rg"] == ["12.345.678-9"]

    def test_duplicates_removed(self) -> None:
        text = "CPF 111.444.777-35\nCPF 111.444.777-35"
        assert self.extractor.extract(text, fields=["cpf"])["cpf"] == ["111.444.777-35"]

    def test_unknown_field_ignored(self) -> None:
        assert self.extractor.extract(RG_CARD_TEXT, fields=["unknown"]) == {}

    def test_all_fields_by_default(self) -> None:
        result = self.extractor.extract("")
        assert set(result) == {"nome", "cpf", "rg", "cnh", "data_nascimento", "nome_mae"}
        assert all(values == [] for values in result.values())

    def test_repeated_calls_return_same_result(self) -> None:
        first = self.extractor.extract(RG_CARD_TEXT)
        second = self.extractor.extract(RG_CARD_TEXT)
        assert first == second


class TestHeadingName:
    """Tests for the upper-case heading fallback."""

    def setup_method(self) -> None:
        self.extractor = RuleExtractor()

    def test_first_upper_case_line(self) -> None:
        assert self.extractor.extract_heading_name("abc\nJOSE SANTOS\n") == "JOSE SANTOS"

    def test_short_lines_skipped(self) -> None:
        assert self.extractor.extract_heading_name("RG\nANA LUIZA") == "ANA LUIZA"

    def test_lines_with_digits_skipped(self) -> None:
        assert self.extractor.extract_heading_name("CPF 111.444.777-35") is None

    def test_only_first_lines_scanned(self) -> None:
        text = "a\nb\nc\nd\ne\nJOSE SANTOS"
        assert self.extractor.extract_heading_name(text) is None


class TestExtractDocumentData:
    """Tests for end-to-end field extraction and classification."""

    def test_cpf_document(self) -> None:
        data = extract_document_data(RG_CARD_TEXT)
        assert isinstance(data, DocumentData)
        assert data.nome == "JOAO DA SILVA"
        assert data.documento == "111.444.777-35"
        assert data.tipo_documento is DocumentType.CPF
        assert data.data_nascimento == "01/02/1990"
        assert data.nome_mae == "MARIA DA SILVA"
        assert data.cpf == ["111.444.777-35"]

    def test_cnh_document(self) -> None:
        data = extract_document_data("NOME: ANA PAULA\nREGISTRO: 12345678900")
        assert data.cpf == []
        assert data.cnh == ["123.456.789-00"]
        assert data.documento == "123.456.789-00"
        assert data.tipo_documento is DocumentType.CNH

    def test_rg_document(self) -> None:
        data = extract_document_data("RG: 12.345.678-9")
        assert data.documento == "12.345.678-9"
        assert data.tipo_documento is DocumentType.RG

    def test_rg_with_x_check_digit(self) -> None:
        data = extract_document_data("RG: 12.345.678-X")
        assert data.rg == ["1.234.567-8"]
        assert data.documento == "1.234.567-8"
        assert data.tipo_documento is DocumentType.RG

    def test_no_documents(self) -> None:
        data = extract_document_data("texto sem documentos")
        assert data.documento is None
        assert data.tipo_documento is None
        assert data.nome is None

    def test_heading_name_fallback(self) -> None:
        data = extract_document_data("REPUBLICA FEDERATIVA\nCPF 111.444.777-35")
        assert data.nome == "REPUBLICA FEDERATIVA"

    def test_to_dict_uses_plain_type(self) -> None:
        result = extract_document_data(RG_CARD_TEXT).to_dict()
        assert result["tipo_documento"] == "CPF"
        assert result["documento"] == "111.444.777-35"
        assert set(result) == {
            "nome",
            "documento",
            "tipo_documento",
            "data_nascimento",
            "nome_mae",
            "cpf",
            "rg",
            "cnh",
        }

    def test_shared_extractor(self) -> None:
        extractor = RuleExtractor()
        first = extract_document_data(RG_CARD_TEXT, extractor)
        second = extract_document_data(RG_CARD_TEXT, extractor)
        assert first == second
