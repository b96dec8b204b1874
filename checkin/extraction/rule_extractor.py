"""Rule-based field extraction from OCR text of Brazilian identity documents.

Extracts names, CPF, RG and CNH numbers, birth dates and mother's names with
regular expressions, then validates the document candidates and selects the
primary document.
"""

import re
from dataclasses import asdict, dataclass, field

from checkin.utils.logger import get_logger
from checkin.validation.documents import DocumentType, classify_documents

logger = get_logger(__name__)

_NAME = r"([A-ZÀ-Ý][A-Za-zÀ-ÿ']+[ \t][A-Za-zÀ-ÿ' \t]+)"

# Pattern definitions: (regex, flags, value_group)
_PATTERNS: dict[str, tuple[str, int, int]] = {
    "nome": (
        r"\b(nome completo|nome|name)[\s:]*" + _NAME,
        re.IGNORECASE,
        2,
    ),
    "cpf": (r"(\d{3}[.-]?\d{3}[.-]?\d{3}[.-]?\d{2})", 0, 1),
    "rg": (r"(\d{1,2}\.?\d{3}\.?\d{3}-?[0-9X])", 0, 1),
    "cnh": (r"(cnh|registro)[\s:]*(\d{11})", re.IGNORECASE, 2),
    "data_nascimento": (
        r"(data de nascimento|nascimento|nasc\.)[\s:]*(\d{2}[./]\d{2}[./]\d{4})",
        re.IGNORECASE,
        2,
    ),
    "nome_mae": (
        r"(nome da mãe|filiação|filiacao|mãe)[\s:]*" + _NAME,
        re.IGNORECASE,
        2,
    ),
}

_HEADING_NAME = re.compile(r"^[A-ZÁÊÇÕ\s]+$")
_HEADING_SCAN_LINES = 5


@dataclass
class DocumentData:
    """Structured data captured from a scanned identity document."""

    nome: str | None
    documento: str | None
    tipo_documento: DocumentType | None
    data_nascimento: str | None
    nome_mae: str | None
    cpf: list[str] = field(default_factory=list)
    rg: list[str] = field(default_factory=list)
    cnh: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.tipo_documento is not None:
            data["tipo_documento"] = self.tipo_documento.value
        return data


class RuleExtractor:
    """Regex-based extractor for identity document fields.

    Every call scans the text afresh with ``re.finditer``; instances keep no
    scan state and may be shared.
    """

    def __init__(self) -> None:
        self.patterns: dict[str, tuple[re.Pattern[str], int]] = {
            name: (re.compile(pattern, flags), group)
            for name, (pattern, flags, group) in _PATTERNS.items()
        }

    def extract(
        self, text: str, fields: list[str] | None = None
    ) -> dict[str, list[str]]:
        """Extract candidate values for each field.

        Args:
            text: OCR text to search.
            fields: Specific field names to extract. If ``None``, extracts all.

        Returns:
            Field name to de-duplicated matches, in order of appearance.
        """
        target_fields = fields or list(self.patterns)
        results: dict[str, list[str]] = {}

        for field_name in target_fields:
            if field_name not in self.patterns:
                continue
            regex, group = self.patterns[field_name]
            matches: dict[str, None] = {}
            for match in regex.finditer(text):
                value = match.group(group) or match.group(1)
                value = value.strip()
                if value:
                    matches.setdefault(value)
            results[field_name] = list(matches)

        logger.info(
            "Rule extraction found %d values",
            sum(len(values) for values in results.values()),
        )
        return results

    def extract_heading_name(self, text: str) -> str | None:
        """Guess a name from the first upper-case heading line.

        Only the first few non-empty lines are considered, and a line must be
        longer than five characters.
        """
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        for line in lines[:_HEADING_SCAN_LINES]:
            if len(line) > 5 and _HEADING_NAME.match(line):
                return line
        return None


def extract_document_data(
    text: str, extractor: RuleExtractor | None = None
) -> DocumentData:
    """Extract fields from OCR text and classify the document numbers.

    Args:
        text: Full OCR text of the document.
        extractor: Extractor to use; a new one is created when omitted.

    Returns:
        Structured document data with the primary document selected.
    """
    extractor = extractor or RuleExtractor()
    found = extractor.extract(text)
    documents = classify_documents(found)

    nome = next(iter(found.get("nome", [])), None) or extractor.extract_heading_name(text)

    data = DocumentData(
        nome=nome,
        documento=documents.documento,
        tipo_documento=documents.tipo_documento,
        data_nascimento=next(iter(found.get("data_nascimento", [])), None),
        nome_mae=next(iter(found.get("nome_mae", [])), None),
        cpf=documents.cpf,
        rg=documents.rg,
        cnh=documents.cnh,
    )
    logger.debug("Primary document: %s (%s)", data.documento, data.tipo_documento)
    return data
