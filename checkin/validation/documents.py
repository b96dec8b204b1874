"""Validation and formatting of Brazilian identity documents.

CPF numbers carry two check digits and are fully validated. RG and CNH
numbers have no public checksum, so only their length is checked. Every
validator returns the canonically punctuated number, or ``None`` when the
input is rejected. Rejection is an expected outcome for noisy OCR text and
is never raised as an exception.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

_NON_DIGITS = re.compile(r"\D")

# RG digit count -> group sizes used for punctuation.
_RG_GROUPS: dict[int, tuple[int, int, int, int]] = {
    8: (1, 3, 3, 1),
    9: (2, 3, 3, 1),
    10: (2, 3, 3, 2),
}


class DocumentType(StrEnum):
    """Identity document kinds, in primary-document precedence order."""

    CPF = "CPF"
    CNH = "CNH"
    RG = "RG"


def only_digits(value: str) -> str:
    """Strip every non-digit character from ``value``.

    Raises:
        TypeError: If ``value`` is not a string.
    """
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return _NON_DIGITS.sub("", value)


def _punctuate(digits: str, groups: tuple[int, int, int, int]) -> str:
    a, b, c, _ = groups
    return f"{digits[:a]}.{digits[a:a + b]}.{digits[a + b:a + b + c]}-{digits[a + b + c:]}"


def _cpf_check_digit(digits: str, length: int) -> int:
    total = sum(int(d) * (length + 1 - i) for i, d in enumerate(digits[:length]))
    remainder = total * 10 % 11
    return 0 if remainder >= 10 else remainder


def validate_cpf(value: str) -> str | None:
    """Validate a CPF and return it as ``XXX.XXX.XXX-XX``.

    Args:
        value: Raw candidate text, punctuation allowed.

    Returns:
        The formatted CPF, or ``None`` if the length, the repeated-digit
        check or either check digit fails.
    """
    digits = only_digits(value)
    if len(digits) != 11:
        return None
    if digits == digits[0] * 11:
        return None
    if _cpf_check_digit(digits, 9) != int(digits[9]):
        return None
    if _cpf_check_digit(digits, 10) != int(digits[10]):
        return None
    return _punctuate(digits, (3, 3, 3, 2))


def validate_rg(value: str) -> str | None:
    """Check an RG for a plausible length (8 to 10 digits) and format it.

    Nine digits give ``XX.XXX.XXX-X``; eight give ``X.XXX.XXX-X`` and ten
    give ``XX.XXX.XXX-XX``.
    """
    digits = only_digits(value)
    groups = _RG_GROUPS.get(len(digits))
    if groups is None:
        return None
    return _punctuate(digits, groups)


def validate_cnh(value: str) -> str | None:
    """Check a CNH for exactly 11 digits and return ``XXX.XXX.XXX-XX``."""
    digits = only_digits(value)
    if len(digits) != 11:
        return None
    return _punctuate(digits, (3, 3, 3, 2))


VALIDATORS = {
    DocumentType.CPF: validate_cpf,
    DocumentType.CNH: validate_cnh,
    DocumentType.RG: validate_rg,
}


def validate_any(value: str) -> tuple[DocumentType, str] | None:
    """Validate ``value`` against each document type in precedence order."""
    for doc_type, validator in VALIDATORS.items():
        formatted = validator(value)
        if formatted is not None:
            return doc_type, formatted
    return None


@dataclass
class DocumentClassification:
    """Validated document candidates and the chosen primary document."""

    cpf: list[str] = field(default_factory=list)
    cnh: list[str] = field(default_factory=list)
    rg: list[str] = field(default_factory=list)
    documento: str | None = None
    tipo_documento: DocumentType | None = None


def _validated(candidates: Iterable[str], validator) -> list[str]:
    seen: dict[str, None] = {}
    for candidate in candidates:
        formatted = validator(candidate)
        if formatted is not None:
            seen.setdefault(formatted)
    return list(seen)


def classify_documents(
    candidates: dict[str, Iterable[str]],
) -> DocumentClassification:
    """Validate candidate numbers and pick the primary document.

    Args:
        candidates: Raw candidates keyed by ``"cpf"``, ``"cnh"`` and ``"rg"``.
            Missing keys count as no candidates.

    Returns:
        Classification whose primary document is the first valid CPF,
        otherwise the first valid CNH, otherwise the first valid RG.
    """
    result = DocumentClassification(
        cpf=_validated(candidates.get("cpf", ()), validate_cpf),
        cnh=_validated(candidates.get("cnh", ()), validate_cnh),
        rg=_validated(candidates.get("rg", ()), validate_rg),
    )

    for doc_type in DocumentType:
        found = getattr(result, doc_type.value.lower())
        if found:
            result.documento = found[0]
            result.tipo_documento = doc_type
            break

    return result
