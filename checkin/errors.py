"""Domain exceptions raised by repositories, importers and the OCR layer.

The API maps each class to an HTTP status; see ``checkin.api.app``.
"""


class CheckinError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CheckinError):
    """A referenced record does not exist."""

    status_code = 404


class ConflictError(CheckinError):
    """The operation clashes with existing data (duplicates, dependants)."""

    status_code = 400


class ValidationError(CheckinError):
    """Request data is incomplete or refers to invalid records."""

    status_code = 400


class SpreadsheetError(CheckinError):
    """An uploaded spreadsheet cannot be read."""

    status_code = 400


class OCRError(CheckinError):
    """An uploaded image cannot be processed by the OCR engine."""

    status_code = 500


class InvalidImageError(OCRError):
    """An uploaded file is not a readable image."""

    status_code = 400
