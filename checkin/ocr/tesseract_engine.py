"""Tesseract OCR engine wrapper for scanned identity documents.

Provides text extraction with an average word confidence, an optional
greyscale/auto-contrast preprocessing step and configurable Tesseract modes.
"""

import io
from dataclasses import dataclass
from pathlib import Path

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

from checkin.errors import InvalidImageError, OCRError
from checkin.utils.config import OCRConfig
from checkin.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Complete OCR result for a document image."""

    text: str
    confidence: float
    language: str
    line_count: int


class TesseractEngine:
    """Wrapper around Tesseract OCR for document text extraction.

    Args:
        config: OCR configuration. Defaults to Portuguese, ``--psm 6``
            and ``--oem 1``.
    """

    def __init__(self, config: OCRConfig | None = None) -> None:
        self.config = config or OCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    @property
    def tesseract_config(self) -> str:
        """Command-line options passed to Tesseract."""
        options = f"--psm {self.config.psm} --oem {self.config.oem}"
        if self.config.preserve_interword_spaces:
            options += " -c preserve_interword_spaces=1"
        return options

    def load_image(self, source: bytes | Path | Image.Image) -> Image.Image:
        """Open an image from raw bytes, a path or an existing PIL image.

        Raises:
            InvalidImageError: If the data is not a readable image.
        """
        if isinstance(source, Image.Image):
            return source
        try:
            if isinstance(source, bytes):
                image = Image.open(io.BytesIO(source))
            else:
                image = Image.open(source)
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Unreadable image: %s", exc)
            raise InvalidImageError("Imagem inválida ou corrompida") from exc
        return image

    def preprocess(self, image: Image.Image) -> Image.Image:
        """Convert to greyscale and stretch contrast."""
        grey = ImageOps.grayscale(image)
        return ImageOps.autocontrast(grey)

    def extract_text(
        self,
        source: bytes | Path | Image.Image,
        lang: str | None = None,
    ) -> OCRResult:
        """Extract text from a document image.

        Args:
            source: Image bytes, file path or PIL image.
            lang: OCR language code. Defaults to the configured language.

        Returns:
            OCRResult containing the full text and average confidence.
        """
        lang = lang or self.config.lang
        image = self.load_image(source)
        if self.config.preprocess:
            image = self.preprocess(image)

        try:
            text = pytesseract.image_to_string(
                image, lang=lang, config=self.tesseract_config
            )
            data = pytesseract.image_to_data(
                image,
                lang=lang,
                config=self.tesseract_config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as exc:
            logger.error("Tesseract failed: %s", exc)
            raise OCRError("Erro ao processar OCR do documento") from exc

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and str(word).strip()
        ]
        avg_conf = sum(confidences) / len(confidences) / 100.0 if confidences else 0.0
        line_count = sum(1 for line in text.splitlines() if line.strip())

        logger.info(
            "OCR extracted %d lines (%d words) with average confidence %.2f",
            line_count,
            len(confidences),
            avg_conf,
        )
        return OCRResult(
            text=text,
            confidence=avg_conf,
            language=lang,
            line_count=line_count,
        )
