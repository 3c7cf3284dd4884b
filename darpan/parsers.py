"""Upload validation and text extraction for PDF and image documents.

PDFs go through native text extraction (pdfplumber, then pypdf) and fall
back to Tesseract OCR when the native text looks too thin. JPG/PNG scans go
straight to OCR.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any

import pdfplumber
import pytesseract
from pdf2image import convert_from_bytes
from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader

from .config import settings

logger = logging.getLogger(__name__)

_MAGIC_NUMBERS = (
    (b"%PDF", "pdf"),
    (b"\xff\xd8\xff", "jpeg"),
    (b"\x89PNG\r\n\x1a\n", "png"),
)


class FileType(str, Enum):
    """Supported upload types."""
    PDF = "pdf"
    JPEG = "jpeg"
    PNG = "png"
    UNKNOWN = "unknown"

    @property
    def is_image(self) -> bool:
        return self in (FileType.JPEG, FileType.PNG)


class UploadValidationError(Exception):
    """Raised when an upload is rejected before any processing."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(Exception):
    """Raised when no text can be extracted from a document."""
    pass


@dataclass
class ParsedDocument:
    """Result of text extraction."""
    text: str
    file_type: FileType
    confidence: float = 1.0
    metadata: dict[str, Any] = field(default_factory=dict)


def detect_file_type(filename: str, content: bytes | None = None) -> FileType:
    """Detect file type from the extension, then from magic bytes."""
    suffix = PurePath(filename or "").suffix.lower()
    if suffix == ".pdf":
        return FileType.PDF
    if suffix in (".jpg", ".jpeg"):
        return FileType.JPEG
    if suffix == ".png":
        return FileType.PNG

    if content:
        for magic, kind in _MAGIC_NUMBERS:
            if content.startswith(magic):
                return FileType(kind)

    return FileType.UNKNOWN


def validate_upload(filename: str | None, content_type: str | None, size: int) -> None:
    """Reject missing, empty, oversized or disallowed uploads.

    Raises:
        UploadValidationError: 400 for missing/empty files, 413 when over the
            size limit, 415 for a disallowed content type or extension
    """
    if not filename:
        raise UploadValidationError("No file uploaded", status_code=400)

    if size <= 0:
        raise UploadValidationError("Uploaded file is empty", status_code=400)

    limit = settings.uploads.max_file_size
    if size > limit:
        raise UploadValidationError(
            f"File too large: {size} bytes exceeds the {limit // (1024 * 1024)}MB limit",
            status_code=413,
        )

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in settings.uploads.allowed_content_types:
        raise UploadValidationError(
            f"Unsupported file type '{mime or 'unknown'}'. Only PDF, JPG and PNG files are allowed",
            status_code=415,
        )

    suffix = PurePath(filename).suffix.lower()
    if suffix not in settings.uploads.allowed_extensions:
        raise UploadValidationError(
            f"Unsupported file extension '{suffix or 'none'}'. Only PDF, JPG and PNG files are allowed",
            status_code=415,
        )


def _text_confidence(text: str) -> float:
    """Rough confidence from text density."""
    length = len(text.strip())
    if length > 100:
        return 0.95
    if length > 20:
        return 0.7
    return 0.3


def extract_text_from_pdf_native(content: bytes) -> tuple[str, float]:
    """Extract embedded PDF text with pdfplumber, falling back to pypdf.

    Returns:
        Tuple of (text, confidence); ("", 0.0) when both libraries fail
    """
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
        text = "\n\n".join(page for page in pages if page)
        return text, _text_confidence(text)
    except Exception as e:
        logger.warning(f"pdfplumber extraction failed: {e}, trying pypdf")

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
        text = "\n\n".join(page for page in pages if page)
        return text, 0.8 if len(text.strip()) > 100 else 0.5
    except Exception as e:
        logger.error(f"pypdf extraction also failed: {e}")
        return "", 0.0


def _ocr_image(image: Image.Image) -> tuple[str, float | None]:
    """OCR one image; returns text and mean word confidence (0-1) if any."""
    data = pytesseract.image_to_data(
        image,
        lang=settings.ocr.tesseract_lang,
        output_type=pytesseract.Output.DICT,
    )
    text = pytesseract.image_to_string(image, lang=settings.ocr.tesseract_lang)
    confidences = [float(c) for c in data.get("conf", []) if float(c) >= 0]
    mean = sum(confidences) / len(confidences) / 100.0 if confidences else None
    return text, mean


def extract_text_from_pdf_ocr(content: bytes) -> tuple[str, float]:
    """Rasterize PDF pages and OCR them.

    Raises:
        ParseError: If rasterization fails (e.g. poppler missing)
    """
    try:
        images = convert_from_bytes(content, dpi=settings.ocr.dpi, fmt="jpeg")
    except Exception as e:
        logger.error(f"PDF rasterization failed: {e}")
        raise ParseError(f"OCR processing failed: {e}") from e

    logger.info(f"Running OCR on {len(images)} PDF pages")
    text_parts: list[str] = []
    confidences: list[float] = []
    for idx, image in enumerate(images):
        try:
            page_text, confidence = _ocr_image(image)
        except pytesseract.TesseractError as e:
            logger.error(f"OCR failed for page {idx + 1}: {e}")
            continue
        if page_text.strip():
            text_parts.append(page_text)
            if confidence is not None:
                confidences.append(confidence)

    text = "\n\n".join(text_parts)
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    logger.info(f"OCR extracted {len(text)} chars with confidence {confidence:.2f}")
    return text, confidence


def parse_pdf(content: bytes, filename: str) -> ParsedDocument:
    """Native extraction with OCR fallback for scanned PDFs."""
    text, confidence = extract_text_from_pdf_native(content)
    method = "native"

    if confidence < settings.ocr.confidence_threshold or len(text.strip()) < 50:
        logger.info(f"Native extraction confidence {confidence:.2f} too low for '{filename}', trying OCR")
        try:
            ocr_text, ocr_confidence = extract_text_from_pdf_ocr(content)
        except ParseError:
            if not text.strip():
                raise
            ocr_text, ocr_confidence = "", 0.0
        if ocr_confidence > confidence or len(ocr_text) > len(text):
            text, confidence, method = ocr_text, ocr_confidence, "ocr"

    if not text.strip():
        raise ParseError("No text could be extracted from the PDF")

    return ParsedDocument(
        text=text,
        file_type=FileType.PDF,
        confidence=confidence,
        metadata={"filename": filename, "method": method},
    )


def parse_image(content: bytes, filename: str, file_type: FileType) -> ParsedDocument:
    """OCR a JPG/PNG scan."""
    try:
        with Image.open(io.BytesIO(content)) as image:
            text, confidence = _ocr_image(image.convert("RGB"))
    except UnidentifiedImageError as e:
        raise ParseError(f"'{filename}' is not a readable image") from e
    except pytesseract.TesseractError as e:
        logger.error(f"Image OCR failed for '{filename}': {e}")
        raise ParseError(f"OCR processing failed: {e}") from e

    if not text.strip():
        raise ParseError("No text could be extracted from the image")

    return ParsedDocument(
        text=text,
        file_type=file_type,
        confidence=confidence or 0.0,
        metadata={"filename": filename, "method": "ocr"},
    )


def extract_text(content: bytes, filename: str) -> ParsedDocument:
    """Extract text from an uploaded document by type.

    Raises:
        ParseError: If the type is unsupported or no text can be extracted
    """
    file_type = detect_file_type(filename, content)
    logger.info(f"Extracting text from '{filename}' ({file_type.value}, {len(content)} bytes)")

    if file_type == FileType.PDF:
        return parse_pdf(content, filename)
    if file_type.is_image:
        return parse_image(content, filename, file_type)
    raise ParseError(f"Unsupported file type: {filename}")
