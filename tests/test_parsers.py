from __future__ import annotations

import pytest

from darpan import parsers
from darpan.parsers import FileType, ParseError, UploadValidationError, detect_file_type, validate_upload

MB = 1024 * 1024


@pytest.mark.parametrize("filename,content,expected", [
    ("letter.PDF", b"", FileType.PDF),
    ("scan.jpeg", b"", FileType.JPEG),
    ("scan.jpg", b"", FileType.JPEG),
    ("scan.png", b"", FileType.PNG),
    ("upload", b"%PDF-1.7 ...", FileType.PDF),
    ("upload", b"\x89PNG\r\n\x1a\n....", FileType.PNG),
    ("upload.bin", b"\xff\xd8\xff\xe0", FileType.JPEG),
    ("notes.txt", b"hello", FileType.UNKNOWN),
])
def test_detect_file_type(filename, content, expected):
    assert detect_file_type(filename, content) == expected


def test_valid_upload_passes():
    validate_upload("offer.pdf", "application/pdf", 2 * MB)
    validate_upload("scan.png", "image/png; charset=binary", 1024)


@pytest.mark.parametrize("filename,content_type,size,status_code", [
    (None, "application/pdf", 100, 400),
    ("offer.pdf", "application/pdf", 0, 400),
    ("offer.pdf", "application/pdf", 10 * MB + 1, 413),
    ("offer.docx", "application/msword", 100, 415),
    ("offer.txt", "application/pdf", 100, 415),
    ("offer.pdf", None, 100, 415),
])
def test_invalid_uploads_rejected(filename, content_type, size, status_code):
    with pytest.raises(UploadValidationError) as exc_info:
        validate_upload(filename, content_type, size)
    assert exc_info.value.status_code == status_code


def test_size_checked_before_type():
    with pytest.raises(UploadValidationError) as exc_info:
        validate_upload("huge.exe", "application/octet-stream", 11 * MB)
    assert exc_info.value.status_code == 413


def test_unsupported_type_raises_parse_error():
    with pytest.raises(ParseError):
        parsers.extract_text(b"plain text", "notes.txt")


def test_unreadable_image_raises_parse_error():
    with pytest.raises(ParseError):
        parsers.extract_text(b"not really a png", "scan.png")


def test_pdf_uses_native_text_when_confident(monkeypatch):
    native = "Offer of admission to the University of Toronto. " * 5
    monkeypatch.setattr(parsers, "extract_text_from_pdf_native", lambda content: (native, 0.95))

    def no_ocr(content):
        raise AssertionError("OCR should not run")

    monkeypatch.setattr(parsers, "extract_text_from_pdf_ocr", no_ocr)

    parsed = parsers.extract_text(b"%PDF-1.4", "offer.pdf")
    assert parsed.text == native
    assert parsed.metadata["method"] == "native"


def test_pdf_falls_back_to_ocr(monkeypatch):
    monkeypatch.setattr(parsers, "extract_text_from_pdf_native", lambda content: ("", 0.0))
    monkeypatch.setattr(parsers, "extract_text_from_pdf_ocr", lambda content: ("Scanned offer letter text", 0.8))

    parsed = parsers.extract_text(b"%PDF-1.4", "scan.pdf")
    assert parsed.text == "Scanned offer letter text"
    assert parsed.metadata["method"] == "ocr"


def test_pdf_without_any_text(monkeypatch):
    monkeypatch.setattr(parsers, "extract_text_from_pdf_native", lambda content: ("", 0.0))
    monkeypatch.setattr(parsers, "extract_text_from_pdf_ocr", lambda content: ("", 0.0))

    with pytest.raises(ParseError):
        parsers.extract_text(b"%PDF-1.4", "blank.pdf")
