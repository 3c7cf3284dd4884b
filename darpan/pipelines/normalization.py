"""Text cleanup for extracted document text.

PDF and OCR output is noisy: ligatures, smart quotes, stray HTML from
converted letters, ragged whitespace. Line breaks are kept because the
extraction patterns are line-oriented.
"""
from __future__ import annotations

import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

TRUNCATION_NOTICE = "\n\n[Document truncated for analysis]"

_HTML_TAG = re.compile(r"<[^>]+>")
_INLINE_SPACE = re.compile(r"[ \t\f\v ]+")
_MANY_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_unicode(text: str) -> str:
    """Compose characters (NFC) and unfold PDF ligatures."""
    text = unicodedata.normalize("NFC", text)
    return text.replace("ﬁ", "fi").replace("ﬂ", "fl")


def normalize_punctuation(text: str) -> str:
    """Normalize common punctuation variations."""
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("‘", "'").replace("’", "'")
    text = text.replace("–", "-").replace("—", "-")
    text = text.replace("•", "-")
    return text


def clean_html(text: str) -> str:
    """Remove HTML tags from text."""
    return _HTML_TAG.sub("", text)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces per line and squeeze blank lines, keeping line breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _MANY_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def normalize_document_text(text: str | None, *, clean_html_tags: bool = True) -> str:
    """Full cleanup applied to every uploaded document before analysis.

    Args:
        text: Raw text from PDF extraction or OCR
        clean_html_tags: Strip HTML tags (some letters are exported from web portals)

    Returns:
        Normalized text; empty string for empty input
    """
    if not text or not text.strip():
        return ""

    if clean_html_tags:
        text = clean_html(text)
    text = normalize_unicode(text)
    text = normalize_punctuation(text)
    return normalize_whitespace(text)


def truncate_text(text: str, max_chars: int, notice: str = TRUNCATION_NOTICE) -> str:
    """Cut ``text`` so that the result, notice included, fits in ``max_chars``."""
    if len(text) <= max_chars:
        return text
    keep = max(0, max_chars - len(notice))
    logger.info(f"Truncating document from {len(text)} to {max_chars} characters")
    return text[:keep] + notice[: max_chars - keep]


def truncate_head_tail(text: str, max_chars: int, head_ratio: float = 0.7) -> str:
    """Keep the start and end of a long document, dropping the middle.

    Certificates put identifiers up front and fee tables or signatures at the
    bottom, so both ends matter more than the middle.
    """
    if len(text) <= max_chars:
        return text
    marker = "\n\n[... middle section omitted ...]\n\n"
    if max_chars <= len(marker):
        return marker[:max(0, max_chars)]
    budget = max_chars - len(marker)
    head = int(budget * head_ratio)
    tail = budget - head
    logger.info(f"Truncating document head/tail from {len(text)} to {max_chars} characters")
    return text[:head] + marker + (text[-tail:] if tail else "")
