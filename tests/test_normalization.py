from __future__ import annotations

from darpan.pipelines.normalization import (
    TRUNCATION_NOTICE,
    normalize_document_text,
    truncate_head_tail,
    truncate_text,
)


def test_empty_input():
    assert normalize_document_text(None) == ""
    assert normalize_document_text("   \n\t ") == ""


def test_keeps_line_structure():
    raw = "Program:   Master of IT  \r\n\r\n\r\n\r\nCampus:\tClayton"
    assert normalize_document_text(raw) == "Program: Master of IT\n\nCampus: Clayton"


def test_ligatures_quotes_and_html():
    raw = "<p>“Conﬁrmed” – ofﬂine</p>"
    assert normalize_document_text(raw) == '"Confirmed" - offline'


def test_html_kept_when_disabled():
    assert normalize_document_text("<b>x</b>", clean_html_tags=False) == "<b>x</b>"


def test_truncate_text_fits_budget():
    text = "a" * 10_000
    result = truncate_text(text, 8000)
    assert len(result) == 8000
    assert result.endswith(TRUNCATION_NOTICE)


def test_truncate_text_short_input_untouched():
    assert truncate_text("short", 8000) == "short"


def test_truncate_head_tail_keeps_both_ends():
    text = "HEAD" + "x" * 5000 + "TAIL"
    result = truncate_head_tail(text, 1000)
    assert len(result) <= 1000
    assert result.startswith("HEAD")
    assert result.endswith("TAIL")
    assert "middle section omitted" in result


def test_truncate_head_tail_tiny_budget():
    assert len(truncate_head_tail("x" * 500, 10)) == 10
    assert truncate_head_tail("x" * 500, 0) == ""
