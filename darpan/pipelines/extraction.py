"""Regex-based entity extraction from offer letters and enrollment certificates.

Every extractor runs a fixed, ordered list of compiled patterns and takes the
first one that matches. There is no scoring: pattern order is the only
ranking. Missing values come back as empty strings (or ``None`` for the
optional persisted fields) and nothing here raises on odd input.
"""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Pattern

logger = logging.getLogger(__name__)

# Capitalized word, tolerant of ALL CAPS and names like "St." or "O'Neil"
_WORD = r"[A-Z][A-Za-z&'.-]*"
# Title-cased phrase allowing lowercase connectors between capitalized words
_TITLE_TAIL = rf"(?:[ \t]+(?:(?:of|in|and|for|&)[ \t]+)?{_WORD})*"

UNIVERSITY_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(rf"(?i:University)[ \t]+(?i:of)[ \t]+{_WORD}(?:[ \t]+{_WORD})*"),
    re.compile(rf"(?:{_WORD}[ \t]+){{1,4}}(?i:University)\b"),
    re.compile(rf"(?:{_WORD}[ \t]+){{1,4}}(?i:College)\b"),
    re.compile(rf"(?:{_WORD}[ \t]+){{1,4}}(?i:Institute)\b(?:[ \t]+of[ \t]+{_WORD}(?:[ \t]+{_WORD})*)?"),
)

PROGRAM_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(?:Program|Programme|Course)(?:[ \t]+Name)?[ \t]*:[ \t]*([^\n.]+)", re.IGNORECASE),
    re.compile(rf"(?:Master|Bachelor)s?[ \t]+of[ \t]+{_WORD}{_TITLE_TAIL}"),
    re.compile(rf"(?:PhD|Ph\.D\.|Doctor[ \t]+of[ \t]+Philosophy)[ \t]+in[ \t]+{_WORD}{_TITLE_TAIL}"),
    re.compile(rf"(?:Graduate[ \t]+)?(?:Diploma|Certificate)[ \t]+(?:of|in)[ \t]+{_WORD}{_TITLE_TAIL}"),
)

LOCATION_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(?:Campus|Location|Address)[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(rf"located[ \t]+in[ \t]+({_WORD}(?:,?[ \t]+{_WORD})*)", re.IGNORECASE),
)

GPA_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"\bGPA[ \t]*(?:of|:)?[ \t]*(\d+(?:\.\d+)?(?:[ \t]*/[ \t]*\d+(?:\.\d+)?)?)", re.IGNORECASE),
    re.compile(r"\bgrade[ \t]+point[ \t]+average[ \t]*:?[ \t]*(\d+(?:\.\d+)?)", re.IGNORECASE),
)

NATIONALITY_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"\bnationality[ \t]*:[ \t]*([A-Za-z][A-Za-z ]*)", re.IGNORECASE),
    re.compile(r"\b(?:country[ \t]+of[ \t]+)?citizenship[ \t]*:[ \t]*([A-Za-z][A-Za-z ]*)", re.IGNORECASE),
    re.compile(r"\bcitizen[ \t]+of[ \t]+([A-Z][A-Za-z]*(?:[ \t]+[A-Z][A-Za-z]*)*)"),
)

STUDENT_NAME_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"Student[ \t]+Name[ \t]*:[ \t]*([A-Z][A-Za-z'-]+(?:[ \t]+[A-Z][A-Za-z'-]+)+)"),
    re.compile(r"\bDear[ \t]+(?:Mr\.?|Ms\.?|Mrs\.?|Miss)?[ \t]*([A-Z][a-z'-]+(?:[ \t]+[A-Z][a-z'-]+)+)"),
)

_AMOUNT = r"(?:[A-Z]{3}[ \t]*)?(?:A\$|C\$|US\$|CA\$|[$£€])?[ \t]*\d[\d,]*(?:\.\d{2})?"

TUITION_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(rf"tuition(?:[ \t]+fees?)?(?:[ \t]+\(?[a-z ]+\)?)?[ \t]*:[ \t]*({_AMOUNT})", re.IGNORECASE),
    re.compile(rf"(?:course|program|annual)[ \t]+(?:fee|cost)s?[ \t]*:[ \t]*({_AMOUNT})", re.IGNORECASE),
    re.compile(rf"({_AMOUNT})[ \t]*(?:per[ \t]+(?:year|annum|semester)|annually)", re.IGNORECASE),
    re.compile(rf"\bfees?[ \t]*:[ \t]*({_AMOUNT})", re.IGNORECASE),
)

TOTAL_COST_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(rf"total[ \t]+(?:tuition[ \t]+)?(?:cost|amount|fees?)[ \t]*:?[ \t]*({_AMOUNT})", re.IGNORECASE),
)

_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"

START_DATE_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(?:Course[ \t]+)?Start[ \t]+Date[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(r"Commencement(?:[ \t]+Date)?[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(rf"(?:{_MONTHS})[ \t]+\d{{1,2}},?[ \t]+\d{{4}}"),
    re.compile(rf"\d{{1,2}}[ \t]+(?:{_MONTHS})[ \t]+\d{{4}}"),
)

DURATION_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"Duration[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?[ \t]*years?(?:[ \t]+\d+[ \t]*months?)?)", re.IGNORECASE),
    re.compile(r"(\d+[ \t]*semesters?)", re.IGNORECASE),
)

END_DATE_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(?:Course[ \t]+)?(?:End|Completion|Finish)[ \t]+Date[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
)

STUDENT_ID_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"student[ \t]*(?:id|number|no\.?)[ \t]*[:#][ \t]*([0-9A-Z][0-9A-Z-]{3,})", re.IGNORECASE),
    re.compile(r"application[ \t]*(?:id|number|no\.?)[ \t]*[:#][ \t]*([0-9A-Z][0-9A-Z-]{3,})", re.IGNORECASE),
)

INSTITUTION_LABEL_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(?:Institution|Provider|Education[ \t]+Provider)(?:[ \t]+Name)?[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
)

# Country-specific identifiers, keyed by the field name exposed to clients
COUNTRY_ID_PATTERNS: dict[str, dict[str, tuple[Pattern[str], ...]]] = {
    "Australia": {
        "cricosCode": (
            re.compile(r"CRICOS(?:[ \t]+(?:Provider|Course))?(?:[ \t]+Code)?[ \t]*[:#]?[ \t]*\(?([0-9]{5,6}[A-Z]?)\)?", re.IGNORECASE),
            re.compile(r"provider[ \t]+code[ \t]*[:#]?[ \t]*([0-9A-Z]+)", re.IGNORECASE),
        ),
        "oshcProvider": (
            re.compile(r"OSHC(?:[ \t]+Provider)?[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
            re.compile(r"health[ \t]+(?:insurance|cover)[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
        ),
    },
    "USA": {
        "sevisId": (
            re.compile(r"SEVIS(?:[ \t]+ID)?[ \t]*[:#]?[ \t]*(N[0-9]{8,10})", re.IGNORECASE),
            re.compile(r"I-20[ \t]*[:#]?[ \t]*([0-9A-Z-]{6,})", re.IGNORECASE),
        ),
        "schoolCode": (
            re.compile(r"school[ \t]+code[ \t]*[:#]?[ \t]*([0-9A-Z]+)", re.IGNORECASE),
        ),
    },
    "UK": {
        "casNumber": (
            re.compile(r"\bCAS(?:[ \t]+(?:Number|No\.?|Reference))?[ \t]*[:#][ \t]*([0-9A-Z-]{6,})", re.IGNORECASE),
        ),
        "sponsorLicence": (
            re.compile(r"sponsor(?:[ \t]+licen[cs]e)?(?:[ \t]+number)?[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
        ),
    },
    "Canada": {
        "dliNumber": (
            re.compile(r"\bDLI(?:[ \t]+(?:Number|No\.?|#))?[ \t]*[:#]?[ \t]*(O[0-9]{8,12})", re.IGNORECASE),
            re.compile(r"designated[ \t]+learning[ \t]+institution[^\n:]*:[ \t]*([0-9A-Z-]+)", re.IGNORECASE),
        ),
    },
}

# Ordered: the first country whose keyword pattern hits wins
COUNTRY_KEYWORDS: tuple[tuple[str, Pattern[str]], ...] = (
    ("Australia", re.compile(r"\b(?:cricos|australia|australian|aud|oshc)\b", re.IGNORECASE)),
    ("USA", re.compile(r"\b(?:sevis|i-20|usa|united states|usd)\b", re.IGNORECASE)),
    ("UK", re.compile(r"\b(?:cas|united kingdom|uk|gbp|ukvi)\b", re.IGNORECASE)),
    ("Canada", re.compile(r"\b(?:dli|canada|canadian|cad)\b", re.IGNORECASE)),
)

PROGRAM_LEVEL_KEYWORDS: tuple[tuple[str, Pattern[str]], ...] = (
    ("PhD", re.compile(r"\b(?:phd|ph\.d|doctorate|doctor of philosophy)\b", re.IGNORECASE)),
    ("Master", re.compile(r"\b(?:master|masters|postgraduate)\b", re.IGNORECASE)),
    ("Bachelor", re.compile(r"\b(?:bachelor|bachelors|undergraduate)\b", re.IGNORECASE)),
    ("Diploma/Certificate", re.compile(r"\b(?:diploma|certificate)\b", re.IGNORECASE)),
)

CURRENCY_KEYWORDS: tuple[tuple[str, Pattern[str]], ...] = (
    ("AUD", re.compile(r"\bAUD\b|(?<![A-Z])A\$|australian dollars?", re.IGNORECASE)),
    ("CAD", re.compile(r"\bCAD\b|\bCA?\$|canadian dollars?", re.IGNORECASE)),
    ("USD", re.compile(r"\bUSD\b|US\$|us dollars?", re.IGNORECASE)),
    ("GBP", re.compile(r"\bGBP\b|£|pounds? sterling", re.IGNORECASE)),
    ("EUR", re.compile(r"\bEUR\b|€", re.IGNORECASE)),
)

DOCUMENT_TYPE_KEYWORDS: tuple[tuple[str, Pattern[str]], ...] = (
    ("COE", re.compile(r"confirmation[ \t]+of[ \t]+enrol{1,2}ment|\bCoE\b", re.IGNORECASE)),
    ("I-20 Form", re.compile(r"\bI-20\b", re.IGNORECASE)),
    ("CAS Statement", re.compile(r"confirmation[ \t]+of[ \t]+acceptance[ \t]+for[ \t]+studies|\bCAS\b")),
    ("Offer Letter", re.compile(r"offer[ \t]+(?:of[ \t]+admission|letter)|letter[ \t]+of[ \t]+offer", re.IGNORECASE)),
)


@dataclass
class UniversityInfo:
    """University/program/location guess; empty strings when nothing matched."""
    university_name: str = ""
    program: str = ""
    location: str = ""


@dataclass
class StudentProfile:
    """Applicant hints used to personalize scholarship research."""
    gpa: str | None = None
    nationality: str | None = None

    def is_empty(self) -> bool:
        return not (self.gpa or self.nationality)


@dataclass
class OfferLetterFields:
    """Header fields persisted alongside an uploaded offer letter."""
    institution_name: str | None = None
    student_name: str | None = None
    program_name: str | None = None
    tuition_amount: str | None = None
    start_date: str | None = None


@dataclass
class CoeFields:
    """Regex hints extracted from an enrollment certificate."""
    country: str = "Other"
    document_type: str = "Other"
    institution_name: str = ""
    student_name: str = ""
    student_id: str = ""
    nationality: str = ""
    program: str = ""
    program_level: str = ""
    duration: str = ""
    start_date: str = ""
    end_date: str = ""
    tuition_fee: str = ""
    total_cost: str = ""
    currency: str = ""
    country_specific: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _clean(value: str) -> str:
    """Collapse inner whitespace and trim separators left at the edges."""
    value = re.sub(r"\s+", " ", value)
    return value.strip(" \t:;,.-")


def first_match(text: str | None, patterns: Iterable[Pattern[str]]) -> str:
    """Return the first pattern's value: capture group 1 when present, else the whole match.

    Args:
        text: Text to search; ``None`` is treated as empty
        patterns: Compiled patterns in priority order

    Returns:
        Cleaned match, or "" when no pattern matches
    """
    if not text:
        return ""
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        value = match.group(1) if pattern.groups else match.group(0)
        value = _clean(value or "")
        if value:
            return value
    return ""


def _first_keyword(text: str, keywords: Iterable[tuple[str, Pattern[str]]], default: str) -> str:
    for label, pattern in keywords:
        if pattern.search(text):
            return label
    return default


def extract_university_info(text: str | None) -> UniversityInfo:
    """Guess university name, program and location from raw document text."""
    info = UniversityInfo(
        university_name=first_match(text, UNIVERSITY_PATTERNS),
        program=first_match(text, PROGRAM_PATTERNS),
        location=first_match(text, LOCATION_PATTERNS),
    )
    logger.debug(
        f"Extracted university info: name='{info.university_name}', "
        f"program='{info.program}', location='{info.location}'"
    )
    return info


def extract_student_profile(text: str | None) -> StudentProfile:
    """Pull GPA and nationality hints, when the document states them."""
    return StudentProfile(
        gpa=first_match(text, GPA_PATTERNS) or None,
        nationality=first_match(text, NATIONALITY_PATTERNS) or None,
    )


def extract_offer_letter_fields(text: str | None) -> OfferLetterFields:
    """Extract the offer-letter header fields stored with the document row."""
    return OfferLetterFields(
        institution_name=first_match(text, UNIVERSITY_PATTERNS) or None,
        student_name=first_match(text, STUDENT_NAME_PATTERNS) or None,
        program_name=first_match(text, PROGRAM_PATTERNS) or None,
        tuition_amount=first_match(text, TUITION_PATTERNS) or None,
        start_date=first_match(text, START_DATE_PATTERNS) or None,
    )


def detect_country(text: str | None) -> str:
    return _first_keyword(text or "", COUNTRY_KEYWORDS, "Other")


def detect_document_type(text: str | None) -> str:
    return _first_keyword(text or "", DOCUMENT_TYPE_KEYWORDS, "Other")


def extract_coe_fields(text: str | None) -> CoeFields:
    """Extract enrollment-certificate hints, including country-specific identifiers.

    The detected country decides which identifier patterns are tried
    (CRICOS/OSHC for Australia, SEVIS for the USA, CAS/sponsor for the UK,
    DLI for Canada).
    """
    text = text or ""
    country = detect_country(text)

    country_specific: dict[str, str] = {}
    for key, patterns in COUNTRY_ID_PATTERNS.get(country, {}).items():
        value = first_match(text, patterns)
        if value:
            country_specific[key] = value

    fields = CoeFields(
        country=country,
        document_type=detect_document_type(text),
        institution_name=first_match(text, INSTITUTION_LABEL_PATTERNS) or first_match(text, UNIVERSITY_PATTERNS),
        student_name=first_match(text, STUDENT_NAME_PATTERNS),
        student_id=first_match(text, STUDENT_ID_PATTERNS),
        nationality=first_match(text, NATIONALITY_PATTERNS),
        program=first_match(text, PROGRAM_PATTERNS),
        program_level=_first_keyword(text, PROGRAM_LEVEL_KEYWORDS, ""),
        duration=first_match(text, DURATION_PATTERNS),
        start_date=first_match(text, START_DATE_PATTERNS),
        end_date=first_match(text, END_DATE_PATTERNS),
        tuition_fee=first_match(text, TUITION_PATTERNS),
        total_cost=first_match(text, TOTAL_COST_PATTERNS),
        currency=_first_keyword(text, CURRENCY_KEYWORDS, ""),
        country_specific=country_specific,
    )
    logger.info(
        f"CoE hints: country={fields.country}, type={fields.document_type}, "
        f"identifiers={sorted(country_specific)}"
    )
    return fields
