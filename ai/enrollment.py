"""Confirmation of Enrollment (CoE) analysis.

Runs on the cheaper enrollment model. Regex hints from the certificate seed
the defaults so that even a thin model answer keeps the identifiers the
document plainly states.
"""
from __future__ import annotations

import hashlib
import logging
import re
import time
from typing import Any

from ai.cache import AnalysisCache
from ai.coercion import Bounded, Choice, ListOf, defaults, repair
from ai.llm import LLMClient, LLMError, LLMResponseError, get_llm_client, parse_json_content
from ai.outcome import AnalysisOutcome, elapsed_ms
from config import fallbacks, prompts
from darpan.config import settings
from darpan.models import AnalysisStatus
from darpan.pipelines.extraction import CoeFields, extract_coe_fields
from darpan.pipelines.normalization import truncate_head_tail

logger = logging.getLogger(__name__)

enrollment_cache = AnalysisCache(
    ttl_seconds=settings.analysis.enrollment_cache_ttl,
    max_size=settings.analysis.cache_max_entries,
)

_DATE = re.compile(r"\b\d{4}[-/]\d{2}[-/]\d{2}\b|\b\d{1,2}[-/]\d{1,2}[-/]\d{2,4}\b")
_AMOUNT = re.compile(r"[$£€][\d,]+(?:\.\d+)?")
_IDENTIFIER = re.compile(r"\b[A-Z]{2,}\d+[A-Z0-9]*\b")

KEY_FINDING_TEMPLATE = {
    "title": "Finding",
    "description": "",
    "importance": Choice("medium", "high", "medium", "low"),
}

MISSING_INFO_TEMPLATE = {"field": "Unknown field", "description": "", "impact": ""}

RECOMMENDATION_TEMPLATE = {
    "title": "Recommendation",
    "description": "",
    "priority": Choice("suggested", "urgent", "important", "suggested"),
    "category": Choice("preparation", "documentation", "financial", "academic", "visa", "preparation"),
}

NEXT_STEP_TEMPLATE = {
    "step": "Next step",
    "description": "",
    "deadline": "",
    "category": Choice("short_term", "immediate", "short_term", "long_term"),
}

COMPLIANCE_ISSUE_TEMPLATE = {
    "issue": "Compliance issue",
    "severity": Choice("moderate", "critical", "moderate", "minor"),
    "resolution": "",
}


def fingerprint_key(document_type: str, text: str) -> str:
    """Cache key that ignores dates, amounts and identifiers.

    Certificates from the same provider differ mostly in those values, so
    masking them lets near-identical templates share one analysis.
    """
    masked = _DATE.sub("DATE", text or "")
    masked = _AMOUNT.sub("AMOUNT", masked)
    masked = _IDENTIFIER.sub("ID", masked)
    masked = masked.lower()[:200]
    return f"{document_type}:{hashlib.md5(masked.encode('utf-8')).hexdigest()}"


def build_template(hints: CoeFields, document_type: str) -> dict[str, Any]:
    """CoE analysis shape with regex hints as defaults."""
    specific = hints.country_specific
    return {
        "institutionName": hints.institution_name,
        "studentName": hints.student_name,
        "studentId": hints.student_id,
        "programName": hints.program,
        "programLevel": hints.program_level,
        "startDate": hints.start_date,
        "endDate": hints.end_date,
        "institutionCountry": hints.country if hints.country != "Other" else "",
        "studentCountry": hints.nationality,
        "visaType": "",
        "tuitionAmount": hints.tuition_fee,
        "currency": hints.currency,
        "scholarshipAmount": "",
        "totalCost": hints.total_cost,
        "healthCover": specific.get("oshcProvider", ""),
        "englishTestScore": "",
        "institutionContact": "",
        "visaObligations": "",
        "summary": (
            f"Unable to fully analyze this {document_type or 'enrollment'} document. "
            "Please verify all information manually."
        ),
        "keyFindings": ListOf(KEY_FINDING_TEMPLATE, fallbacks.ENROLLMENT_KEY_FINDINGS),
        "missingInformation": ListOf(MISSING_INFO_TEMPLATE, []),
        "recommendations": ListOf(RECOMMENDATION_TEMPLATE, fallbacks.ENROLLMENT_RECOMMENDATIONS),
        "nextSteps": ListOf(NEXT_STEP_TEMPLATE, fallbacks.ENROLLMENT_NEXT_STEPS),
        "isValid": True,
        "expiryDate": "",
        "complianceIssues": ListOf(COMPLIANCE_ISSUE_TEMPLATE, []),
        "analysisScore": Bounded(50, 0, 100),
        "confidence": Bounded(30, 0, 100),
    }


async def analyze_enrollment_document(
    document_text: str,
    document_type: str = "coe",
    filename: str = "",
    *,
    client: LLMClient | None = None,
    hints: CoeFields | None = None,
) -> AnalysisOutcome:
    """Analyze a CoE or similar enrollment confirmation.

    Failures produce the fallback shape (``degraded`` or ``failed``) rather
    than raising.
    """
    started = time.perf_counter()
    document_text = document_text or ""
    hints = hints or extract_coe_fields(document_text)
    template = build_template(hints, document_type)

    cache_key = fingerprint_key(document_type, document_text)
    cached = enrollment_cache.get(cache_key)
    if cached is not None:
        logger.info(f"Enrollment cache hit: {cache_key}")
        return AnalysisOutcome(analysis=cached, processing_time_ms=elapsed_ms(started), cached=True)

    text = truncate_head_tail(document_text, settings.analysis.enrollment_max_document_chars)
    prompt = prompts.ENROLLMENT_ANALYSIS.substitute(
        document_type_label=(document_type or "enrollment").upper().replace("_", " "),
        filename=filename or "document",
        country=hints.country,
        document_text=text,
    )

    logger.info(f"Starting enrollment analysis for {document_type}: {filename}")
    try:
        client = client or get_llm_client()
        completion = await client.complete_json(
            system=prompts.ENROLLMENT_SYSTEM,
            prompt=prompt,
            model=settings.openai.enrollment_model,
            temperature=settings.openai.analysis_temperature,
            max_tokens=settings.openai.enrollment_max_tokens,
        )
    except LLMError as e:
        logger.error(f"Enrollment analysis failed for '{filename}': {e}")
        return AnalysisOutcome(
            analysis=defaults(template),
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.FAILED,
        )

    try:
        data = parse_json_content(completion.content)
    except LLMResponseError as e:
        logger.warning(f"Enrollment response unusable for '{filename}', using fallback: {e}")
        return AnalysisOutcome(
            analysis=defaults(template),
            tokens_used=completion.tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.DEGRADED,
        )

    analysis = repair(data, template)
    enrollment_cache.set(cache_key, analysis)

    processing_time_ms = elapsed_ms(started)
    logger.info(
        f"Enrollment analysis completed in {processing_time_ms}ms using {completion.tokens_used} tokens"
    )
    return AnalysisOutcome(
        analysis=analysis,
        tokens_used=completion.tokens_used,
        processing_time_ms=processing_time_ms,
    )
