"""Visa approval/rejection letter analysis."""
from __future__ import annotations

import logging
import time
from typing import Any

from ai.coercion import Choice, ListOf, defaults, repair
from ai.llm import LLMClient, LLMError, LLMResponseError, get_llm_client, parse_json_content
from ai.outcome import AnalysisOutcome, elapsed_ms
from config import fallbacks, prompts
from darpan.config import settings
from darpan.models import AnalysisStatus
from darpan.pipelines.normalization import truncate_text

logger = logging.getLogger(__name__)

REJECTION_CATEGORIES = (
    "financial",
    "documentation",
    "eligibility",
    "academic",
    "immigration_history",
    "ties_to_home",
    "credibility",
    "general",
)

KEY_TERM_CATEGORIES = (
    "validity",
    "work_permission",
    "study_conditions",
    "travel_restrictions",
    "compliance",
    "general",
)

TITLED_ITEM = {"title": "Untitled", "description": ""}

VISA_TEMPLATE: dict[str, Any] = {
    "summary": "The visa document could not be summarized automatically.",
    "documentType": Choice("rejection", "approval", "rejection"),
    "rejectionReasons": ListOf(
        {
            "title": "Untitled reason",
            "description": "",
            "category": Choice("general", *REJECTION_CATEGORIES),
            "severity": Choice("medium", "high", "medium", "low"),
        },
        [],
    ),
    "keyTerms": ListOf(
        {
            "title": "Untitled term",
            "description": "",
            "category": Choice("general", *KEY_TERM_CATEGORIES),
        },
        [],
    ),
    "recommendations": ListOf(TITLED_ITEM, fallbacks.VISA_RECOMMENDATIONS),
    "nextSteps": ListOf(TITLED_ITEM, fallbacks.VISA_NEXT_STEPS),
}


def _infer_document_type(data: dict[str, Any]) -> dict[str, Any]:
    """Fill ``documentType`` from the payload's own structure when the model left it out."""
    if isinstance(data.get("documentType"), str) and data["documentType"].strip():
        return data
    data = dict(data)
    has_reasons = isinstance(data.get("rejectionReasons"), list) and bool(data["rejectionReasons"])
    has_terms = isinstance(data.get("keyTerms"), list) and bool(data["keyTerms"])
    data["documentType"] = "approval" if has_terms and not has_reasons else "rejection"
    return data


async def analyze_visa_document(
    document_text: str,
    filename: str = "",
    *,
    client: LLMClient | None = None,
) -> AnalysisOutcome:
    """Decide approval vs rejection and extract reasons, terms and advice."""
    started = time.perf_counter()
    text = truncate_text(document_text or "", settings.analysis.max_document_chars)

    logger.info(f"Starting visa document analysis: {filename}")
    try:
        client = client or get_llm_client()
        completion = await client.complete_json(
            system=prompts.VISA_SYSTEM,
            prompt=prompts.VISA_ANALYSIS.substitute(document_text=text),
            temperature=settings.openai.analysis_temperature,
            max_tokens=settings.openai.analysis_max_tokens,
        )
    except LLMError as e:
        logger.error(f"Visa analysis failed for '{filename}': {e}")
        analysis = defaults(VISA_TEMPLATE)
        analysis["summary"] = f"{fallbacks.ANALYSIS_ERROR}: the document could not be analyzed at this time."
        return AnalysisOutcome(
            analysis=analysis,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.FAILED,
        )

    try:
        data = parse_json_content(completion.content)
    except LLMResponseError as e:
        logger.warning(f"Visa analysis response unusable for '{filename}': {e}")
        return AnalysisOutcome(
            analysis=defaults(VISA_TEMPLATE),
            tokens_used=completion.tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.DEGRADED,
        )

    analysis = repair(_infer_document_type(data), VISA_TEMPLATE)
    logger.info(
        f"Visa analysis completed: type={analysis['documentType']}, "
        f"reasons={len(analysis['rejectionReasons'])}, tokens={completion.tokens_used}"
    )
    return AnalysisOutcome(
        analysis=analysis,
        tokens_used=completion.tokens_used,
        processing_time_ms=elapsed_ms(started),
    )
