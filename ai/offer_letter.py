"""Offer-letter analysis: scholarship research followed by a structured analysis call.

The returned analysis always has the same shape whatever the model does:

* valid JSON: every field repaired individually against the template
  (``completed``)
* unparseable answer: context-aware fallback built from the regex-extracted
  university info and any researched scholarships (``degraded``)
* failed call: explicit "Analysis Error" placeholder (``failed``)

Nothing is retried and no exception reaches the caller.
"""
from __future__ import annotations

import copy
import json
import logging
import time
from typing import Any

from ai.cache import AnalysisCache, md5_key
from ai.coercion import Choice, ListOf, defaults, repair
from ai.llm import LLMClient, LLMError, LLMResponseError, get_llm_client, parse_json_content
from ai.outcome import AnalysisOutcome, elapsed_ms
from ai.scholarships import SCHOLARSHIP_TEMPLATE, research_university_scholarships
from config import fallbacks, prompts
from darpan.config import settings
from darpan.models import AnalysisStatus
from darpan.pipelines.extraction import UniversityInfo, extract_student_profile, extract_university_info
from darpan.pipelines.normalization import truncate_text

logger = logging.getLogger(__name__)

NOT_SPECIFIED = fallbacks.NOT_SPECIFIED

offer_letter_cache = AnalysisCache(
    ttl_seconds=settings.analysis.offer_letter_cache_ttl,
    max_size=settings.analysis.cache_max_entries,
)

COST_STRATEGY_TEMPLATE: dict[str, Any] = {
    "strategy": "Cost-saving strategy",
    "description": NOT_SPECIFIED,
    "potentialSavings": NOT_SPECIFIED,
    "implementationSteps": [NOT_SPECIFIED],
    "timeline": NOT_SPECIFIED,
    "difficulty": Choice("Medium", "Low", "Medium", "High"),
}


def build_template(info: UniversityInfo) -> dict[str, Any]:
    """Offer-letter shape with defaults taken from the regex-extracted info."""
    return {
        "universityInfo": {
            "name": info.university_name or NOT_SPECIFIED,
            "location": info.location or NOT_SPECIFIED,
            "program": info.program or NOT_SPECIFIED,
            "tuition": NOT_SPECIFIED,
            "duration": NOT_SPECIFIED,
            "startDate": NOT_SPECIFIED,
            "campus": NOT_SPECIFIED,
            "studyMode": NOT_SPECIFIED,
        },
        "profileAnalysis": {
            "academicStanding": NOT_SPECIFIED,
            "gpa": NOT_SPECIFIED,
            "financialStatus": NOT_SPECIFIED,
            "relevantSkills": [NOT_SPECIFIED],
            "strengths": [NOT_SPECIFIED],
            "weaknesses": [NOT_SPECIFIED],
            "improvementAreas": [NOT_SPECIFIED],
        },
        "documentAnalysis": {
            "termsAndConditions": {
                "academicRequirements": [NOT_SPECIFIED],
                "financialObligations": [NOT_SPECIFIED],
                "enrollmentConditions": [NOT_SPECIFIED],
                "complianceRequirements": [NOT_SPECIFIED],
                "hiddenClauses": [NOT_SPECIFIED],
                "criticalDeadlines": [NOT_SPECIFIED],
                "penalties": [NOT_SPECIFIED],
            },
            "riskAssessment": {
                "highRiskFactors": [NOT_SPECIFIED],
                "financialRisks": [NOT_SPECIFIED],
                "academicRisks": [NOT_SPECIFIED],
                "complianceRisks": [NOT_SPECIFIED],
                "mitigationStrategies": ["Review all offer conditions with an education counselor"],
            },
        },
        "scholarshipOpportunities": ListOf(SCHOLARSHIP_TEMPLATE, []),
        "costSavingStrategies": ListOf(COST_STRATEGY_TEMPLATE, [fallbacks.OFFER_LETTER_COST_STRATEGY]),
        "financialBreakdown": {
            "totalCost": NOT_SPECIFIED,
            "tuitionFees": NOT_SPECIFIED,
            "otherFees": NOT_SPECIFIED,
            "livingExpenses": NOT_SPECIFIED,
            "scholarshipOpportunities": NOT_SPECIFIED,
            "netCost": NOT_SPECIFIED,
            "paymentSchedule": [NOT_SPECIFIED],
            "fundingGaps": [NOT_SPECIFIED],
        },
        "recommendations": list(fallbacks.OFFER_LETTER_RECOMMENDATIONS),
        "nextSteps": list(fallbacks.OFFER_LETTER_NEXT_STEPS),
    }


def _flatten_text_items(items: Any) -> Any:
    """Turn ``{"title": ..., "description": ...}`` items into plain strings."""
    if not isinstance(items, list):
        return items
    flattened = []
    for item in items:
        if isinstance(item, dict):
            title = str(item.get("title") or item.get("step") or "").strip()
            description = str(item.get("description") or "").strip()
            item = f"{title}: {description}" if title and description else (title or description)
        flattened.append(item)
    return flattened


def shape_analysis(
    data: dict[str, Any],
    info: UniversityInfo,
    scholarships: list[dict[str, Any]],
) -> dict[str, Any]:
    """Repair a parsed model answer into the offer-letter shape."""
    data = dict(data)
    for key in ("recommendations", "nextSteps"):
        data[key] = _flatten_text_items(data.get(key))

    analysis = repair(data, build_template(info))
    if scholarships:
        analysis["scholarshipOpportunities"] = copy.deepcopy(scholarships)
    return analysis


def build_degraded_analysis(info: UniversityInfo, scholarships: list[dict[str, Any]]) -> dict[str, Any]:
    """Fallback when the model answered but its JSON was unusable."""
    analysis = defaults(build_template(info))
    analysis["profileAnalysis"] = copy.deepcopy(fallbacks.OFFER_LETTER_DEGRADED_PROFILE)
    analysis["universityInfo"]["tuition"] = "Please refer to your offer letter for tuition details"
    analysis["universityInfo"]["duration"] = "Program duration as specified in your offer letter"
    analysis["scholarshipOpportunities"] = copy.deepcopy(scholarships)
    return analysis


def build_error_analysis() -> dict[str, Any]:
    """Placeholder when the model call itself failed."""
    analysis = defaults(build_template(UniversityInfo()))
    analysis["universityInfo"]["name"] = fallbacks.ANALYSIS_ERROR
    analysis["profileAnalysis"]["academicStanding"] = (
        f"{fallbacks.ANALYSIS_ERROR}: the document could not be analyzed at this time."
    )
    analysis["recommendations"] = list(fallbacks.OFFER_LETTER_ERROR_RECOMMENDATIONS)
    analysis["nextSteps"] = list(fallbacks.OFFER_LETTER_ERROR_NEXT_STEPS)
    return analysis


async def analyze_offer_letter(
    document_text: str,
    filename: str = "",
    *,
    client: LLMClient | None = None,
    research_timeout: float | None = None,
) -> AnalysisOutcome:
    """Analyze an offer letter end to end.

    Args:
        document_text: Normalized text of the offer letter
        filename: Original filename, for logging
        client: LLM client; the shared client is used when omitted
        research_timeout: Override for the scholarship research bound (seconds)

    Returns:
        AnalysisOutcome whose ``analysis`` always has the offer-letter shape
    """
    started = time.perf_counter()
    document_text = document_text or ""

    cache_key = md5_key(document_text)
    cached = offer_letter_cache.get(cache_key)
    if cached is not None:
        logger.info(f"Offer letter cache hit for '{filename}'")
        return AnalysisOutcome(
            analysis=cached,
            tokens_used=0,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.COMPLETED,
            cached=True,
        )

    text = truncate_text(document_text, settings.analysis.max_document_chars)
    info = extract_university_info(text)
    profile = extract_student_profile(text)
    logger.info(
        f"Analyzing offer letter '{filename}': university='{info.university_name}', program='{info.program}'"
    )

    tokens_used = 0
    scholarships: list[dict[str, Any]] = []
    try:
        client = client or get_llm_client()

        research = await research_university_scholarships(
            info, profile, client=client, timeout=research_timeout
        )
        scholarships = research.scholarships
        tokens_used += research.tokens_used

        completion = await client.complete_json(
            system=prompts.OFFER_LETTER_SYSTEM,
            prompt=prompts.OFFER_LETTER_ANALYSIS.substitute(
                document_text=text,
                scholarships=json.dumps(scholarships, indent=2),
            ),
            temperature=settings.openai.analysis_temperature,
            max_tokens=settings.openai.analysis_max_tokens,
        )
        tokens_used += completion.tokens_used
    except LLMError as e:
        logger.error(f"Offer letter analysis failed for '{filename}': {e}")
        return AnalysisOutcome(
            analysis=build_error_analysis(),
            tokens_used=tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.FAILED,
        )
    except Exception as e:
        logger.error(f"Unexpected error analyzing offer letter '{filename}': {e}", exc_info=True)
        return AnalysisOutcome(
            analysis=build_error_analysis(),
            tokens_used=tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.FAILED,
        )

    try:
        data = parse_json_content(completion.content)
    except LLMResponseError as e:
        logger.warning(f"Offer letter response unusable for '{filename}', using fallback: {e}")
        return AnalysisOutcome(
            analysis=build_degraded_analysis(info, scholarships),
            tokens_used=tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.DEGRADED,
        )

    analysis = shape_analysis(data, info, scholarships)
    offer_letter_cache.set(cache_key, analysis)

    processing_time_ms = elapsed_ms(started)
    logger.info(f"Offer letter analysis completed in {processing_time_ms}ms using {tokens_used} tokens")
    return AnalysisOutcome(
        analysis=analysis,
        tokens_used=tokens_used,
        processing_time_ms=processing_time_ms,
        status=AnalysisStatus.COMPLETED,
    )
