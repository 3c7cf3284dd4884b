"""Personalized study-destination recommendations."""
from __future__ import annotations

import copy
import json
import logging
import time
from typing import Any

from ai.coercion import Bounded, ListOf, repair
from ai.llm import LLMClient, LLMError, LLMResponseError, get_llm_client, parse_json_content
from ai.outcome import AnalysisOutcome, elapsed_ms
from config import fallbacks, prompts
from darpan.config import settings
from darpan.models import AnalysisStatus

logger = logging.getLogger(__name__)

PROFILE_LABELS = {
    "first_name": "First Name",
    "last_name": "Last Name",
    "nationality": "Nationality",
    "country": "Current Country",
    "highest_qualification": "Highest Qualification",
    "highest_institution": "Institution",
    "highest_gpa": "GPA",
    "graduation_year": "Graduation Year",
    "interested_course": "Interested Course",
    "field_of_study": "Field of Study",
    "preferred_intake": "Preferred Intake",
    "budget_range": "Budget Range",
    "preferred_countries": "Preferred Countries",
    "current_employment_status": "Employment Status",
    "english_proficiency_tests": "English Tests",
}

CONTEXT_LABELS = {
    "user_preferences": "User Preferences",
    "current_education": "Current Education",
    "academic_performance": "Academic Performance",
    "work_experience": "Work Experience",
    "additional_context": "Additional Context",
}


def template_like(sample: Any) -> Any:
    """Derive a repair template from an example payload.

    Strings default to "", numbers become 0-100 scores, and lists become
    (possibly empty) lists of the first item's shape.
    """
    if isinstance(sample, dict):
        return {key: template_like(value) for key, value in sample.items()}
    if isinstance(sample, list):
        item = template_like(sample[0]) if sample else ""
        return ListOf(item, [])
    if isinstance(sample, bool):
        return False
    if isinstance(sample, (int, float)):
        return Bounded(0, 0, 100)
    return ""


DESTINATION_TEMPLATE = template_like(fallbacks.SAMPLE_DESTINATION_ANALYSIS)


def sample_analysis() -> dict[str, Any]:
    return copy.deepcopy(fallbacks.SAMPLE_DESTINATION_ANALYSIS)


def _format_value(value: Any) -> str:
    if value is None or value == "" or value == []:
        return "Not specified"
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return ", ".join(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _format_block(values: dict[str, Any], labels: dict[str, str]) -> str:
    return "\n".join(f"- {label}: {_format_value(values.get(key))}" for key, label in labels.items())


async def suggest_destinations(
    profile: dict[str, Any],
    context: dict[str, Any] | None = None,
    *,
    client: LLMClient | None = None,
) -> AnalysisOutcome:
    """Recommend study destinations for a student profile.

    Falls back to a fixed sample recommendation set when the model fails or
    returns nothing usable.
    """
    started = time.perf_counter()
    prompt = prompts.DESTINATION_ANALYSIS.substitute(
        profile=_format_block(profile, PROFILE_LABELS),
        context=_format_block(context or {}, CONTEXT_LABELS),
    )

    logger.info("Generating destination suggestions")
    try:
        client = client or get_llm_client()
        completion = await client.complete_json(
            system=prompts.DESTINATION_SYSTEM,
            prompt=prompt,
            temperature=settings.openai.analysis_temperature,
            max_tokens=settings.openai.destination_max_tokens,
        )
    except LLMError as e:
        logger.error(f"Destination suggestions failed: {e}")
        return AnalysisOutcome(
            analysis=sample_analysis(),
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.FAILED,
        )

    try:
        data = parse_json_content(completion.content)
    except LLMResponseError as e:
        logger.warning(f"Destination response unusable, using sample recommendations: {e}")
        data = None

    if data is not None and "personalizedTimeline" not in data and "personlizedTimeline" in data:
        data["personalizedTimeline"] = data.pop("personlizedTimeline")

    analysis = repair(data, DESTINATION_TEMPLATE) if data is not None else None
    if not analysis or not analysis["topRecommendations"]:
        if data is not None:
            logger.warning("Destination response had no recommendations, using sample recommendations")
        return AnalysisOutcome(
            analysis=sample_analysis(),
            tokens_used=completion.tokens_used,
            processing_time_ms=elapsed_ms(started),
            status=AnalysisStatus.DEGRADED,
        )

    logger.info(f"Destination suggestions: {len(analysis['topRecommendations'])} countries recommended")
    return AnalysisOutcome(
        analysis=analysis,
        tokens_used=completion.tokens_used,
        processing_time_ms=elapsed_ms(started),
    )
