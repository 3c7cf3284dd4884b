"""Scholarship research through the LLM.

Two flavours:

* ``research_university_scholarships``: best-effort lookup feeding the
  offer-letter analysis. Bounded by a timeout and never raises; any failure
  yields an empty list so the analysis can proceed.
* ``research_institution_scholarships``: explicit research request whose
  results are stored. Failures raise ``ScholarshipResearchError``.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ai.coercion import Bounded, Choice, ListOf, repair
from ai.llm import LLMClient, LLMError, LLMResponseError, get_llm_client, parse_json_content
from config import prompts
from darpan.config import settings
from darpan.pipelines.extraction import StudentProfile, UniversityInfo

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"

SCHOLARSHIP_TEMPLATE: dict[str, Any] = {
    "name": "Unnamed scholarship",
    "amount": NOT_SPECIFIED,
    "criteria": ListOf("", []),
    "applicationDeadline": NOT_SPECIFIED,
    "applicationProcess": NOT_SPECIFIED,
    "sourceUrl": "",
    "eligibilityMatch": Choice("Medium", "High", "Medium", "Low"),
    "scholarshipType": Choice("International", "Merit", "Need-based", "International", "Research", "Program-specific"),
    "studentProfileMatch": {
        "gpaRequirement": NOT_SPECIFIED,
        "matchesGPA": False,
        "academicRequirement": NOT_SPECIFIED,
        "matchesAcademic": False,
        "overallMatch": Bounded(50, 0, 100),
    },
}

# Defaults double as "missing" markers for the research quality grade
INSTITUTION_SCHOLARSHIP_TEMPLATE: dict[str, Any] = {
    "scholarshipName": "Unknown Scholarship",
    "description": "Description not available",
    "availableFunds": "Amount not specified",
    "fundingType": Choice("Other", "Merit-based", "Need-based", "Athletic", "International", "Research", "Other"),
    "eligibilityCriteria": ListOf("", []),
    "applicationDeadline": "Deadline not specified",
    "applicationProcess": "Process not specified",
    "requiredDocuments": ListOf("", []),
    "scholarshipUrl": "",
    "contactEmail": "",
    "contactPhone": "",
    "numberOfAwards": "Number not specified",
    "renewalCriteria": "Renewal criteria not specified",
    "additionalBenefits": "Additional benefits not specified",
}


class ScholarshipResearchError(Exception):
    """Raised when an explicit institution research request fails."""
    pass


@dataclass
class ScholarshipResearch:
    """Scholarships found for an offer letter, with the tokens it cost."""
    scholarships: list[dict[str, Any]] = field(default_factory=list)
    tokens_used: int = 0


@dataclass
class InstitutionResearch:
    scholarships: list[dict[str, Any]]
    research_quality: str
    source_urls: list[str]
    tokens_used: int


def _normalize_list_fields(raw: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    """Models sometimes answer a list field with one comma-separated string."""
    fixed = dict(raw)
    for key in keys:
        value = fixed.get(key)
        if isinstance(value, str):
            fixed[key] = [part.strip() for part in value.split(";" if ";" in value else ",") if part.strip()]
    return fixed


def repair_scholarships(items: Any) -> list[dict[str, Any]]:
    """Repair a model-provided scholarship list, dropping non-object entries."""
    if not isinstance(items, list):
        return []
    return [
        repair(_normalize_list_fields(item, ("criteria",)), SCHOLARSHIP_TEMPLATE)
        for item in items
        if isinstance(item, dict)
    ]


async def _fetch_university_scholarships(
    info: UniversityInfo,
    profile: StudentProfile,
    client: LLMClient,
) -> ScholarshipResearch:
    prompt = prompts.SCHOLARSHIP_RESEARCH.substitute(
        university_name=info.university_name or "the university named in the offer letter",
        program=info.program or "requested",
        location=info.location or "location not specified",
        gpa=profile.gpa or NOT_SPECIFIED,
        nationality=profile.nationality or NOT_SPECIFIED,
    )
    completion = await client.complete_json(
        system=prompts.SCHOLARSHIP_RESEARCH_SYSTEM,
        prompt=prompt,
        temperature=settings.openai.research_temperature,
        max_tokens=settings.openai.research_max_tokens,
    )
    data = parse_json_content(completion.content)
    return ScholarshipResearch(
        scholarships=repair_scholarships(data.get("scholarships")),
        tokens_used=completion.tokens_used,
    )


async def research_university_scholarships(
    info: UniversityInfo,
    profile: StudentProfile | None = None,
    *,
    client: LLMClient | None = None,
    timeout: float | None = None,
) -> ScholarshipResearch:
    """Look up scholarships for the university in an offer letter.

    Bounded by ``timeout`` (default ``ANALYSIS_SCHOLARSHIP_RESEARCH_TIMEOUT``).
    On timeout or any failure the result has an empty scholarship list.
    """
    timeout = settings.analysis.scholarship_research_timeout if timeout is None else timeout
    profile = profile or StudentProfile()
    logger.info(f"Researching scholarships for '{info.university_name or 'unknown university'}'")
    try:
        client = client or get_llm_client()
        research = await asyncio.wait_for(
            _fetch_university_scholarships(info, profile, client),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Scholarship research timed out after {timeout}s; continuing without scholarships")
        return ScholarshipResearch()
    except Exception as e:
        logger.warning(f"Scholarship research failed; continuing without scholarships: {e}")
        return ScholarshipResearch()

    logger.info(f"Scholarship research found {len(research.scholarships)} scholarships")
    return research


def grade_research_quality(scholarships: list[dict[str, Any]]) -> str:
    """Grade completeness across six checks per scholarship: High >= 70%, Medium >= 40%."""
    if not scholarships:
        return "Low"

    def filled(item: dict[str, Any], key: str) -> bool:
        value = item.get(key)
        return bool(value) and value != INSTITUTION_SCHOLARSHIP_TEMPLATE[key]

    score = 0
    for item in scholarships:
        score += sum(
            filled(item, key)
            for key in ("scholarshipName", "description", "availableFunds", "applicationDeadline")
        )
        score += bool(item.get("scholarshipUrl"))
        score += bool(item.get("eligibilityCriteria"))

    percentage = score / (len(scholarships) * 6) * 100
    if percentage >= 70:
        return "High"
    if percentage >= 40:
        return "Medium"
    return "Low"


async def research_institution_scholarships(
    institution_name: str,
    program_name: str,
    program_level: str,
    *,
    client: LLMClient | None = None,
) -> InstitutionResearch:
    """Research scholarships for an institution/program and grade the result.

    Raises:
        ScholarshipResearchError: If the model call fails
    """
    logger.info(f"Institution scholarship research: {institution_name} / {program_name} ({program_level})")
    prompt = prompts.INSTITUTION_RESEARCH.substitute(
        institution_name=institution_name,
        program_name=program_name or "any program",
        program_level=program_level or "all levels",
    )
    try:
        client = client or get_llm_client()
        completion = await client.complete_json(
            system=prompts.INSTITUTION_RESEARCH_SYSTEM,
            prompt=prompt,
            temperature=settings.openai.analysis_temperature,
            max_tokens=settings.openai.analysis_max_tokens,
        )
    except LLMError as e:
        logger.error(f"Institution scholarship research failed: {e}")
        raise ScholarshipResearchError(f"Failed to research scholarships: {e}") from e

    try:
        data = parse_json_content(completion.content)
    except LLMResponseError as e:
        logger.warning(f"Unparseable research response, treating as no results: {e}")
        data = {}

    raw_items = data.get("scholarships")
    scholarships = [
        repair(_normalize_list_fields(item, ("eligibilityCriteria", "requiredDocuments")), INSTITUTION_SCHOLARSHIP_TEMPLATE)
        for item in (raw_items if isinstance(raw_items, list) else [])
        if isinstance(item, dict)
    ]
    metadata = data.get("researchMetadata") if isinstance(data.get("researchMetadata"), dict) else {}
    source_urls = repair(metadata.get("sourceUrls"), ListOf("", []))
    quality = grade_research_quality(scholarships)

    logger.info(f"Research found {len(scholarships)} scholarships, quality={quality}")
    logger.debug(f"Research payload: {json.dumps(scholarships)[:500]}")
    return InstitutionResearch(
        scholarships=scholarships,
        research_quality=quality,
        source_urls=source_urls,
        tokens_used=completion.tokens_used,
    )
