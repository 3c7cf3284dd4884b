"""Upload processing: validate, extract text, analyze, persist.

Each ``process_*`` coroutine is one request's worth of work. Validation and
parsing errors propagate with their own types so the API can map them to
4xx responses; database failures roll back and surface as
``DocumentProcessingError``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ai.destinations import suggest_destinations
from ai.enrollment import analyze_enrollment_document
from ai.llm import LLMClient
from ai.offer_letter import analyze_offer_letter
from ai.outcome import AnalysisOutcome
from ai.scholarships import InstitutionResearch, research_institution_scholarships
from ai.visa import analyze_visa_document
from darpan import models
from darpan.config import settings
from darpan.parsers import extract_text, validate_upload
from darpan.pipelines.extraction import extract_coe_fields, extract_offer_letter_fields
from darpan.pipelines.normalization import normalize_document_text

logger = logging.getLogger(__name__)


class DocumentProcessingError(Exception):
    """Raised when a processed document cannot be persisted."""
    pass


class UsageLimitExceededError(Exception):
    """Raised when a user has no analyses left."""
    pass


@dataclass
class Upload:
    """An uploaded file as received by the API."""
    filename: str | None
    content_type: str | None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class OfferLetterResult:
    document: models.OfferLetterDocument
    analysis: models.OfferLetterAnalysis
    outcome: AnalysisOutcome


@dataclass
class ResearchResult:
    scholarships: list[models.Scholarship]
    research: InstitutionResearch


def format_ai_cost(tokens_used: int) -> str:
    """Approximate spend for a token count, e.g. ``$0.0421``."""
    return f"${tokens_used * settings.analysis.cost_per_token:.4f}"


def read_document(content: bytes, filename: str) -> str:
    """Extract and normalize document text (blocking: PDF parsing and OCR)."""
    parsed = extract_text(content, filename)
    text = normalize_document_text(parsed.text)
    logger.info(
        f"Read '{filename}': {len(text)} chars via {parsed.metadata.get('method', 'unknown')} "
        f"(confidence {parsed.confidence:.2f})"
    )
    return text


async def resolve_user(session: AsyncSession, user_id: int | None) -> models.User | None:
    """Load the requesting user and enforce their analysis quota.

    Unknown ids are treated as anonymous requests.

    Raises:
        UsageLimitExceededError: If the user has used all analyses
    """
    if user_id is None:
        return None
    user = await session.get(models.User, user_id)
    if user is None:
        logger.warning(f"Unknown user id {user_id}; processing anonymously")
        return None
    if user.remaining_analyses <= 0:
        raise UsageLimitExceededError(
            f"Analysis limit reached ({user.analysis_count}/{user.max_analyses})"
        )
    return user


def _charge(user: models.User | None, outcome: AnalysisOutcome) -> None:
    # Failed analyses do not count against the quota
    if user is not None and outcome.status != models.AnalysisStatus.FAILED:
        user.analysis_count += 1


async def _prepare(session: AsyncSession, upload: Upload, user_id: int | None) -> tuple[models.User | None, str]:
    validate_upload(upload.filename, upload.content_type, upload.size)
    user = await resolve_user(session, user_id)
    text = await asyncio.to_thread(read_document, upload.content, upload.filename)
    return user, text


async def _commit(session: AsyncSession, what: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to persist {what}: {e}", exc_info=True)
        await session.rollback()
        raise DocumentProcessingError(f"Failed to save {what}: {e}") from e


async def process_offer_letter_upload(
    session: AsyncSession,
    upload: Upload,
    *,
    user_id: int | None = None,
    client: LLMClient | None = None,
) -> OfferLetterResult:
    """Validate, read, analyze and store an offer letter.

    Raises:
        UploadValidationError, ParseError, UsageLimitExceededError,
        DocumentProcessingError
    """
    user, text = await _prepare(session, upload, user_id)
    fields = extract_offer_letter_fields(text)
    outcome = await analyze_offer_letter(text, upload.filename, client=client)

    document = models.OfferLetterDocument(
        user_id=user.id if user else None,
        file_name=upload.filename,
        file_size=upload.size,
        document_text=text,
        institution_name=fields.institution_name,
        program_name=fields.program_name,
        student_name=fields.student_name,
        tuition_amount=fields.tuition_amount,
        start_date=fields.start_date,
    )
    analysis = models.OfferLetterAnalysis(
        document=document,
        user_id=user.id if user else None,
        analysis_results=outcome.analysis,
        status=outcome.status,
        tokens_used=outcome.tokens_used,
        processing_time_ms=outcome.processing_time_ms,
        total_ai_cost=format_ai_cost(outcome.tokens_used),
    )
    session.add_all([document, analysis])
    _charge(user, outcome)
    await _commit(session, "offer letter analysis")

    logger.info(
        f"Stored offer letter analysis {analysis.id} for '{upload.filename}' "
        f"(status={outcome.status}, tokens={outcome.tokens_used})"
    )
    return OfferLetterResult(document=document, analysis=analysis, outcome=outcome)


async def process_visa_upload(
    session: AsyncSession,
    upload: Upload,
    *,
    user_id: int | None = None,
    client: LLMClient | None = None,
) -> models.Analysis:
    """Validate, read, analyze and store a visa decision letter."""
    user, text = await _prepare(session, upload, user_id)
    outcome = await analyze_visa_document(text, upload.filename, client=client)
    result = outcome.analysis

    analysis = models.Analysis(
        user_id=user.id if user else None,
        filename=upload.filename,
        original_text=text,
        document_type=result["documentType"],
        summary=result["summary"],
        rejection_reasons=result["rejectionReasons"],
        key_terms=result["keyTerms"],
        recommendations=result["recommendations"],
        next_steps=result["nextSteps"],
        status=outcome.status,
        tokens_used=outcome.tokens_used,
        processing_time_ms=outcome.processing_time_ms,
    )
    session.add(analysis)
    _charge(user, outcome)
    await _commit(session, "visa analysis")

    logger.info(f"Stored visa analysis {analysis.id} ({analysis.document_type}, status={outcome.status})")
    return analysis


async def process_coe_upload(
    session: AsyncSession,
    upload: Upload,
    *,
    document_type: str = "coe",
    user_id: int | None = None,
    client: LLMClient | None = None,
) -> models.CoeAnalysis:
    """Validate, read, analyze and store an enrollment confirmation."""
    user, text = await _prepare(session, upload, user_id)
    hints = extract_coe_fields(text)
    outcome = await analyze_enrollment_document(
        text, document_type, upload.filename, client=client, hints=hints
    )

    record = models.CoeAnalysis(
        user_id=user.id if user else None,
        file_name=upload.filename,
        file_size=upload.size,
        document_type=document_type,
        document_text=text,
        extracted_info=hints.to_dict(),
        analysis_results=outcome.analysis,
        status=outcome.status,
        tokens_used=outcome.tokens_used,
        processing_time_ms=outcome.processing_time_ms,
    )
    session.add(record)
    _charge(user, outcome)
    await _commit(session, "CoE analysis")

    logger.info(f"Stored CoE analysis {record.id} (country={hints.country}, status={outcome.status})")
    return record


async def create_destination_suggestion(
    session: AsyncSession,
    profile: dict[str, Any],
    context: dict[str, Any],
    *,
    user_id: int | None = None,
    client: LLMClient | None = None,
) -> models.DestinationSuggestion:
    """Generate and store destination recommendations for a profile."""
    user = await resolve_user(session, user_id)
    outcome = await suggest_destinations(profile, context, client=client)

    record = models.DestinationSuggestion(
        user_id=user.id if user else None,
        request={"profile": profile, "context": context},
        analysis=outcome.analysis,
        status=outcome.status,
        tokens_used=outcome.tokens_used,
        processing_time_ms=outcome.processing_time_ms,
    )
    session.add(record)
    await _commit(session, "destination suggestion")
    return record


async def research_and_store_scholarships(
    session: AsyncSession,
    institution_name: str,
    program_name: str,
    program_level: str,
    *,
    client: LLMClient | None = None,
) -> ResearchResult:
    """Research an institution's scholarships and store each one.

    Raises:
        ScholarshipResearchError: If the research call fails
        DocumentProcessingError: If the results cannot be stored
    """
    research = await research_institution_scholarships(
        institution_name, program_name, program_level, client=client
    )
    source_url = research.source_urls[0] if research.source_urls else None

    rows = [
        models.Scholarship(
            institution_name=institution_name,
            program_name=program_name or None,
            program_level=program_level or None,
            scholarship_name=item["scholarshipName"],
            description=item["description"],
            available_funds=item["availableFunds"],
            funding_type=item["fundingType"],
            eligibility_criteria=item["eligibilityCriteria"],
            application_deadline=item["applicationDeadline"],
            application_process=item["applicationProcess"],
            required_documents=item["requiredDocuments"],
            scholarship_url=item["scholarshipUrl"] or None,
            contact_email=item["contactEmail"] or None,
            contact_phone=item["contactPhone"] or None,
            number_of_awards=item["numberOfAwards"],
            renewal_criteria=item["renewalCriteria"],
            additional_benefits=item["additionalBenefits"],
            source_url=item["scholarshipUrl"] or source_url,
            research_tokens_used=research.tokens_used,
            research_quality=research.research_quality,
        )
        for item in research.scholarships
    ]
    session.add_all(rows)
    await _commit(session, "researched scholarships")

    logger.info(f"Stored {len(rows)} researched scholarships for {institution_name}")
    return ResearchResult(scholarships=rows, research=research)
