"""FastAPI app: document uploads, stored analyses, scholarships and admin.

Every upload runs through ``darpan.pipelines.processing``; domain errors are
mapped to JSON ``{"error", "detail"}`` responses by the handlers below.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ai.enrollment import enrollment_cache
from ai.llm import LLMClient, provide_llm_client
from ai.offer_letter import offer_letter_cache
from ai.scholarships import ScholarshipResearchError

from . import models
from .config import settings
from .db import dispose_engine, get_session
from .logging_config import setup_logging
from .parsers import ParseError, UploadValidationError
from .pipelines.processing import (
    DocumentProcessingError,
    Upload,
    UsageLimitExceededError,
    create_destination_suggestion,
    process_coe_upload,
    process_offer_letter_upload,
    process_visa_upload,
    research_and_store_scholarships,
)
from .pipelines.scholarship_search import SearchFilters, search_scholarships
from .schemas import (
    AnalysisCacheResponse,
    CacheClearResponse,
    CoeAnalysisList,
    CoeAnalysisOut,
    DestinationRequest,
    DestinationSuggestionOut,
    ErrorResponse,
    HealthResponse,
    OfferLetterAnalysisList,
    OfferLetterAnalysisOut,
    ResearchRequest,
    ResearchResponse,
    ScholarshipOut,
    ScholarshipSearchHit,
    ScholarshipSearchResponse,
    UsageOut,
    VisaAnalysisList,
    VisaAnalysisOut,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"{settings.app_name} v{settings.version} starting ({settings.environment})")

    yield

    await dispose_engine()
    logger.info("Application shut down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Offer letter, visa and enrollment document analysis for international students",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(),
    )


# Exception handlers
@app.exception_handler(UploadValidationError)
async def upload_validation_error_handler(request, exc: UploadValidationError):
    logger.warning(f"Upload rejected ({exc.status_code}): {exc}")
    return _error(exc.status_code, "invalid_upload", str(exc))


@app.exception_handler(ParseError)
async def parse_error_handler(request, exc: ParseError):
    """Handle document parsing errors."""
    logger.error(f"Parse error: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "parse_error", str(exc))


@app.exception_handler(UsageLimitExceededError)
async def usage_limit_error_handler(request, exc: UsageLimitExceededError):
    logger.warning(f"Usage limit exceeded: {exc}")
    return _error(status.HTTP_403_FORBIDDEN, "usage_limit_exceeded", str(exc))


@app.exception_handler(DocumentProcessingError)
async def processing_error_handler(request, exc: DocumentProcessingError):
    """Handle persistence failures after rollback."""
    logger.error(f"Processing error: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "processing_error", str(exc))


@app.exception_handler(ScholarshipResearchError)
async def research_error_handler(request, exc: ScholarshipResearchError):
    logger.error(f"Scholarship research error: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, "research_error", str(exc))


@app.exception_handler(HTTPException)
async def http_error_handler(request, exc: HTTPException):
    error = "not_found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
    return _error(exc.status_code, error, str(exc.detail))


async def _read_upload(file: UploadFile | None) -> Upload:
    if file is None:
        return Upload(filename=None, content_type=None, content=b"")
    try:
        # One byte past the limit is enough for validate_upload to reject it
        content = await file.read(settings.uploads.max_file_size + 1)
    finally:
        await file.close()
    return Upload(filename=file.filename, content_type=file.content_type, content=content)


def _not_found(what: str, item_id: int) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} {item_id} not found")


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.version)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "visa_analysis": "/api/analyze",
            "analyses": "/api/analyses",
            "offer_letter_analysis": "/api/offer-letter-analyses/analyze",
            "offer_letter_analyses": "/api/offer-letter-analyses",
            "coe_analysis": "/api/coe-analysis",
            "scholarship_search": "/api/scholarships/search",
            "scholarship_research": "/api/scholarships/research",
            "destination_suggestions": "/api/destination-suggestions",
            "usage": "/api/users/{user_id}/usage",
            "analysis_cache": "/api/admin/analysis-cache",
            "docs": "/docs",
        },
    }


# Visa documents
@app.post("/api/analyze", response_model=VisaAnalysisOut, status_code=status.HTTP_201_CREATED)
async def analyze_visa(
    file: UploadFile | None = File(None, description="Visa decision letter (PDF, JPG or PNG)"),
    user_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    client: LLMClient | None = Depends(provide_llm_client),
) -> VisaAnalysisOut:
    """Upload a visa approval or rejection letter and analyze it."""
    upload = await _read_upload(file)
    logger.info(f"Received visa document upload: {upload.filename}")
    analysis = await process_visa_upload(session, upload, user_id=user_id, client=client)
    return VisaAnalysisOut.model_validate(analysis)


@app.get("/api/analyses", response_model=VisaAnalysisList)
async def list_analyses(
    user_id: int | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> VisaAnalysisList:
    """List visa analyses, newest first, optionally for one user."""
    query = select(models.Analysis)
    count_query = select(func.count(models.Analysis.id))
    if user_id is not None:
        query = query.where(models.Analysis.user_id == user_id)
        count_query = count_query.where(models.Analysis.user_id == user_id)

    total = await session.scalar(count_query)
    result = await session.execute(
        query.order_by(models.Analysis.created_at.desc(), models.Analysis.id.desc()).limit(limit).offset(offset)
    )
    return VisaAnalysisList(
        items=[VisaAnalysisOut.model_validate(row) for row in result.scalars()],
        total=total or 0,
    )


@app.get("/api/analyses/{analysis_id}", response_model=VisaAnalysisOut)
async def get_analysis(analysis_id: int, session: AsyncSession = Depends(get_session)) -> VisaAnalysisOut:
    analysis = await session.get(models.Analysis, analysis_id)
    if analysis is None:
        raise _not_found("Analysis", analysis_id)
    return VisaAnalysisOut.model_validate(analysis)


# Offer letters
@app.post(
    "/api/offer-letter-analyses/analyze",
    response_model=OfferLetterAnalysisOut,
    status_code=status.HTTP_201_CREATED,
)
async def analyze_offer_letter_upload(
    document: UploadFile | None = File(None, description="Offer letter (PDF, JPG or PNG)"),
    user_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    client: LLMClient | None = Depends(provide_llm_client),
) -> OfferLetterAnalysisOut:
    """Upload an offer letter, research scholarships and analyze it.

    The analysis in the response always has the full offer-letter shape;
    ``status`` tells whether it came from the model (``completed``), a
    fallback (``degraded``) or an error placeholder (``failed``).
    """
    upload = await _read_upload(document)
    logger.info(f"Received offer letter upload: {upload.filename}")
    result = await process_offer_letter_upload(session, upload, user_id=user_id, client=client)
    response = OfferLetterAnalysisOut.model_validate(result.analysis)
    return response.model_copy(update={"cached": result.outcome.cached})


async def _offer_letter_page(
    session: AsyncSession,
    user_id: int | None,
    limit: int,
    offset: int,
) -> OfferLetterAnalysisList:
    query = select(models.OfferLetterAnalysis).options(selectinload(models.OfferLetterAnalysis.document))
    count_query = select(func.count(models.OfferLetterAnalysis.id))
    if user_id is not None:
        query = query.where(models.OfferLetterAnalysis.user_id == user_id)
        count_query = count_query.where(models.OfferLetterAnalysis.user_id == user_id)

    total = await session.scalar(count_query)
    result = await session.execute(
        query.order_by(
            models.OfferLetterAnalysis.created_at.desc(),
            models.OfferLetterAnalysis.id.desc(),
        ).limit(limit).offset(offset)
    )
    return OfferLetterAnalysisList(
        items=[OfferLetterAnalysisOut.model_validate(row) for row in result.scalars()],
        total=total or 0,
    )


async def _load_offer_letter_analysis(session: AsyncSession, analysis_id: int) -> models.OfferLetterAnalysis:
    analysis = await session.get(
        models.OfferLetterAnalysis,
        analysis_id,
        options=[selectinload(models.OfferLetterAnalysis.document)],
    )
    if analysis is None:
        raise _not_found("Offer letter analysis", analysis_id)
    return analysis


@app.get("/api/offer-letter-analyses", response_model=OfferLetterAnalysisList)
async def list_offer_letter_analyses(
    user_id: int | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> OfferLetterAnalysisList:
    return await _offer_letter_page(session, user_id, limit, offset)


@app.get("/api/offer-letter-analyses/{analysis_id}", response_model=OfferLetterAnalysisOut)
async def get_offer_letter_analysis(
    analysis_id: int,
    session: AsyncSession = Depends(get_session),
) -> OfferLetterAnalysisOut:
    analysis = await _load_offer_letter_analysis(session, analysis_id)
    return OfferLetterAnalysisOut.model_validate(analysis)


@app.delete("/api/offer-letter-analyses/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_offer_letter_analysis(
    analysis_id: int,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete an analysis; its document goes too once no analyses remain."""
    analysis = await _load_offer_letter_analysis(session, analysis_id)
    document = analysis.document
    await session.delete(analysis)
    await session.flush()

    remaining = await session.scalar(
        select(func.count(models.OfferLetterAnalysis.id)).where(
            models.OfferLetterAnalysis.document_id == document.id
        )
    )
    if not remaining:
        await session.delete(document)
    await session.commit()
    logger.info(f"Deleted offer letter analysis {analysis_id}")


# Enrollment confirmations
@app.post("/api/coe-analysis", response_model=CoeAnalysisOut, status_code=status.HTTP_201_CREATED)
async def analyze_coe(
    file: UploadFile | None = File(None, description="CoE, I-20 or CAS document (PDF, JPG or PNG)"),
    document_type: str = Form("coe"),
    user_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    client: LLMClient | None = Depends(provide_llm_client),
) -> CoeAnalysisOut:
    """Upload and analyze a Confirmation of Enrollment (or equivalent)."""
    upload = await _read_upload(file)
    logger.info(f"Received enrollment document upload: {upload.filename} ({document_type})")
    record = await process_coe_upload(
        session, upload, document_type=document_type or "coe", user_id=user_id, client=client
    )
    return CoeAnalysisOut.model_validate(record)


@app.get("/api/coe-analysis", response_model=CoeAnalysisList)
async def list_coe_analyses(
    user_id: int | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> CoeAnalysisList:
    query = select(models.CoeAnalysis)
    count_query = select(func.count(models.CoeAnalysis.id))
    if user_id is not None:
        query = query.where(models.CoeAnalysis.user_id == user_id)
        count_query = count_query.where(models.CoeAnalysis.user_id == user_id)

    total = await session.scalar(count_query)
    result = await session.execute(
        query.order_by(models.CoeAnalysis.created_at.desc(), models.CoeAnalysis.id.desc()).limit(limit).offset(offset)
    )
    return CoeAnalysisList(
        items=[CoeAnalysisOut.model_validate(row) for row in result.scalars()],
        total=total or 0,
    )


@app.get("/api/coe-analysis/{analysis_id}", response_model=CoeAnalysisOut)
async def get_coe_analysis(analysis_id: int, session: AsyncSession = Depends(get_session)) -> CoeAnalysisOut:
    record = await session.get(models.CoeAnalysis, analysis_id)
    if record is None:
        raise _not_found("CoE analysis", analysis_id)
    return CoeAnalysisOut.model_validate(record)


# Scholarships
@app.get("/api/scholarships/search", response_model=ScholarshipSearchResponse)
async def scholarship_search(
    search: str | None = Query(None, max_length=200),
    institution: str | None = Query(None),
    program_level: str | None = Query(None),
    funding_type: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> ScholarshipSearchResponse:
    """Search stored scholarships with fuzzy free-text matching."""
    page = await search_scholarships(
        session,
        SearchFilters(
            search=search,
            institution=institution,
            program_level=program_level,
            funding_type=funding_type,
            limit=limit,
            offset=offset,
        ),
    )
    hits = [
        ScholarshipSearchHit.model_validate(
            {**ScholarshipOut.model_validate(item.scholarship).model_dump(), "score": round(item.score, 1)}
        )
        for item in page.items
    ]
    return ScholarshipSearchResponse(items=hits, total=page.total, limit=page.limit, offset=page.offset)


@app.post("/api/scholarships/research", response_model=ResearchResponse, status_code=status.HTTP_201_CREATED)
async def research_scholarships(
    request: ResearchRequest,
    session: AsyncSession = Depends(get_session),
    client: LLMClient | None = Depends(provide_llm_client),
) -> ResearchResponse:
    """Research an institution's scholarships and store what was found."""
    logger.info(f"Researching scholarships for {request.institution_name}")
    result = await research_and_store_scholarships(
        session,
        request.institution_name,
        request.program_name,
        request.program_level,
        client=client,
    )
    research = result.research
    return ResearchResponse(
        status="success",
        institution_name=request.institution_name,
        research_quality=research.research_quality,
        tokens_used=research.tokens_used,
        source_urls=research.source_urls,
        scholarships=[ScholarshipOut.model_validate(row) for row in result.scholarships],
        message=f"Found {len(result.scholarships)} scholarships for {request.institution_name}",
    )


@app.get("/api/scholarships/{scholarship_id}", response_model=ScholarshipOut)
async def get_scholarship(scholarship_id: int, session: AsyncSession = Depends(get_session)) -> ScholarshipOut:
    scholarship = await session.get(models.Scholarship, scholarship_id)
    if scholarship is None:
        raise _not_found("Scholarship", scholarship_id)
    return ScholarshipOut.model_validate(scholarship)


# Destinations
@app.post(
    "/api/destination-suggestions",
    response_model=DestinationSuggestionOut,
    status_code=status.HTTP_201_CREATED,
)
async def destination_suggestions(
    request: DestinationRequest,
    user_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    client: LLMClient | None = Depends(provide_llm_client),
) -> DestinationSuggestionOut:
    """Recommend study destinations for a student profile."""
    record = await create_destination_suggestion(
        session,
        request.profile.model_dump(),
        request.context.model_dump(),
        user_id=user_id,
        client=client,
    )
    return DestinationSuggestionOut.model_validate(record)


# Users
@app.get("/api/users/{user_id}/usage", response_model=UsageOut)
async def user_usage(user_id: int, session: AsyncSession = Depends(get_session)) -> UsageOut:
    user = await session.get(models.User, user_id)
    if user is None:
        raise _not_found("User", user_id)
    return UsageOut(
        user_id=user.id,
        username=user.username,
        analysis_count=user.analysis_count,
        max_analyses=user.max_analyses,
        remaining_analyses=user.remaining_analyses,
    )


# Admin
@app.get("/api/admin/analysis-cache", response_model=AnalysisCacheResponse)
async def analysis_cache_stats() -> AnalysisCacheResponse:
    return AnalysisCacheResponse(
        offer_letter=offer_letter_cache.stats(),
        enrollment=enrollment_cache.stats(),
    )


@app.delete("/api/admin/analysis-cache", response_model=CacheClearResponse)
async def clear_analysis_cache() -> CacheClearResponse:
    """Drop every cached analysis."""
    cleared = offer_letter_cache.clear() + enrollment_cache.clear()
    logger.info(f"Cleared {cleared} cached analyses")
    return CacheClearResponse(status="success", cleared=cleared, message=f"Cleared {cleared} cached analyses")


@app.get("/api/admin/offer-letter-analyses", response_model=OfferLetterAnalysisList)
async def admin_list_offer_letter_analyses(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> OfferLetterAnalysisList:
    """All users' offer letter analyses."""
    return await _offer_letter_page(session, None, limit, offset)


@app.get("/api/admin/offer-letter-analyses/{analysis_id}", response_model=OfferLetterAnalysisOut)
async def admin_get_offer_letter_analysis(
    analysis_id: int,
    session: AsyncSession = Depends(get_session),
) -> OfferLetterAnalysisOut:
    analysis = await _load_offer_letter_analysis(session, analysis_id)
    return OfferLetterAnalysisOut.model_validate(analysis)
