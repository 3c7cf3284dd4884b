"""Request and response models for the HTTP API.

Analysis payloads are passed through as stored (camelCase keys, the shape the
analyzers guarantee); the envelopes around them are snake_case.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class VisaAnalysisOut(BaseModel):
    """Stored visa document analysis."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    filename: str
    document_type: str
    summary: str
    rejection_reasons: list[dict[str, Any]] = Field(default_factory=list)
    key_terms: list[dict[str, Any]] = Field(default_factory=list)
    recommendations: list[dict[str, Any]] = Field(default_factory=list)
    next_steps: list[dict[str, Any]] = Field(default_factory=list)
    status: str
    tokens_used: int
    processing_time_ms: int
    created_at: datetime


class VisaAnalysisList(BaseModel):
    items: list[VisaAnalysisOut]
    total: int


class OfferLetterDocumentOut(BaseModel):
    """Offer letter metadata (without the full text)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    file_size: int
    institution_name: str | None = None
    program_name: str | None = None
    student_name: str | None = None
    tuition_amount: str | None = None
    start_date: str | None = None
    created_at: datetime


class OfferLetterAnalysisOut(BaseModel):
    """Offer letter analysis with its source document."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    document: OfferLetterDocumentOut
    analysis_results: dict[str, Any]
    status: str
    tokens_used: int
    processing_time_ms: int
    total_ai_cost: str
    created_at: datetime
    cached: bool = False


class OfferLetterAnalysisList(BaseModel):
    items: list[OfferLetterAnalysisOut]
    total: int


class CoeAnalysisOut(BaseModel):
    """Stored Confirmation of Enrollment analysis."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    file_name: str
    file_size: int
    document_type: str
    extracted_info: dict[str, Any] | None = None
    analysis_results: dict[str, Any]
    status: str
    tokens_used: int
    processing_time_ms: int
    created_at: datetime


class CoeAnalysisList(BaseModel):
    items: list[CoeAnalysisOut]
    total: int


class ScholarshipOut(BaseModel):
    """Researched scholarship."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    institution_name: str
    program_name: str | None = None
    program_level: str | None = None
    scholarship_name: str
    description: str | None = None
    available_funds: str | None = None
    funding_type: str | None = None
    eligibility_criteria: list[str] = Field(default_factory=list)
    application_deadline: str | None = None
    application_process: str | None = None
    required_documents: list[str] = Field(default_factory=list)
    scholarship_url: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    number_of_awards: str | None = None
    renewal_criteria: str | None = None
    additional_benefits: str | None = None
    source_url: str | None = None
    research_quality: str
    created_at: datetime


class ScholarshipSearchHit(ScholarshipOut):
    score: float


class ScholarshipSearchResponse(BaseModel):
    """Paginated scholarship search results."""
    items: list[ScholarshipSearchHit]
    total: int
    limit: int
    offset: int


class ResearchRequest(BaseModel):
    """Institution scholarship research request."""
    institution_name: str = Field(min_length=1, max_length=255)
    program_name: str = Field(default="", max_length=255)
    program_level: str = Field(default="", max_length=50)


class ResearchResponse(BaseModel):
    """Research outcome and the rows it stored."""
    status: str
    institution_name: str
    research_quality: str
    tokens_used: int
    source_urls: list[str] = Field(default_factory=list)
    scholarships: list[ScholarshipOut]
    message: str


class StudentProfileIn(BaseModel):
    """Student profile for destination suggestions."""
    first_name: str | None = None
    last_name: str | None = None
    nationality: str | None = None
    country: str | None = None
    highest_qualification: str | None = None
    highest_institution: str | None = None
    highest_gpa: str | None = None
    graduation_year: int | None = Field(default=None, ge=1950, le=2100)
    interested_course: str | None = None
    field_of_study: str | None = None
    preferred_intake: str | None = None
    budget_range: str | None = None
    preferred_countries: list[str] = Field(default_factory=list)
    current_employment_status: str | None = None
    english_proficiency_tests: list[dict[str, Any]] | str | None = None


class DestinationContextIn(BaseModel):
    """Free-form context supplied alongside the profile."""
    user_preferences: str | None = None
    current_education: str | None = None
    academic_performance: str | None = None
    work_experience: str | None = None
    additional_context: str | None = None


class DestinationRequest(BaseModel):
    """Destination suggestion request."""
    profile: StudentProfileIn
    context: DestinationContextIn = Field(default_factory=DestinationContextIn)


class DestinationSuggestionOut(BaseModel):
    """Stored destination recommendations."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    analysis: dict[str, Any]
    status: str
    tokens_used: int
    processing_time_ms: int
    created_at: datetime


class UsageOut(BaseModel):
    """Analysis quota for a user."""
    user_id: int
    username: str
    analysis_count: int
    max_analyses: int
    remaining_analyses: int


class CacheStatsOut(BaseModel):
    size: int
    max_size: int
    ttl_seconds: float
    hits: int
    misses: int


class AnalysisCacheResponse(BaseModel):
    """Per-analyzer cache statistics."""
    offer_letter: CacheStatsOut
    enrollment: CacheStatsOut


class CacheClearResponse(BaseModel):
    status: str
    cleared: int
    message: str
