"""SQLAlchemy 2.x models for users, uploaded documents and their analyses.

Analysis payloads are stored as JSON blobs exactly as returned to clients.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class AnalysisStatus:
    """Outcome of an AI analysis run."""
    COMPLETED = "completed"
    DEGRADED = "degraded"
    FAILED = "failed"


class User(Base):
    """Users, tracked only for analysis quotas."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    first_name: Mapped[str | None] = mapped_column(String(150))
    last_name: Mapped[str | None] = mapped_column(String(150))
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="user")
    analysis_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_analyses: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    analyses: Mapped[list[Analysis]] = relationship("Analysis", back_populates="user")

    @property
    def remaining_analyses(self) -> int:
        return max(0, self.max_analyses - self.analysis_count)


class Analysis(Base):
    """Visa approval/rejection document analyses."""
    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[str] = mapped_column(String(20), nullable=False, default="rejection")
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rejection_reasons: Mapped[list | None] = mapped_column(JSON)
    key_terms: Mapped[list | None] = mapped_column(JSON)
    recommendations: Mapped[list | None] = mapped_column(JSON)
    next_steps: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AnalysisStatus.COMPLETED)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    user: Mapped[User | None] = relationship("User", back_populates="analyses")

    __table_args__ = (
        Index("ix_analyses_created_at", "created_at"),
    )


class OfferLetterDocument(Base):
    """Uploaded offer letters with the regex-extracted header fields."""
    __tablename__ = "offer_letter_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    document_text: Mapped[str] = mapped_column(Text, nullable=False)
    institution_name: Mapped[str | None] = mapped_column(String(255), index=True)
    program_name: Mapped[str | None] = mapped_column(String(255))
    student_name: Mapped[str | None] = mapped_column(String(255))
    tuition_amount: Mapped[str | None] = mapped_column(String(100))
    start_date: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    analyses: Mapped[list[OfferLetterAnalysis]] = relationship(
        "OfferLetterAnalysis",
        back_populates="document",
        cascade="all, delete-orphan",
    )


class OfferLetterAnalysis(Base):
    """AI analysis results for an offer letter."""
    __tablename__ = "offer_letter_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        ForeignKey("offer_letter_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    analysis_results: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AnalysisStatus.COMPLETED)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_ai_cost: Mapped[str] = mapped_column(String(20), nullable=False, default="$0.0000")
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    document: Mapped[OfferLetterDocument] = relationship("OfferLetterDocument", back_populates="analyses")

    __table_args__ = (
        Index("ix_offer_letter_analyses_created_at", "created_at"),
    )


class CoeAnalysis(Base):
    """Confirmation of Enrollment analyses."""
    __tablename__ = "coe_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False, default="coe")
    document_text: Mapped[str] = mapped_column(Text, nullable=False)
    extracted_info: Mapped[dict | None] = mapped_column(JSON)
    analysis_results: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AnalysisStatus.COMPLETED)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)


class Scholarship(Base):
    """Scholarships found by institution research."""
    __tablename__ = "scholarships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    institution_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    program_name: Mapped[str | None] = mapped_column(String(255))
    program_level: Mapped[str | None] = mapped_column(String(50), index=True)
    scholarship_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    available_funds: Mapped[str | None] = mapped_column(String(255))
    funding_type: Mapped[str | None] = mapped_column(String(50), index=True)
    eligibility_criteria: Mapped[list | None] = mapped_column(JSON)
    application_deadline: Mapped[str | None] = mapped_column(String(255))
    application_process: Mapped[str | None] = mapped_column(Text)
    required_documents: Mapped[list | None] = mapped_column(JSON)
    scholarship_url: Mapped[str | None] = mapped_column(String(500))
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(100))
    number_of_awards: Mapped[str | None] = mapped_column(String(100))
    renewal_criteria: Mapped[str | None] = mapped_column(Text)
    additional_benefits: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(String(500))
    research_tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    research_quality: Mapped[str] = mapped_column(String(20), nullable=False, default="Low")
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_scholarships_institution_level", "institution_name", "program_level"),
    )


class DestinationSuggestion(Base):
    """Personalized study-destination recommendations."""
    __tablename__ = "destination_suggestions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    request: Mapped[dict] = mapped_column(JSON, nullable=False)
    analysis: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AnalysisStatus.COMPLETED)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
