"""Search over stored scholarships.

Structured filters run in SQL; the free-text term is matched with rapidfuzz
against name, institution, program and description, so near misses like
"Monash Univ" or "merit scholarship" still find rows.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from rapidfuzz import fuzz, utils
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from darpan import models
from darpan.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SearchFilters:
    search: str | None = None
    institution: str | None = None
    program_level: str | None = None
    funding_type: str | None = None
    limit: int | None = None
    offset: int = 0


@dataclass
class ScoredScholarship:
    scholarship: models.Scholarship
    score: float


@dataclass
class SearchPage:
    items: list[ScoredScholarship]
    total: int
    limit: int
    offset: int


def relevance(query: str, scholarship: models.Scholarship) -> float:
    """Best weighted-ratio score of the query against the searchable fields (0-100)."""
    fields = (
        scholarship.scholarship_name,
        scholarship.institution_name,
        scholarship.program_name,
        scholarship.description,
    )
    return max(
        (fuzz.WRatio(query, value, processor=utils.default_process) for value in fields if value),
        default=0.0,
    )


def _clamp_limit(limit: int | None) -> int:
    if limit is None or limit <= 0:
        return settings.search.default_limit
    return min(limit, settings.search.max_limit)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filtered(query, filters: SearchFilters):
    scholarship = models.Scholarship
    if filters.institution:
        query = query.where(scholarship.institution_name.ilike(f"%{_escape_like(filters.institution)}%", escape="\\"))
    if filters.program_level:
        query = query.where(scholarship.program_level.ilike(_escape_like(filters.program_level), escape="\\"))
    if filters.funding_type:
        query = query.where(scholarship.funding_type.ilike(_escape_like(filters.funding_type), escape="\\"))
    return query


async def search_scholarships(session: AsyncSession, filters: SearchFilters) -> SearchPage:
    """Filter, rank and paginate stored scholarships.

    Without a search term rows come back newest first and are paged in SQL;
    with one they are ordered by relevance and rows below
    ``SEARCH_FUZZY_THRESHOLD`` are dropped.
    """
    limit = _clamp_limit(filters.limit)
    offset = max(0, filters.offset)

    query = _filtered(select(models.Scholarship), filters).order_by(
        models.Scholarship.created_at.desc(), models.Scholarship.id.desc()
    )

    term = (filters.search or "").strip()
    if not term:
        total = await session.scalar(_filtered(select(func.count(models.Scholarship.id)), filters))
        result = await session.execute(query.limit(limit).offset(offset))
        items = [ScoredScholarship(row, 100.0) for row in result.scalars().all()]
        logger.info(f"Scholarship listing: {len(items)} of {total} rows")
        return SearchPage(items=items, total=total or 0, limit=limit, offset=offset)

    result = await session.execute(query)
    rows = list(result.scalars().all())
    threshold = settings.search.fuzzy_threshold
    scored = [ScoredScholarship(row, relevance(term, row)) for row in rows]
    scored = [item for item in scored if item.score >= threshold]
    scored.sort(key=lambda item: item.score, reverse=True)

    logger.info(f"Scholarship search '{term}': {len(scored)} of {len(rows)} rows matched")
    return SearchPage(
        items=scored[offset:offset + limit],
        total=len(scored),
        limit=limit,
        offset=offset,
    )
