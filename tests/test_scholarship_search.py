from __future__ import annotations

import pytest

from darpan import models
from darpan.pipelines.scholarship_search import SearchFilters, search_scholarships

ROWS = [
    ("Monash University", "Master", "Merit-based", "Monash International Merit Scholarship",
     "Awarded to international students with outstanding academic results"),
    ("Monash University", "Bachelor", "Need-based", "Monash Equity Scholarship",
     "Support for students experiencing financial hardship"),
    ("University of Toronto", "Master", "Merit-based", "Lester B. Pearson Scholarship",
     "Covers tuition, books and residence for exceptional students"),
]


@pytest.fixture
def seeded(run_db):
    async def seed(session):
        session.add_all([
            models.Scholarship(
                institution_name=institution,
                program_level=level,
                funding_type=funding,
                scholarship_name=name,
                description=description,
                eligibility_criteria=[],
                required_documents=[],
            )
            for institution, level, funding, name, description in ROWS
        ])
        await session.commit()

    run_db(seed)
    return run_db


def names(page):
    return [item.scholarship.scholarship_name for item in page.items]


def test_filters_are_case_insensitive(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(institution="monash", program_level="master")))
    assert names(page) == ["Monash International Merit Scholarship"]
    assert page.total == 1


def test_funding_type_filter(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(funding_type="MERIT-BASED")))
    assert page.total == 2


def test_fuzzy_search_ranks_best_match_first(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(search="pearson scholarship")))
    assert names(page)[0] == "Lester B. Pearson Scholarship"
    assert all(item.score >= 60 for item in page.items)


def test_unrelated_search_matches_nothing(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(search="zzqx")))
    assert page.items == []
    assert page.total == 0


def test_pagination(seeded):
    first = seeded(lambda s: search_scholarships(s, SearchFilters(limit=2)))
    second = seeded(lambda s: search_scholarships(s, SearchFilters(limit=2, offset=2)))
    assert first.total == second.total == 3
    assert len(first.items) == 2
    assert len(second.items) == 1
    assert set(names(first)).isdisjoint(names(second))


def test_limit_capped(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(limit=10_000)))
    assert page.limit == 100


def test_like_wildcards_are_literal(seeded):
    assert seeded(lambda s: search_scholarships(s, SearchFilters(program_level="%"))).total == 0
    assert seeded(lambda s: search_scholarships(s, SearchFilters(funding_type="Merit_based"))).total == 0
    assert seeded(lambda s: search_scholarships(s, SearchFilters(institution="%Toronto"))).total == 0


def test_listing_without_term_counts_all_rows(seeded):
    page = seeded(lambda s: search_scholarships(s, SearchFilters(institution="monash", limit=1, offset=1)))
    assert page.total == 2
    assert len(page.items) == 1
