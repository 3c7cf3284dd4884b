from __future__ import annotations

import asyncio

import pytest

from ai.llm import LLMError
from ai.scholarships import (
    ScholarshipResearchError,
    grade_research_quality,
    repair_scholarships,
    research_institution_scholarships,
    research_university_scholarships,
)
from darpan.pipelines.extraction import UniversityInfo

from .conftest import FakeLLM, hang

COMPLETE = {
    "scholarshipName": "Vice-Chancellor's Excellence Award",
    "description": "For high-achieving international students",
    "availableFunds": "AUD 10,000",
    "fundingType": "merit-based",
    "eligibilityCriteria": "GPA above 3.5, International student",
    "applicationDeadline": "31 October",
    "applicationProcess": "Apply online",
    "requiredDocuments": ["Transcript"],
    "scholarshipUrl": "https://example.edu/scholarships/vc",
}


def test_research_quality_grades():
    assert grade_research_quality([]) == "Low"
    assert grade_research_quality([{"scholarshipName": "Award", "description": "Useful", "availableFunds": "$5,000",
                                     "applicationDeadline": "May", "scholarshipUrl": "", "eligibilityCriteria": []}]) == "Medium"
    assert grade_research_quality([{"scholarshipName": "Unknown Scholarship"}]) == "Low"


def test_institution_research_repairs_and_grades():
    llm = FakeLLM({"scholarships": [COMPLETE, "junk"], "researchMetadata": {"sourceUrls": ["https://example.edu"]}})
    research = asyncio.run(research_institution_scholarships("Example University", "MBA", "Master", client=llm))

    assert len(research.scholarships) == 1
    item = research.scholarships[0]
    assert item["fundingType"] == "Merit-based"
    assert item["eligibilityCriteria"] == ["GPA above 3.5", "International student"]
    assert item["contactEmail"] == ""
    assert research.research_quality == "High"
    assert research.source_urls == ["https://example.edu"]
    assert research.tokens_used == 100


def test_institution_research_unparseable_answer_is_empty():
    research = asyncio.run(research_institution_scholarships("Example University", "", "", client=FakeLLM("not json")))
    assert research.scholarships == []
    assert research.research_quality == "Low"


def test_institution_research_failure_raises():
    with pytest.raises(ScholarshipResearchError):
        asyncio.run(research_institution_scholarships("Example University", "", "", client=FakeLLM(LLMError("down"))))


def test_university_research_times_out_with_empty_list():
    info = UniversityInfo("University of Toronto", "Master of Engineering", "Toronto")
    research = asyncio.run(research_university_scholarships(info, client=FakeLLM(hang), timeout=0.05))
    assert research.scholarships == []
    assert research.tokens_used == 0


def test_repair_scholarships_ignores_non_objects():
    assert repair_scholarships("none") == []
    items = repair_scholarships([{"name": "Award", "criteria": "A, B"}, 3])
    assert len(items) == 1
    assert items[0]["criteria"] == ["A", "B"]
    assert items[0]["studentProfileMatch"]["overallMatch"] == 50
