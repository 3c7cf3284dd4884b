from __future__ import annotations

import asyncio
import copy

from ai.destinations import sample_analysis, suggest_destinations
from ai.llm import LLMError
from config import fallbacks
from darpan.models import AnalysisStatus

from .conftest import FakeLLM

PROFILE = {
    "first_name": "Aarav",
    "nationality": "Nepali",
    "highest_qualification": "Bachelor",
    "highest_gpa": "3.4",
    "interested_course": "Data Science",
    "budget_range": "USD 20,000-30,000",
    "preferred_countries": ["Canada", "Australia"],
}


def test_recommendations_repaired_to_sample_shape():
    answer = copy.deepcopy(fallbacks.SAMPLE_DESTINATION_ANALYSIS)
    answer["topRecommendations"][0]["country"] = "Australia"
    answer["topRecommendations"][0]["matchScore"] = "91"
    answer["personlizedTimeline"] = answer.pop("personalizedTimeline")
    del answer["overallMatchScore"]

    llm = FakeLLM(answer)
    outcome = asyncio.run(suggest_destinations(PROFILE, {"work_experience": "2 years analyst"}, client=llm))

    assert outcome.status == AnalysisStatus.COMPLETED
    top = outcome.analysis["topRecommendations"][0]
    assert top["country"] == "Australia"
    assert top["matchScore"] == 91
    assert outcome.analysis["overallMatchScore"] == 0
    assert "personalizedTimeline" in outcome.analysis
    assert "personlizedTimeline" not in outcome.analysis

    prompt = llm.calls[0]["prompt"]
    assert "Preferred Countries: Canada, Australia" in prompt
    assert "Work Experience: 2 years analyst" in prompt
    assert "Graduation Year: Not specified" in prompt


def test_api_error_returns_sample():
    outcome = asyncio.run(suggest_destinations(PROFILE, client=FakeLLM(LLMError("down"))))
    assert outcome.status == AnalysisStatus.FAILED
    assert outcome.analysis == sample_analysis()


def test_empty_recommendations_return_sample():
    outcome = asyncio.run(suggest_destinations(PROFILE, client=FakeLLM({"executiveSummary": "Nothing"})))
    assert outcome.status == AnalysisStatus.DEGRADED
    assert outcome.analysis["topRecommendations"][0]["country"] == "Canada"
