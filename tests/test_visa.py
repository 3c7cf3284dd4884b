from __future__ import annotations

import asyncio

from ai.llm import LLMError
from ai.visa import analyze_visa_document
from config import fallbacks
from darpan.models import AnalysisStatus

from .conftest import FakeLLM

REFUSAL = "Your application for a Student visa (subclass 500) has been refused."


def test_rejection_letter():
    answer = {
        "summary": "Visa refused over financial capacity.",
        "documentType": "Rejection",
        "rejectionReasons": [
            {"title": "Insufficient funds", "description": "Bank statements too short", "category": "financial",
             "severity": "HIGH"},
            {"title": "Vague study plan", "category": "made-up"},
        ],
        "recommendations": [{"title": "Show 12 months of funds", "description": "Provide sponsor documents"}],
    }
    outcome = asyncio.run(analyze_visa_document(REFUSAL, "refusal.pdf", client=FakeLLM(answer)))

    assert outcome.status == AnalysisStatus.COMPLETED
    analysis = outcome.analysis
    assert analysis["documentType"] == "rejection"
    assert analysis["rejectionReasons"][0]["severity"] == "high"
    assert analysis["rejectionReasons"][1]["category"] == "general"
    assert analysis["keyTerms"] == []
    assert analysis["nextSteps"] == fallbacks.VISA_NEXT_STEPS


def test_document_type_inferred_from_content():
    answer = {"summary": "Granted.", "keyTerms": [{"title": "Work limit", "category": "work_permission"}]}
    outcome = asyncio.run(analyze_visa_document("Visa grant notice", client=FakeLLM(answer)))
    assert outcome.analysis["documentType"] == "approval"


def test_api_error_summary():
    outcome = asyncio.run(analyze_visa_document(REFUSAL, client=FakeLLM(LLMError("timeout"))))
    assert outcome.status == AnalysisStatus.FAILED
    assert outcome.analysis["summary"].startswith(fallbacks.ANALYSIS_ERROR)
    assert outcome.analysis["recommendations"] == fallbacks.VISA_RECOMMENDATIONS


def test_malformed_answer_uses_defaults():
    outcome = asyncio.run(analyze_visa_document(REFUSAL, client=FakeLLM('{"summary": ')))
    assert outcome.status == AnalysisStatus.DEGRADED
    assert outcome.analysis["documentType"] == "rejection"
