from __future__ import annotations

import asyncio
import io

import pytest
from fastapi import UploadFile
from sqlalchemy import func, select

from ai.llm import LLMError
from config import fallbacks
from darpan import api, models
from darpan.config import settings
from darpan.parsers import ParseError
from darpan.pipelines import processing

from .conftest import OFFER_LETTER_TEXT
from .test_offer_letter import ANALYSIS, RESEARCH

PDF = ("offer.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture
def document_text(monkeypatch):
    """Skip real PDF parsing: uploads read as the given text."""
    state = {"text": OFFER_LETTER_TEXT}

    def fake_read(content, filename):
        return state["text"]

    monkeypatch.setattr(processing, "read_document", fake_read)
    return state


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_root_lists_endpoints(client):
    assert "offer_letter_analysis" in client.get("/").json()["endpoints"]


def test_oversized_upload_rejected_before_llm(client, fake_llm, monkeypatch):
    monkeypatch.setattr(settings.uploads, "max_file_size", 1024)
    response = client.post(
        "/api/offer-letter-analyses/analyze",
        files={"document": ("offer.pdf", b"%PDF" + b"0" * 2048, "application/pdf")},
    )
    assert response.status_code == 413
    assert response.json()["error"] == "invalid_upload"
    assert fake_llm.calls == []


def test_ten_megabyte_limit(client, fake_llm):
    response = client.post(
        "/api/analyze",
        files={"file": ("big.pdf", b"0" * (10 * 1024 * 1024 + 1), "application/pdf")},
    )
    assert response.status_code == 413
    assert fake_llm.calls == []


def test_disallowed_mime_type_rejected(client, fake_llm):
    response = client.post(
        "/api/offer-letter-analyses/analyze",
        files={"document": ("offer.docx", b"PK\x03\x04", "application/vnd.openxmlformats-officedocument")},
    )
    assert response.status_code == 415
    assert fake_llm.calls == []


def test_missing_file_rejected(client):
    response = client.post("/api/coe-analysis")
    assert response.status_code == 400


def test_parse_error_is_400(client, monkeypatch):
    def unreadable(content, filename):
        raise ParseError("No text could be extracted from the PDF")

    monkeypatch.setattr(processing, "read_document", unreadable)
    response = client.post("/api/analyze", files={"file": PDF})
    assert response.status_code == 400
    assert response.json() == {"error": "parse_error", "detail": "No text could be extracted from the PDF"}


def test_offer_letter_flow_persists_analysis(client, fake_llm, document_text):
    fake_llm.responses.extend([RESEARCH, ANALYSIS])

    response = client.post("/api/offer-letter-analyses/analyze", files={"document": PDF})
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "completed"
    assert body["cached"] is False
    assert body["tokens_used"] == 200
    assert body["total_ai_cost"] == "$0.0020"
    assert body["document"]["institution_name"] == "University of Melbourne"
    assert body["document"]["student_name"] == "Priya Sharma"
    assert body["analysis_results"]["universityInfo"]["program"] == "Master of Data Science"

    detail = client.get(f"/api/offer-letter-analyses/{body['id']}")
    assert detail.status_code == 200
    assert detail.json()["analysis_results"] == body["analysis_results"]

    listing = client.get("/api/offer-letter-analyses").json()
    assert listing["total"] == 1

    stats = client.get("/api/admin/analysis-cache").json()
    assert stats["offer_letter"]["size"] == 1


def test_repeat_offer_letter_served_from_cache(client, fake_llm, document_text):
    fake_llm.responses.extend([RESEARCH, ANALYSIS])
    client.post("/api/offer-letter-analyses/analyze", files={"document": PDF})

    response = client.post("/api/offer-letter-analyses/analyze", files={"document": PDF})
    body = response.json()
    assert body["cached"] is True
    assert body["tokens_used"] == 0
    assert len(fake_llm.calls) == 2


def test_offer_letter_llm_failure_still_stored(client, fake_llm, document_text):
    fake_llm.responses.extend([{"scholarships": []}, LLMError("quota exceeded")])

    body = client.post("/api/offer-letter-analyses/analyze", files={"document": PDF}).json()
    assert body["status"] == "failed"
    assert body["analysis_results"]["universityInfo"]["name"] == fallbacks.ANALYSIS_ERROR


def test_delete_offer_letter_analysis(client, fake_llm, document_text, run_db):
    fake_llm.responses.extend([RESEARCH, ANALYSIS])
    analysis_id = client.post("/api/offer-letter-analyses/analyze", files={"document": PDF}).json()["id"]

    assert client.delete(f"/api/offer-letter-analyses/{analysis_id}").status_code == 204
    assert client.get(f"/api/offer-letter-analyses/{analysis_id}").status_code == 404

    async def count_documents(session):
        return await session.scalar(
            select(func.count(models.OfferLetterDocument.id))
        )

    assert run_db(count_documents) == 0


def test_quota_counts_and_blocks(client, fake_llm, document_text, make_user):
    user_id = make_user(analysis_count=2, max_analyses=3)
    fake_llm.responses.extend([RESEARCH, ANALYSIS])

    response = client.post(f"/api/offer-letter-analyses/analyze?user_id={user_id}", files={"document": PDF})
    assert response.status_code == 201

    usage = client.get(f"/api/users/{user_id}/usage").json()
    assert usage["analysis_count"] == 3
    assert usage["remaining_analyses"] == 0

    blocked = client.post(f"/api/offer-letter-analyses/analyze?user_id={user_id}", files={"document": PDF})
    assert blocked.status_code == 403
    assert blocked.json()["error"] == "usage_limit_exceeded"
    assert len(fake_llm.calls) == 2


def test_failed_analysis_not_charged(client, fake_llm, document_text, make_user):
    user_id = make_user()
    fake_llm.responses.append(LLMError("down"))

    response = client.post(f"/api/analyze?user_id={user_id}", files={"file": PDF})
    assert response.status_code == 201
    assert response.json()["status"] == "failed"
    assert client.get(f"/api/users/{user_id}/usage").json()["analysis_count"] == 0


def test_visa_analysis_endpoints(client, fake_llm, document_text):
    document_text["text"] = "Your student visa application has been refused."
    fake_llm.responses.append({
        "summary": "Refused",
        "documentType": "rejection",
        "rejectionReasons": [{"title": "Funds", "description": "Insufficient", "category": "financial"}],
    })

    created = client.post("/api/analyze", files={"file": PDF})
    assert created.status_code == 201
    analysis_id = created.json()["id"]
    assert created.json()["rejection_reasons"][0]["category"] == "financial"

    assert client.get(f"/api/analyses/{analysis_id}").json()["summary"] == "Refused"
    assert client.get("/api/analyses").json()["total"] == 1
    assert client.get("/api/analyses/999").status_code == 404


def test_coe_analysis_endpoints(client, fake_llm, document_text):
    document_text["text"] = "Confirmation of Enrolment\nCRICOS Provider Code: 00026A\nProvider Name: University of Sydney"
    fake_llm.responses.append({"summary": "Valid CoE"})

    created = client.post("/api/coe-analysis", files={"file": PDF}, data={"document_type": "coe"})
    assert created.status_code == 201
    body = created.json()
    assert body["extracted_info"]["country"] == "Australia"
    assert body["extracted_info"]["country_specific"]["cricosCode"] == "00026A"
    assert body["analysis_results"]["institutionName"] == "University of Sydney"

    assert client.get(f"/api/coe-analysis/{body['id']}").status_code == 200
    assert client.get("/api/coe-analysis").json()["total"] == 1


def test_scholarship_research_and_search(client, fake_llm):
    fake_llm.responses.append({
        "scholarships": [{
            "scholarshipName": "Global Excellence Scholarship",
            "description": "For international postgraduates",
            "availableFunds": "CAD 10,000",
            "fundingType": "Merit-based",
            "eligibilityCriteria": ["Offer of admission"],
            "applicationDeadline": "1 March",
            "scholarshipUrl": "https://example.ca/global",
        }],
    })

    research = client.post(
        "/api/scholarships/research",
        json={"institution_name": "Example University", "program_name": "MBA", "program_level": "Master"},
    )
    assert research.status_code == 201
    body = research.json()
    assert body["research_quality"] == "High"
    scholarship_id = body["scholarships"][0]["id"]

    found = client.get("/api/scholarships/search", params={"search": "global excellence"}).json()
    assert found["total"] == 1
    assert found["items"][0]["scholarship_name"] == "Global Excellence Scholarship"

    assert client.get(f"/api/scholarships/{scholarship_id}").json()["funding_type"] == "Merit-based"
    assert client.get("/api/scholarships/999").status_code == 404


def test_scholarship_research_failure_is_502(client, fake_llm):
    fake_llm.responses.append(LLMError("down"))
    response = client.post("/api/scholarships/research", json={"institution_name": "Example University"})
    assert response.status_code == 502
    assert response.json()["error"] == "research_error"


def test_destination_suggestions(client, fake_llm):
    fake_llm.responses.append(LLMError("down"))
    response = client.post(
        "/api/destination-suggestions",
        json={"profile": {"first_name": "Aarav", "preferred_countries": ["Canada"]}},
    )
    assert response.status_code == 201
    assert response.json()["status"] == "failed"
    assert response.json()["analysis"]["topRecommendations"]


def test_cache_admin(client, fake_llm, document_text):
    fake_llm.responses.extend([RESEARCH, ANALYSIS])
    client.post("/api/offer-letter-analyses/analyze", files={"document": PDF})

    cleared = client.delete("/api/admin/analysis-cache").json()
    assert cleared["cleared"] == 1
    assert client.get("/api/admin/analysis-cache").json()["offer_letter"]["size"] == 0


def test_admin_offer_letter_listing(client, fake_llm, document_text, make_user):
    user_id = make_user()
    fake_llm.responses.extend([RESEARCH, ANALYSIS])
    client.post(f"/api/offer-letter-analyses/analyze?user_id={user_id}", files={"document": PDF})

    listing = client.get("/api/admin/offer-letter-analyses").json()
    assert listing["total"] == 1
    assert listing["items"][0]["user_id"] == user_id
    assert client.get("/api/admin/offer-letter-analyses/42").status_code == 404


def test_unknown_user_usage_is_404(client):
    response = client.get("/api/users/123/usage")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_upload_read_stops_past_size_limit(monkeypatch):
    monkeypatch.setattr(settings.uploads, "max_file_size", 1024)
    file = UploadFile(io.BytesIO(b"0" * 50_000), filename="big.pdf")

    upload = asyncio.run(api._read_upload(file))
    assert len(upload.content) == 1025
