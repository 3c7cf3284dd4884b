from __future__ import annotations

import pytest

from darpan.pipelines.extraction import (
    UniversityInfo,
    detect_country,
    detect_document_type,
    extract_coe_fields,
    extract_offer_letter_fields,
    extract_student_profile,
    extract_university_info,
    first_match,
    PROGRAM_PATTERNS,
)

from .conftest import OFFER_LETTER_TEXT


def test_university_info_from_offer_letter():
    info = extract_university_info(OFFER_LETTER_TEXT)
    assert info.university_name == "University of Melbourne"
    assert info.program == "Master of Data Science"
    assert info.location == "Parkville, Melbourne VIC"


def test_university_suffix_form():
    info = extract_university_info("You have been admitted to Monash University for 2025.")
    assert info.university_name == "Monash University"


def test_college_and_institute_forms():
    assert extract_university_info("Welcome to Imperial College London").university_name == "Imperial College"
    assert (
        extract_university_info("Royal Melbourne Institute of Technology\nOffer").university_name
        == "Royal Melbourne Institute of Technology"
    )


def test_labelled_program_wins_over_degree_phrase():
    text = "Course: Graduate Certificate in Business\nPathway to Master of Business Administration"
    assert first_match(text, PROGRAM_PATTERNS) == "Graduate Certificate in Business"


def test_degree_phrase_without_label():
    info = extract_university_info("an offer for the Bachelor of Computer Science starting in July")
    assert info.program == "Bachelor of Computer Science"


def test_located_in_phrase():
    info = extract_university_info("The campus is located in Toronto, Ontario.")
    assert info.location == "Toronto, Ontario"


@pytest.mark.parametrize("text", [
    "",
    None,
    "lorem ipsum dolor sit amet",
    "1234 5678 !!! ???",
    "\n\n\t  \n",
    "university",
])
def test_unrecognized_text_gives_empty_fields(text):
    assert extract_university_info(text) == UniversityInfo("", "", "")


def test_student_profile():
    profile = extract_student_profile(OFFER_LETTER_TEXT)
    assert profile.gpa == "3.6/4.0"
    assert profile.nationality == "Indian"
    assert extract_student_profile("nothing here").is_empty()


def test_offer_letter_fields():
    fields = extract_offer_letter_fields(OFFER_LETTER_TEXT)
    assert fields.institution_name == "University of Melbourne"
    assert fields.student_name == "Priya Sharma"
    assert fields.program_name == "Master of Data Science"
    assert fields.tuition_amount == "AUD 48,000"
    assert fields.start_date == "24 February 2025"


def test_offer_letter_fields_missing_are_none():
    fields = extract_offer_letter_fields("Thank you for your interest.")
    assert fields.institution_name is None
    assert fields.tuition_amount is None


@pytest.mark.parametrize("text,country", [
    ("CRICOS Provider Code: 00116K", "Australia"),
    ("Form I-20 Certificate of Eligibility, SEVIS ID: N0012345678", "USA"),
    ("Confirmation of Acceptance for Studies issued in the United Kingdom", "UK"),
    ("Designated Learning Institution in Canada", "Canada"),
    ("Some other letter", "Other"),
])
def test_detect_country(text, country):
    assert detect_country(text) == country


def test_detect_document_type():
    assert detect_document_type("Electronic Confirmation of Enrolment") == "COE"
    assert detect_document_type("Form I-20") == "I-20 Form"
    assert detect_document_type("Your CAS Statement") == "CAS Statement"
    assert detect_document_type("Letter of Offer") == "Offer Letter"
    assert detect_document_type("receipt") == "Other"


def test_coe_fields_australia():
    text = (
        "Electronic Confirmation of Enrolment\n"
        "Provider Name: University of Sydney\n"
        "CRICOS Provider Code: 00026A\n"
        "Student ID: 480123456\n"
        "Course: Master of Engineering\n"
        "Course Start Date: 03/03/2025\n"
        "Course End Date: 28/11/2026\n"
        "OSHC Provider: Allianz Care Australia\n"
        "Total tuition fee: A$ 98,000\n"
    )
    fields = extract_coe_fields(text)
    assert fields.country == "Australia"
    assert fields.document_type == "COE"
    assert fields.institution_name == "University of Sydney"
    assert fields.student_id == "480123456"
    assert fields.program_level == "Master"
    assert fields.start_date == "03/03/2025"
    assert fields.end_date == "28/11/2026"
    assert fields.currency == "AUD"
    assert fields.country_specific == {"cricosCode": "00026A", "oshcProvider": "Allianz Care Australia"}


def test_coe_fields_usa_identifiers():
    fields = extract_coe_fields("Form I-20\nSEVIS ID: N0012345678\nSchool Code: NYC214F00123\nUSD 40,000")
    assert fields.country == "USA"
    assert fields.country_specific["sevisId"] == "N0012345678"
    assert fields.country_specific["schoolCode"] == "NYC214F00123"
    assert fields.currency == "USD"


def test_coe_fields_never_raise_on_garbage():
    fields = extract_coe_fields("\x00\x01 ~~~ ")
    assert fields.country == "Other"
    assert fields.country_specific == {}
    assert fields.to_dict()["student_id"] == ""
