from __future__ import annotations

from medclaim.processors.language import Language
from medclaim.processors.validation import validate_extraction_result
from medclaim.schemas import ExtractionMetadata, ExtractionResult

FULL_CORE = {
    "patientName": "홍길동",
    "hospitalName": "서울병원",
    "treatmentDate": "2024-03-15",
    "department": "내과 (Internal Medicine)",
    "totalCost": "120000",
}


def make_result(data: dict[str, str], accuracy: int, language: Language | None = Language.korean) -> ExtractionResult:
    return ExtractionResult(
        success=True,
        data=data,
        accuracy=accuracy,
        confidence=0.5,
        metadata=ExtractionMetadata(method="text", language=language),
    )


def test_minimal_korean_form_passes_with_warnings() -> None:
    data = {"patientName": "홍길동 병원명", "hospitalName": "서울병원", "address": "서울병원"}
    validation = validate_extraction_result(make_result(data, accuracy=10))

    assert validation.score == 62
    assert validation.is_valid is True
    assert validation.issues == [
        "Missing multiple important fields: treatmentDate, department, totalCost",
        "Low extraction accuracy detected",
    ]
    assert validation.suggestions == [
        "Ensure the document is clear and contains medical treatment information",
        "Document quality may be poor - try a clearer scan or photo",
    ]
    assert validation.field_coverage.required == 2
    assert validation.field_coverage.important == 0
    assert validation.field_coverage.optional == 1
    assert validation.field_coverage.total == 3


def test_empty_extraction_scores_low() -> None:
    validation = validate_extraction_result(make_result({}, accuracy=0, language=Language.unknown))

    assert validation.score == 10
    assert validation.is_valid is False
    assert validation.issues[0] == "Missing required fields: patientName, hospitalName"
    assert "Document does not appear to contain recognizable medical text" in validation.issues
    assert validation.suggestions[-1] == "Consider uploading a different document or improving image quality"


def test_complete_form_is_capped_at_100() -> None:
    data = {**FULL_CORE, "phone": "02-123-4567", "diagnosis": "요통", "treatment": "물리치료"}
    validation = validate_extraction_result(make_result(data, accuracy=85))

    assert validation.score == 100
    assert validation.is_valid is True
    assert validation.issues == []


def test_missing_required_field_is_never_valid() -> None:
    data = {key: value for key, value in FULL_CORE.items() if key != "hospitalName"}
    data.update({"phone": "02-123-4567", "diagnosis": "요통", "treatment": "물리치료"})
    validation = validate_extraction_result(make_result(data, accuracy=85))

    assert validation.score == 65
    assert validation.is_valid is False
    assert validation.issues == ["Missing required fields: hospitalName"]


def test_single_missing_important_field() -> None:
    data = {key: value for key, value in FULL_CORE.items() if key != "department"}
    validation = validate_extraction_result(make_result(data, accuracy=85))

    assert validation.score == 40 + 20 + 10 + 5
    assert validation.issues == ["Missing some important fields: department"]


def test_accuracy_bands() -> None:
    assert validate_extraction_result(make_result(FULL_CORE, accuracy=80)).score == 85
    assert validate_extraction_result(make_result(FULL_CORE, accuracy=65)).score == 80
    mid_band = validate_extraction_result(make_result(FULL_CORE, accuracy=50))
    assert mid_band.score == 75
    assert mid_band.issues == []


def test_language_points() -> None:
    english = validate_extraction_result(make_result(FULL_CORE, accuracy=85, language=Language.english))
    assert english.score == 83
    mixed = validate_extraction_result(make_result(FULL_CORE, accuracy=85, language=Language.mixed))
    assert mixed.score == 85


def test_partial_result_gets_partial_suggestion() -> None:
    data = {"treatmentDate": "2024-03-15", "department": "내과", "totalCost": "1000"}
    validation = validate_extraction_result(make_result(data, accuracy=50))

    assert validation.score == 35
    assert validation.suggestions[-1] == "Document partially processed - some information may be missing"


def test_failed_or_missing_result_short_circuits() -> None:
    failed = ExtractionResult.failed("OCR engine crashed", filename="scan.png")
    for candidate in (failed, None):
        validation = validate_extraction_result(candidate)
        assert validation.is_valid is False
        assert validation.score == 0
        assert validation.field_coverage is None
