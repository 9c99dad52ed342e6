from __future__ import annotations

import logging

import pytest

from conftest import KOREAN_FORM_TEXT, make_ocr_result

from medclaim.processors.language import Language
from medclaim.processors.pipeline import apply_corrections, extract_from_document, extract_from_text, needs_review
from medclaim.processors.validation import validate_extraction_result
from medclaim.schemas import ValidationResult


def test_extract_from_text_builds_full_result() -> None:
    snapshots = []
    result = extract_from_text(KOREAN_FORM_TEXT, filename="claim.txt", on_progress=snapshots.append)

    assert result.success is True
    assert result.data["hospitalName"] == "서울병원"
    assert result.accuracy == 10
    assert result.metadata.method == "text"
    assert result.metadata.language is Language.korean
    assert result.metadata.fields_extracted == 3
    assert result.metadata.total_fields == 29
    assert result.debug.ocr_text_sample == KOREAN_FORM_TEXT
    assert result.debug.parse_stats.fields_found == 3
    assert [s.progress for s in snapshots] == [90, 100]


def test_document_progress_checkpoints(monkeypatch) -> None:
    def fake_run_ocr(_path: str, on_page=None):
        on_page(1, 2)
        on_page(2, 2)
        return make_ocr_result("환자명: 홍길동", "병원명: 서울병원")

    monkeypatch.setattr("medclaim.processors.pipeline.run_ocr", fake_run_ocr)
    snapshots = []
    result = extract_from_document("claim.pdf", file_size=1024, on_progress=snapshots.append)

    assert result.success is True
    assert result.metadata.method == "local_ocr"
    assert result.metadata.ocr_pages == 2
    assert result.metadata.filename == "claim.pdf"
    assert [s.progress for s in snapshots] == [0, 20, 40, 40, 60, 80, 90, 100]
    assert snapshots[4].page == 2
    assert snapshots[4].total == 2


def test_broken_progress_callback_is_ignored(monkeypatch, caplog) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result(KOREAN_FORM_TEXT)
    )

    def explode(_snapshot) -> None:
        raise RuntimeError("ui went away")

    with caplog.at_level(logging.WARNING, logger="medclaim.processors.pipeline"):
        result = extract_from_document("claim.png", on_progress=explode)

    assert result.success is True
    assert result.data["hospitalName"] == "서울병원"
    assert "Progress callback raised" in caplog.text


def test_ocr_failure_becomes_failed_result(monkeypatch) -> None:
    def failing_ocr(_path: str, on_page=None):
        raise RuntimeError("tesseract not installed")

    monkeypatch.setattr("medclaim.processors.pipeline.run_ocr", failing_ocr)
    result = extract_from_document("claim.png", file_size=10, file_type="image/png")

    assert result.success is False
    assert result.error == "tesseract not installed"
    assert result.metadata.method == "failed"
    assert result.metadata.file_type == "image/png"
    assert result.data == {}

    validation = validate_extraction_result(result)
    assert validation.is_valid is False
    assert validation.score == 0


def test_unsupported_extension_is_reported_not_raised() -> None:
    result = extract_from_document("notes.txt")
    assert result.success is False
    assert "Unsupported file extension" in result.error


def test_needs_review_follows_the_validation_verdict() -> None:
    assert needs_review(ValidationResult(is_valid=True, score=62)) is False
    assert needs_review(ValidationResult(is_valid=True, score=50)) is False
    assert needs_review(ValidationResult(is_valid=False, score=65)) is True


def test_corrections_are_enhanced_and_rescored() -> None:
    result = extract_from_text(KOREAN_FORM_TEXT, filename="claim.txt")
    corrected = apply_corrections(
        result, {"patientName": " 홍길동 12 ", "hospitalName": "  ", "department": "정형외과"}
    )

    assert corrected.data == {"patientName": "홍길동", "department": "정형외과 (Orthopedics)"}
    assert corrected.accuracy == 7
    assert corrected.confidence == pytest.approx(0.85 * 1.8 / 29)
    assert corrected.metadata.fields_extracted == 2
    assert corrected.metadata.method == "manual_review"
    assert corrected.metadata.language is Language.korean
    assert corrected.metadata.filename == "claim.txt"
    assert corrected.debug.parse_stats.fields_found == 2
    assert corrected.debug.parse_stats.accuracy == 7
