from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from medclaim.config import settings
from medclaim.field_registry import FIELD_REGISTRY, field_weight, total_weight
from medclaim.models import Document, DocumentStatus, Extraction, ReviewState
from medclaim.processors.enhancer import enhance_value
from medclaim.processors.extractor import BASE_CONFIDENCE, parse_form
from medclaim.processors.ocr import run_ocr
from medclaim.processors.scoring import compute_accuracy, compute_confidence
from medclaim.processors.validation import validate_extraction_result
from medclaim.schemas import (
    ExtractionDebug,
    ExtractionMetadata,
    ExtractionResult,
    ParseStats,
    ProgressSnapshot,
    ValidationResult,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], None]

OCR_PROGRESS_START = 40
OCR_PROGRESS_SPAN = 40


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _emit(
    on_progress: ProgressCallback | None,
    status: str,
    progress: float,
    page: int | None = None,
    total: int | None = None,
) -> None:
    if on_progress is None:
        return
    snapshot = ProgressSnapshot(status=status, progress=progress, page=page, total=total)
    try:
        on_progress(snapshot)
    except Exception:
        # Progress is fire-and-forget; a broken sink never changes the result.
        logger.warning("Progress callback raised at %s%%", progress, exc_info=True)


# ---------------------------------------------------------------------------
# Extraction (text in, result out)
# ---------------------------------------------------------------------------

def extract_from_text(
    text: str,
    *,
    filename: str | None = None,
    file_size: int | None = None,
    file_type: str | None = None,
    method: str = "text",
    ocr_pages: int | None = None,
    on_progress: ProgressCallback | None = None,
    started: float | None = None,
) -> ExtractionResult:
    """Run the extraction core on already-OCR'd text.

    Finding nothing is not a failure: the result is still ``success=True``
    with an empty field map and zero accuracy.
    """
    started = time.perf_counter() if started is None else started
    _emit(on_progress, "Parsing Korean medical form...", 90)

    parsed = parse_form(text or "")
    logger.info(
        "Parsed %s: accuracy=%d%% fields=%d/%d language=%s",
        filename or "<text>",
        parsed.accuracy,
        parsed.fields_found,
        parsed.total_fields,
        parsed.language.value,
    )

    result = ExtractionResult(
        success=True,
        data=parsed.data,
        accuracy=parsed.accuracy,
        confidence=parsed.confidence,
        metadata=ExtractionMetadata(
            filename=filename,
            file_size=file_size,
            file_type=file_type,
            language=parsed.language,
            form_type=parsed.form_type,
            fields_extracted=parsed.fields_found,
            total_fields=parsed.total_fields,
            processing_time_ms=_elapsed_ms(started),
            method=method,
            ocr_pages=ocr_pages,
        ),
        debug=ExtractionDebug(
            ocr_text_sample=(text or "")[: settings.debug_text_chars],
            parse_stats=ParseStats(
                accuracy=parsed.accuracy,
                fields_found=parsed.fields_found,
                total_fields=parsed.total_fields,
            ),
        ),
    )
    _emit(on_progress, "Extraction completed!", 100)
    return result


def extract_from_document(
    file_path: str,
    *,
    filename: str | None = None,
    file_size: int | None = None,
    file_type: str | None = None,
    on_progress: ProgressCallback | None = None,
) -> ExtractionResult:
    """OCR a stored upload and extract from it.

    Anything the OCR collaborator raises becomes a ``success=False`` result
    with ``method="failed"``; callers never see the exception.
    """
    started = time.perf_counter()
    filename = filename or Path(file_path).name
    _emit(on_progress, "Starting extraction...", 0)

    def _on_page(page: int, total: int) -> None:
        progress = OCR_PROGRESS_START + OCR_PROGRESS_SPAN * (page - 1) / max(total, 1)
        _emit(on_progress, f"Processing page {page}/{total}...", progress, page=page, total=total)

    try:
        _emit(on_progress, "Converting document to images...", 20)
        _emit(on_progress, "Performing OCR on document...", OCR_PROGRESS_START)
        ocr_result = run_ocr(file_path, on_page=_on_page)
    except Exception as exc:
        logger.exception("Extraction failed for %s", filename)
        return ExtractionResult.failed(
            str(exc),
            filename=filename,
            file_size=file_size,
            file_type=file_type,
            processing_time_ms=_elapsed_ms(started),
        )

    _emit(on_progress, "OCR completed", OCR_PROGRESS_START + OCR_PROGRESS_SPAN)
    return extract_from_text(
        ocr_result.full_text,
        filename=filename,
        file_size=file_size,
        file_type=file_type,
        method="local_ocr",
        ocr_pages=len(ocr_result.pages),
        on_progress=on_progress,
        started=started,
    )


# ---------------------------------------------------------------------------
# Reviewer corrections
# ---------------------------------------------------------------------------

def apply_corrections(result: ExtractionResult, corrections: dict[str, str]) -> ExtractionResult:
    """Rebuild ``result`` around a reviewer's field map.

    Values go through the same enhancers as extracted ones; values that are
    blank after enhancement are dropped. Accuracy and confidence are scored
    as if every kept value had been matched by a rule.
    """
    data: dict[str, str] = {}
    for name, raw in corrections.items():
        value = enhance_value(name, raw)
        if value:
            data[name] = value

    total_score = sum(BASE_CONFIDENCE * field_weight(name) for name in data)
    accuracy = compute_accuracy(total_score, total_weight())
    total_fields = len(FIELD_REGISTRY)
    metadata = result.metadata.model_copy(
        update={"fields_extracted": len(data), "total_fields": total_fields, "method": "manual_review"}
    )
    debug = None
    if result.debug is not None:
        debug = result.debug.model_copy(
            update={
                "parse_stats": ParseStats(accuracy=accuracy, fields_found=len(data), total_fields=total_fields)
            }
        )
    return result.model_copy(
        update={
            "data": data,
            "accuracy": accuracy,
            "confidence": compute_confidence(total_score, total_fields),
            "metadata": metadata,
            "debug": debug,
        }
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def needs_review(validation: ValidationResult) -> bool:
    return not validation.is_valid


def _next_extraction_version(db: Session, document_id: str) -> int:
    stmt = select(func.max(Extraction.version)).where(Extraction.document_id == document_id)
    current = db.scalar(stmt)
    return (current or 0) + 1


def _persist_snapshot(directory: str, document_id: str, payload: dict) -> None:
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    (target / f"{document_id}.json").write_text(
        json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
    )


def _apply_scores(document: Document, result: ExtractionResult, validation: ValidationResult) -> None:
    document.accuracy = result.accuracy
    document.confidence_score = round(result.confidence, 4)
    document.validation_score = validation.score
    document.is_valid = validation.is_valid
    document.language = result.metadata.language.value if result.metadata.language else None


def _mark_failed(db: Session, document: Document, error: str) -> Document:
    document.status = DocumentStatus.failed
    document.error_message = error
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def process_document(db: Session, document: Document) -> Document:
    result = extract_from_document(
        document.file_path,
        filename=document.original_filename,
        file_size=document.file_size,
        file_type=document.content_type,
    )
    validation = validate_extraction_result(result)

    try:
        _apply_scores(document, result, validation)
        if not result.success:
            return _mark_failed(db, document, result.error or "Extraction failed")

        review_required = needs_review(validation)
        document.status = DocumentStatus.review_required if review_required else DocumentStatus.processed
        document.error_message = None

        db.add(
            Extraction(
                document_id=document.id,
                version=_next_extraction_version(db, document.id),
                review_state=ReviewState.pending if review_required else ReviewState.approved,
                extraction_data=result.to_json_dict(),
                validation_data=validation.to_json_dict(),
            )
        )
        _persist_snapshot(settings.extraction_dir, document.id, result.to_json_dict())

        db.add(document)
        db.commit()
        db.refresh(document)
        return document
    except Exception as exc:
        logger.exception("Persisting extraction failed for document %s", document.id)
        db.rollback()
        _apply_scores(document, result, validation)
        return _mark_failed(db, document, str(exc))


def approve_with_corrections(
    db: Session,
    document: Document,
    extraction: Extraction,
    corrections: dict[str, str] | None = None,
) -> ValidationResult:
    """Approve the latest extraction, re-scoring it first when the reviewer edited fields."""
    validation = ValidationResult.model_validate(extraction.validation_data or {"isValid": False, "score": 0})
    if corrections is not None:
        result = apply_corrections(ExtractionResult.model_validate(extraction.extraction_data), corrections)
        validation = validate_extraction_result(result)
        # JSON columns are not mutation-tracked; assign new dicts.
        extraction.extraction_data = result.to_json_dict()
        extraction.validation_data = validation.to_json_dict()
        _apply_scores(document, result, validation)
        _persist_snapshot(settings.extraction_dir, document.id, extraction.extraction_data)
        logger.info(
            "Reviewer corrected %s: %d fields, validation score %d", document.id, len(result.data), validation.score
        )

    extraction.review_state = ReviewState.approved
    document.status = DocumentStatus.reviewed
    db.add_all([document, extraction])
    db.commit()
    return validation
