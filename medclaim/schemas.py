from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from medclaim.field_registry import get_field
from medclaim.processors.language import Language


class CamelModel(BaseModel):
    """Result payloads keep stable camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Extraction primitives
# ---------------------------------------------------------------------------

class FieldMatch(CamelModel):
    value: str
    confidence: float = Field(ge=0.0, le=1.0)
    source_rule_id: str
    pattern: str


class ProgressSnapshot(CamelModel):
    status: str
    progress: float = Field(ge=0.0, le=100.0)
    page: int | None = None
    total: int | None = None


# ---------------------------------------------------------------------------
# OCR schemas
# ---------------------------------------------------------------------------

class OCRPage(BaseModel):
    page_number: int
    text: str
    error: str | None = None


class OCRResult(BaseModel):
    full_text: str
    pages: list[OCRPage]

    @classmethod
    def from_pages(cls, pages: list[OCRPage]) -> OCRResult:
        return cls(full_text="\n\n".join(p.text for p in pages if p.text), pages=pages)


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------

class ParseStats(CamelModel):
    accuracy: int
    fields_found: int
    total_fields: int


class ExtractionMetadata(CamelModel):
    filename: str | None = None
    file_size: int | None = None
    file_type: str | None = None
    language: Language | None = None
    form_type: str | None = None
    fields_extracted: int | None = None
    total_fields: int | None = None
    processing_time_ms: int = 0
    method: str
    ocr_pages: int | None = None

    @model_validator(mode="after")
    def check_field_counts(self) -> ExtractionMetadata:
        if (
            self.fields_extracted is not None
            and self.total_fields is not None
            and self.fields_extracted > self.total_fields
        ):
            raise ValueError("fields_extracted cannot exceed total_fields")
        return self


class ExtractionDebug(CamelModel):
    ocr_text_sample: str
    parse_stats: ParseStats


class ExtractionResult(CamelModel):
    success: bool
    data: dict[str, str] = Field(default_factory=dict)
    accuracy: int = Field(default=0, ge=0, le=100)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    metadata: ExtractionMetadata
    debug: ExtractionDebug | None = None
    error: str | None = None

    @classmethod
    def failed(
        cls,
        error: str,
        *,
        filename: str | None = None,
        file_size: int | None = None,
        file_type: str | None = None,
        processing_time_ms: int = 0,
    ) -> ExtractionResult:
        return cls(
            success=False,
            error=error,
            metadata=ExtractionMetadata(
                filename=filename,
                file_size=file_size,
                file_type=file_type,
                processing_time_ms=processing_time_ms,
                method="failed",
            ),
        )


class FieldCoverage(CamelModel):
    required: int
    important: int
    optional: int
    total: int


class ValidationResult(CamelModel):
    is_valid: bool
    score: int = Field(ge=0, le=100)
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    field_coverage: FieldCoverage | None = None


# ---------------------------------------------------------------------------
# API response / request DTOs
# ---------------------------------------------------------------------------

class TextExtractionRequest(BaseModel):
    text: str
    filename: str | None = None


class TextExtractionResponse(BaseModel):
    result: ExtractionResult
    validation: ValidationResult


class UploadResponse(BaseModel):
    document_id: str
    status: str
    language: str | None = None
    accuracy: int | None = None
    confidence_score: float | None = None
    validation_score: int | None = None
    is_valid: bool | None = None

    @classmethod
    def from_document(cls, doc: Any) -> UploadResponse:
        return cls(
            document_id=doc.id,
            status=doc.status.value if hasattr(doc.status, "value") else str(doc.status),
            language=doc.language,
            accuracy=doc.accuracy,
            confidence_score=doc.confidence_score,
            validation_score=doc.validation_score,
            is_valid=doc.is_valid,
        )


class DocumentSummary(BaseModel):
    """Shared base for history items and review queue entries."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    original_filename: str
    status: str
    language: str | None
    accuracy: int | None
    confidence_score: float | None
    validation_score: int | None

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, value: Any) -> str:
        return value.value if isinstance(value, Enum) else value


class DocumentListItem(DocumentSummary):
    content_type: str
    file_size: int
    created_at: datetime


class ReviewQueueItem(DocumentSummary):
    """Queue entry; ``document_id`` mirrors ``id`` to match the upload response."""
    document_id: str = ""

    @classmethod
    def from_document(cls, doc: Any) -> ReviewQueueItem:
        return cls(
            id=doc.id,
            document_id=doc.id,
            original_filename=doc.original_filename,
            status=doc.status.value if hasattr(doc.status, "value") else str(doc.status),
            language=doc.language,
            accuracy=doc.accuracy,
            confidence_score=doc.confidence_score,
            validation_score=doc.validation_score,
        )


class DocumentDetail(DocumentSummary):
    content_type: str
    file_size: int
    file_path: str
    error_message: str | None
    created_at: datetime
    updated_at: datetime
    extraction: dict[str, Any] | None = None
    validation: dict[str, Any] | None = None


class ReviewUpdateRequest(BaseModel):
    data: dict[str, str] | None = None

    @field_validator("data")
    @classmethod
    def known_fields_only(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        if value is None:
            return value
        unknown = sorted(name for name in value if get_field(name) is None)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(unknown)}")
        return value
