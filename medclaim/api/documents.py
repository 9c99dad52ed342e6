from __future__ import annotations

import csv
import io
from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from medclaim.database import get_db
from medclaim.field_registry import FIELD_REGISTRY
from medclaim.processors.extractor import BASE_CONFIDENCE
from medclaim.queries import (
    get_document_or_404,
    get_latest_extraction,
    get_latest_extraction_or_404,
    list_documents as query_documents,
)
from medclaim.schemas import DocumentDetail, DocumentListItem

router = APIRouter(prefix="/api/documents", tags=["documents"])

CSV_HEADER = ("Field", "Value", "Confidence", "Section")


@router.get("", response_model=list[DocumentListItem])
def list_documents(db: Session = Depends(get_db)) -> list[DocumentListItem]:
    return [DocumentListItem.model_validate(doc) for doc in query_documents(db)]


@router.get("/{document_id}", response_model=DocumentDetail)
def get_document(document_id: str, db: Session = Depends(get_db)) -> DocumentDetail:
    document = get_document_or_404(db, document_id)
    extraction = get_latest_extraction(db, document_id)
    payload = DocumentDetail.model_validate(document)
    payload.extraction = extraction.extraction_data if extraction else None
    payload.validation = extraction.validation_data if extraction else None
    return payload


@router.delete("/{document_id}", status_code=204)
def delete_document(document_id: str, db: Session = Depends(get_db)) -> Response:
    document = get_document_or_404(db, document_id)
    Path(document.file_path).unlink(missing_ok=True)
    db.delete(document)
    db.commit()
    return Response(status_code=204)


def render_csv(data: dict[str, str]) -> str:
    """One row per extracted field, in registry order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for field in FIELD_REGISTRY:
        value = data.get(field.name.value)
        if not value:
            continue
        writer.writerow((field.label, value, BASE_CONFIDENCE, field.section.value))
    return buffer.getvalue()


@router.get("/{document_id}/export.csv")
def export_csv(document_id: str, db: Session = Depends(get_db)) -> Response:
    document = get_document_or_404(db, document_id)
    extraction = get_latest_extraction_or_404(db, document_id)
    stem = document.original_filename.rsplit(".", 1)[0] or "korean-medical-form"
    return Response(
        content=render_csv(extraction.extraction_data.get("data", {})),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(stem)}_extracted.csv"},
    )
