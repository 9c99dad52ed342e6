from __future__ import annotations

from collections.abc import Sequence

from fastapi import HTTPException
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from medclaim.models import Document, DocumentStatus, Extraction


def list_documents(db: Session, status: DocumentStatus | None = None) -> Sequence[Document]:
    """Documents newest first, optionally only those in one status."""
    stmt = select(Document).order_by(desc(Document.created_at))
    if status is not None:
        stmt = stmt.where(Document.status == status)
    return db.scalars(stmt).all()


def get_document_or_404(db: Session, document_id: str) -> Document:
    document = db.get(Document, document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def get_latest_extraction(db: Session, document_id: str) -> Extraction | None:
    return db.scalar(
        select(Extraction)
        .where(Extraction.document_id == document_id)
        .order_by(desc(Extraction.version), desc(Extraction.id))
        .limit(1)
    )


def get_latest_extraction_or_404(db: Session, document_id: str) -> Extraction:
    extraction = get_latest_extraction(db, document_id)
    if extraction is None:
        raise HTTPException(status_code=404, detail="No extraction stored for this document")
    return extraction
