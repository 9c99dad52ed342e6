from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from medclaim.database import get_db
from medclaim.models import DocumentStatus, ReviewState
from medclaim.processors.pipeline import approve_with_corrections
from medclaim.queries import get_document_or_404, get_latest_extraction_or_404, list_documents
from medclaim.schemas import ReviewQueueItem, ReviewUpdateRequest

router = APIRouter(prefix="/api/review", tags=["review"])


@router.get("/queue", response_model=list[ReviewQueueItem])
def review_queue(db: Session = Depends(get_db)) -> list[ReviewQueueItem]:
    items = list_documents(db, status=DocumentStatus.review_required)
    return [ReviewQueueItem.from_document(item) for item in items]


@router.post("/{document_id}/approve")
def approve_document(
    document_id: str,
    payload: ReviewUpdateRequest | None = Body(default=None),
    db: Session = Depends(get_db),
) -> dict[str, str]:
    document = get_document_or_404(db, document_id)
    extraction = get_latest_extraction_or_404(db, document_id)
    corrections = payload.data if payload is not None else None
    approve_with_corrections(db, document, extraction, corrections)
    return {"status": "approved", "document_id": document_id}


@router.post("/{document_id}/reject")
def reject_document(document_id: str, db: Session = Depends(get_db)) -> dict[str, str]:
    document = get_document_or_404(db, document_id)
    extraction = get_latest_extraction_or_404(db, document_id)

    extraction.review_state = ReviewState.rejected
    document.status = DocumentStatus.rejected
    db.add_all([document, extraction])
    db.commit()
    return {"status": "rejected", "document_id": document_id}
