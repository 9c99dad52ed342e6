from __future__ import annotations

from fastapi import APIRouter

from medclaim.processors.pipeline import extract_from_text
from medclaim.processors.validation import validate_extraction_result
from medclaim.schemas import TextExtractionRequest, TextExtractionResponse

router = APIRouter(prefix="/api/extract", tags=["extract"])


@router.post("/text", response_model=TextExtractionResponse)
def extract_text(payload: TextExtractionRequest) -> TextExtractionResponse:
    """Run the extractor on text that was already OCR'd elsewhere. Nothing is stored."""
    result = extract_from_text(
        payload.text,
        filename=payload.filename,
        file_size=len(payload.text.encode("utf-8")),
        file_type="text/plain",
    )
    return TextExtractionResponse(result=result, validation=validate_extraction_result(result))
