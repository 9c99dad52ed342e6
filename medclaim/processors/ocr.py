from __future__ import annotations

import io
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from medclaim.config import settings
from medclaim.schemas import OCRPage, OCRResult

if TYPE_CHECKING:
    from PIL import Image as ImageModule

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}
PDF_EXTENSIONS = {".pdf"}

PageProgress = Callable[[int, int], None]


def _ocr_image(image: ImageModule.Image, page_number: int) -> OCRPage:
    import pytesseract

    config = f"--psm {settings.ocr_psm}"
    text = pytesseract.image_to_string(image, lang=settings.ocr_lang, config=config) or ""
    return OCRPage(page_number=page_number, text=text)


def _ocr_page_safely(image: ImageModule.Image, page_number: int) -> OCRPage:
    # One unreadable page must not sink the rest of the document.
    try:
        return _ocr_image(image, page_number=page_number)
    except Exception as exc:
        logger.exception("OCR failed for page %d", page_number)
        return OCRPage(page_number=page_number, text="", error=str(exc))


def rasterize_pdf(path: Path) -> list[ImageModule.Image]:
    import fitz
    from PIL import Image

    images: list[ImageModule.Image] = []
    with fitz.open(path) as pdf_doc:
        for index, pdf_page in enumerate(pdf_doc):
            if index >= settings.max_pdf_pages:
                logger.info("Stopping at %d pages for %s", settings.max_pdf_pages, path.name)
                break
            pix = pdf_page.get_pixmap(dpi=settings.pdf_dpi)
            images.append(Image.open(io.BytesIO(pix.tobytes("png"))).convert("RGB"))
    return images


def run_ocr(file_path: str, on_page: PageProgress | None = None) -> OCRResult:
    from PIL import Image

    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in IMAGE_EXTENSIONS:
        with Image.open(path) as img:
            images = [img.convert("RGB")]
    elif suffix in PDF_EXTENSIONS:
        images = rasterize_pdf(path)
    else:
        raise ValueError(f"Unsupported file extension for OCR: {suffix}")

    pages: list[OCRPage] = []
    for page_number, image in enumerate(images, start=1):
        if on_page is not None:
            on_page(page_number, len(images))
        pages.append(_ocr_page_safely(image, page_number))

    result = OCRResult.from_pages(pages)
    logger.info(
        "OCR read %d/%d pages of %s (%d chars)",
        sum(1 for p in pages if p.text),
        len(pages),
        path.name,
        len(result.full_text),
    )
    return result
