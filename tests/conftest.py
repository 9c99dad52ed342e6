from __future__ import annotations

import io
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_medclaim.db")

import pytest
from fastapi.testclient import TestClient

from medclaim.config import settings
from medclaim.database import init_db
from medclaim.main import app
from medclaim.schemas import OCRPage, OCRResult

KOREAN_FORM_TEXT = "환자명: 홍길동 병원명: 서울병원"


@pytest.fixture(autouse=True)
def reset_db() -> None:
    init_db(reset=True)


@pytest.fixture(autouse=True)
def storage_dirs(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "extraction_dir", str(tmp_path / "extractions"))


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_png_file() -> tuple[str, io.BytesIO, str]:
    return ("sample.png", io.BytesIO(b"not-a-real-png"), "image/png")


def make_ocr_result(*texts: str) -> OCRResult:
    pages = [OCRPage(page_number=index, text=text) for index, text in enumerate(texts, start=1)]
    return OCRResult.from_pages(pages)
