from __future__ import annotations

import io
import json
from pathlib import Path

from conftest import KOREAN_FORM_TEXT, make_ocr_result

from medclaim.config import settings


def _upload(client, name: str):
    response = client.post("/api/upload", files={"file": (name, io.BytesIO(b"img"), "image/png")})
    assert response.status_code == 200
    return response.json()


def test_valid_and_incomplete_forms_are_routed(client, monkeypatch) -> None:
    texts = {"complete.png": KOREAN_FORM_TEXT, "sparse.png": "총액: 1,234,500원"}
    calls = []

    def fake_run_ocr(path: str, on_page=None):
        calls.append(path)
        text = texts["complete.png"] if len(calls) == 1 else texts["sparse.png"]
        return make_ocr_result(text)

    monkeypatch.setattr("medclaim.processors.pipeline.run_ocr", fake_run_ocr)

    complete = _upload(client, "complete.png")
    assert complete["status"] == "processed"
    assert complete["language"] == "korean"
    assert complete["accuracy"] == 10
    assert complete["validation_score"] == 62
    assert complete["is_valid"] is True

    sparse = _upload(client, "sparse.png")
    assert sparse["status"] == "review_required"
    assert sparse["is_valid"] is False

    snapshot = Path(settings.extraction_dir) / f"{complete['document_id']}.json"
    assert json.loads(snapshot.read_text(encoding="utf-8"))["data"]["hospitalName"] == "서울병원"

    history = client.get("/api/documents").json()
    assert len(history) == 2
    assert {item["validation_score"] for item in history} == {62, sparse["validation_score"]}

    detail = client.get(f"/api/documents/{sparse['document_id']}").json()
    assert detail["extraction"]["data"] == {"totalCost": "1234500"}
    assert detail["validation"]["issues"][0] == "Missing required fields: patientName, hospitalName"

    queue = client.get("/api/review/queue").json()
    assert [item["document_id"] for item in queue] == [sparse["document_id"]]


def test_review_approve_with_corrections(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result("총액: 1,234,500원")
    )
    document_id = _upload(client, "sparse.png")["document_id"]

    corrected = {"patientName": "홍길동", "hospitalName": "서울병원", "totalCost": "1234500"}
    response = client.post(f"/api/review/{document_id}/approve", json={"data": corrected})
    assert response.status_code == 200
    assert response.json() == {"status": "approved", "document_id": document_id}

    detail = client.get(f"/api/documents/{document_id}").json()
    assert detail["status"] == "reviewed"
    assert detail["extraction"]["data"] == corrected
    assert detail["extraction"]["metadata"]["method"] == "manual_review"
    assert detail["accuracy"] == 11
    assert detail["validation_score"] == 55
    assert detail["validation"]["isValid"] is True
    assert client.get("/api/review/queue").json() == []


def test_review_corrections_drop_blank_values_and_rescore(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result("총액: 1,000원")
    )
    document_id = _upload(client, "sparse.png")["document_id"]

    corrections = {"patientName": "", "hospitalName": "MD 서울병원", "totalCost": "1,234,500원"}
    response = client.post(f"/api/review/{document_id}/approve", json={"data": corrections})
    assert response.status_code == 200

    detail = client.get(f"/api/documents/{document_id}").json()
    assert detail["extraction"]["data"] == {"hospitalName": "서울병원", "totalCost": "1234500"}
    assert detail["extraction"]["accuracy"] == 7
    assert detail["extraction"]["metadata"]["fieldsExtracted"] == 2
    assert detail["validation"]["issues"][0] == "Missing required fields: patientName"
    assert detail["validation_score"] == 15
    assert detail["accuracy"] == 7

    snapshot = Path(settings.extraction_dir) / f"{document_id}.json"
    assert json.loads(snapshot.read_text(encoding="utf-8"))["data"]["totalCost"] == "1234500"


def test_review_rejects_unknown_field_names(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result("총액: 1,000원")
    )
    document_id = _upload(client, "sparse.png")["document_id"]

    response = client.post(f"/api/review/{document_id}/approve", json={"data": {"favouriteColour": "blue"}})
    assert response.status_code == 422
    assert client.get(f"/api/documents/{document_id}").json()["status"] == "review_required"


def test_review_reject(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result("총액: 1,234,500원")
    )
    document_id = _upload(client, "sparse.png")["document_id"]

    response = client.post(f"/api/review/{document_id}/reject")
    assert response.status_code == 200
    assert client.get(f"/api/documents/{document_id}").json()["status"] == "rejected"


def test_csv_export_and_delete(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "medclaim.processors.pipeline.run_ocr", lambda _path, on_page=None: make_ocr_result(KOREAN_FORM_TEXT)
    )
    document_id = _upload(client, "claim.png")["document_id"]

    export = client.get(f"/api/documents/{document_id}/export.csv")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert export.headers["content-disposition"].endswith("claim_extracted.csv")
    assert export.text.splitlines() == [
        '"Field","Value","Confidence","Section"',
        '"Hospital Name","서울병원",0.85,"Hospital Info"',
        '"Patient Name","홍길동 병원명",0.85,"Personal Info"',
        '"Address","서울병원",0.85,"Personal Info"',
    ]

    assert client.delete(f"/api/documents/{document_id}").status_code == 204
    assert client.get(f"/api/documents/{document_id}").status_code == 404
    assert client.get("/api/documents").json() == []
