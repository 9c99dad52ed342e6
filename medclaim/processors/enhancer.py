from __future__ import annotations

import re
from collections.abc import Callable

from medclaim.field_registry import DEPARTMENT_TERMS, FieldName

_AMOUNT = re.compile(r"[0-9,.]+")
_PHONE = re.compile(r"[0-9\-\s()]+")
_NOT_PHONE_CHAR = re.compile(r"[^0-9-]")
_ISOLATED_CAPS = re.compile(r"\b[A-Z]{1,2}\b")
_LEADING_CAPS = re.compile(r"\b[A-Z]{1,2}\s")
_DIGITS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")
_DATE = re.compile(r"\d{4}[\s\-/]?\d{1,2}[\s\-/]?\d{1,2}|\d{1,2}[\s\-/]\d{1,2}[\s\-/]\d{4}")


# ---------------------------------------------------------------------------
# Per-field transforms (all total: worst case they return the trimmed input)
# ---------------------------------------------------------------------------

def _enhance_amount(value: str) -> str:
    match = _AMOUNT.search(value)
    return match.group(0).replace(",", "") if match else value


def _enhance_phone(value: str) -> str:
    match = _PHONE.search(value)
    return _NOT_PHONE_CHAR.sub("", match.group(0)) if match else value


def _enhance_person_name(value: str) -> str:
    value = _ISOLATED_CAPS.sub("", value)
    value = _DIGITS.sub("", value)
    return _WHITESPACE.sub(" ", value).strip()


def _enhance_hospital_name(value: str) -> str:
    value = _LEADING_CAPS.sub("", value)
    return _WHITESPACE.sub(" ", value).strip()


def _enhance_treatment_date(value: str) -> str:
    match = _DATE.search(value)
    return match.group(0) if match else value


def _enhance_department(value: str) -> str:
    for korean, english in DEPARTMENT_TERMS.items():
        if korean in value:
            return f"{korean} ({english})"
    return value


_ENHANCERS: dict[FieldName, Callable[[str], str]] = {
    FieldName.total_cost: _enhance_amount,
    FieldName.patient_payment: _enhance_amount,
    FieldName.insurance_claim: _enhance_amount,
    FieldName.phone: _enhance_phone,
    FieldName.patient_name: _enhance_person_name,
    FieldName.doctor_name: _enhance_person_name,
    FieldName.hospital_name: _enhance_hospital_name,
    FieldName.treatment_date: _enhance_treatment_date,
    FieldName.department: _enhance_department,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def enhance_value(field_name: FieldName | str, raw: str) -> str:
    value = (raw or "").strip()
    try:
        enhancer = _ENHANCERS.get(FieldName(field_name))
    except ValueError:
        enhancer = None
    return enhancer(value) if enhancer else value
