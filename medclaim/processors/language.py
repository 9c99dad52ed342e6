from __future__ import annotations

import re
from enum import Enum

KOREAN_RATIO_THRESHOLD = 0.3
MIXED_RATIO_THRESHOLD = 0.1

_HANGUL = re.compile(r"[가-힣]")
_LATIN = re.compile(r"[a-zA-Z]")
KOREAN_MEDICAL_TERMS = re.compile(r"(?:병원|의원|환자|진료|치료|보험|청구)")
ENGLISH_MEDICAL_TERMS = re.compile(
    r"(?:hospital|medical|patient|treatment|insurance|claim|benefit)", re.IGNORECASE
)


class Language(str, Enum):
    korean = "korean"
    mixed = "mixed"
    english_medical = "english_medical"
    english = "english"
    unknown = "unknown"


def detect_language(text: str) -> Language:
    """Classify normalized form text by script mix and domain keywords.

    A Korean medical keyword forces ``korean`` even when the Hangul ratio is
    low, but nothing overrides a high Hangul ratio: the forms this service
    reads are predominantly Korean, so ties lean that way.
    """
    korean = len(_HANGUL.findall(text))
    latin = len(_LATIN.findall(text))
    total = korean + latin
    if total == 0:
        return Language.unknown

    ratio = korean / total
    if ratio > KOREAN_RATIO_THRESHOLD or KOREAN_MEDICAL_TERMS.search(text):
        return Language.korean
    if ratio > MIXED_RATIO_THRESHOLD:
        return Language.mixed
    if ENGLISH_MEDICAL_TERMS.search(text):
        return Language.english_medical
    return Language.english
