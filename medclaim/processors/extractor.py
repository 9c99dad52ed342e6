from __future__ import annotations

import logging
from dataclasses import dataclass, field

from medclaim.field_registry import FIELD_REGISTRY, FORM_TYPE, FieldName, field_weight, get_field
from medclaim.processors.enhancer import enhance_value
from medclaim.processors.language import Language, detect_language
from medclaim.processors.normalizer import normalize_text
from medclaim.processors.scoring import compute_accuracy, compute_confidence
from medclaim.schemas import FieldMatch

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.85


@dataclass
class RawExtraction:
    """Matches for one text before enhancement, with the running score sums."""

    fields: dict[str, str] = field(default_factory=dict)
    matches: dict[str, FieldMatch] = field(default_factory=dict)
    total_score: float = 0.0
    max_score: float = 0.0


@dataclass
class ParseResult:
    data: dict[str, str]
    matches: dict[str, FieldMatch]
    accuracy: int
    confidence: float
    fields_found: int
    total_fields: int
    language: Language
    cleaned_text: str
    form_type: str = FORM_TYPE


# ---------------------------------------------------------------------------
# Rule matching
# ---------------------------------------------------------------------------

def extract_field(text: str, field_name: FieldName | str) -> FieldMatch | None:
    """Return the first rule of ``field_name`` whose capture group is non-blank."""
    field_def = get_field(field_name)
    if field_def is None:
        return None

    for rule in field_def.rules:
        match = rule.regex.search(text)
        if not match:
            continue
        captured = match.group(rule.group)
        if captured and captured.strip():
            return FieldMatch(
                value=captured.strip(),
                confidence=BASE_CONFIDENCE,
                source_rule_id=rule.rule_id,
                pattern=rule.pattern,
            )
    return None


def extract_all(text: str) -> RawExtraction:
    raw = RawExtraction()
    for field_def in FIELD_REGISTRY:
        weight = field_weight(field_def.name)
        raw.max_score += weight

        match = extract_field(text, field_def.name)
        if match is None:
            continue
        raw.fields[field_def.name.value] = match.value
        raw.matches[field_def.name.value] = match
        raw.total_score += match.confidence * weight
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_form(raw_text: str) -> ParseResult:
    cleaned = normalize_text(raw_text)
    logger.debug("Cleaned text preview: %s", cleaned[:200])

    raw = extract_all(cleaned)
    data: dict[str, str] = {}
    matches: dict[str, FieldMatch] = {}
    total_score = 0.0
    for name, value in raw.fields.items():
        enhanced = enhance_value(name, value)
        if not enhanced:
            # A value that enhances to nothing was noise; treat it as not found.
            continue
        data[name] = enhanced
        matches[name] = raw.matches[name]
        total_score += raw.matches[name].confidence * field_weight(name)

    total_fields = len(FIELD_REGISTRY)
    return ParseResult(
        data=data,
        matches=matches,
        accuracy=compute_accuracy(total_score, raw.max_score),
        confidence=compute_confidence(total_score, total_fields),
        fields_found=len(data),
        total_fields=total_fields,
        language=detect_language(cleaned),
        cleaned_text=cleaned,
    )
