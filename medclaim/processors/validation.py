from __future__ import annotations

from medclaim.field_registry import IMPORTANT_FIELDS, OPTIONAL_FIELDS, REQUIRED_FIELDS
from medclaim.processors.language import Language
from medclaim.schemas import ExtractionResult, FieldCoverage, ValidationResult

PASS_SCORE = 50

REQUIRED_POINTS = 40
OPTIONAL_POINTS_EACH = 7
OPTIONAL_POINTS_CAP = 20
MEDICAL_LANGUAGES = {Language.korean, Language.mixed, Language.english_medical}


def _failed_validation() -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        score=0,
        issues=["Extraction failed or returned no result"],
        suggestions=[
            "Try re-uploading the document",
            "Ensure the document is a Korean medical insurance form",
        ],
    )


def _important_points(missing: list[str], issues: list[str], suggestions: list[str]) -> int:
    if not missing:
        return 30
    if len(missing) == 1:
        issues.append(f"Missing some important fields: {', '.join(missing)}")
        return 20
    issues.append(f"Missing multiple important fields: {', '.join(missing)}")
    suggestions.append("Ensure the document is clear and contains medical treatment information")
    return 10


def _accuracy_points(accuracy: int, issues: list[str], suggestions: list[str]) -> int:
    if accuracy >= 80:
        return 10
    if accuracy >= 60:
        return 5
    # TODO: 40-59 neither scores nor raises an issue; waiting on product to
    # confirm whether that band should get its own bonus or warning.
    if accuracy < 40:
        issues.append("Low extraction accuracy detected")
        suggestions.append("Document quality may be poor - try a clearer scan or photo")
    return 0


def _language_points(language: Language | None, issues: list[str], suggestions: list[str]) -> int:
    if language in MEDICAL_LANGUAGES:
        return 5
    if language == Language.english:
        return 3
    issues.append("Document does not appear to contain recognizable medical text")
    suggestions.append("Ensure this is a medical insurance form (Korean or English)")
    return 0


def validate_extraction_result(result: ExtractionResult | None) -> ValidationResult:
    """Judge an extraction by field coverage tiers, accuracy and language.

    Failed or missing results short-circuit to a fixed zero-score verdict.
    A high score never makes a result valid while a required field is
    missing.
    """
    if result is None or not result.success:
        return _failed_validation()

    data = result.data
    issues: list[str] = []
    suggestions: list[str] = []
    score = 0

    missing_required = [name.value for name in REQUIRED_FIELDS if not data.get(name.value)]
    if missing_required:
        issues.append(f"Missing required fields: {', '.join(missing_required)}")
        suggestions.append("Ensure the document contains patient name and hospital information")
    else:
        score += REQUIRED_POINTS

    missing_important = [name.value for name in IMPORTANT_FIELDS if not data.get(name.value)]
    score += _important_points(missing_important, issues, suggestions)

    present_optional = [name.value for name in OPTIONAL_FIELDS if data.get(name.value)]
    score += min(OPTIONAL_POINTS_CAP, len(present_optional) * OPTIONAL_POINTS_EACH)

    score += _accuracy_points(result.accuracy, issues, suggestions)
    score += _language_points(result.metadata.language, issues, suggestions)

    score = max(0, min(score, 100))
    is_valid = score >= PASS_SCORE and not missing_required

    if score < 30:
        suggestions.append("Consider uploading a different document or improving image quality")
    elif score < 60:
        suggestions.append("Document partially processed - some information may be missing")

    return ValidationResult(
        is_valid=is_valid,
        score=score,
        issues=issues,
        suggestions=suggestions,
        field_coverage=FieldCoverage(
            required=len(REQUIRED_FIELDS) - len(missing_required),
            important=len(IMPORTANT_FIELDS) - len(missing_important),
            optional=len(present_optional),
            total=len(data),
        ),
    )
