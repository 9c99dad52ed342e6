from __future__ import annotations

import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_accuracy(total_score: float, max_score: float) -> int:
    """Weighted coverage in percent.

    ``max_score`` is the weight sum over every registered field, so each
    unmatched field lowers accuracy in proportion to its weight.
    """
    if max_score <= 0:
        return 0
    accuracy = _round_half_up(total_score / max_score * 100)
    return max(0, min(accuracy, 100))


def compute_confidence(total_score: float, field_count: int) -> float:
    # Divided by the field count, not the weight sum used for accuracy.
    # Validation thresholds are tuned against both formulas as they are.
    if field_count <= 0:
        return 0.0
    return max(0.0, min(total_score / field_count, 1.0))
