# eldercare/engine/slums.py
"""
SLUMS (Saint Louis University Mental Status) cognitive exam scoring.

Recorded sub-score fields are used unless the raw answers they summarize
are on file. The total is recomputed on every call and never cached.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

MAX_SCORE = 30

EDUCATION_FIELD = "cognitive_education_level"
HIGH_SCHOOL = "High School Graduate"
LESS_THAN_HIGH_SCHOOL = "Less than High School"

NORMAL = "Normal Cognition"
MILD = "Mild Cognitive Impairment"
DEMENTIA = "Dementia"
UNDETERMINED = "Undetermined"

# field -> allowed point values
ITEM_POINTS: Dict[str, tuple[int, ...]] = {
    "slums_q1_score": (0, 1),             # day of week
    "slums_q2_score": (0, 1),             # year
    "slums_q3_score": (0, 1),             # state
    "slums_q5_spent_score": (0, 1),       # arithmetic: amount spent
    "slums_q5_left_score": (0, 2),        # arithmetic: amount left
    "slums_q6_score": (0, 1, 2, 3),       # animal fluency
    "slums_q7_score": (0, 1, 2, 3, 4, 5),  # delayed recall
    "slums_q8_score": (0, 1, 3),          # backward digit span, no 2
    "slums_q9_score": (0, 1, 2, 3, 4),    # clock drawing
    "slums_q10_score": (0, 1, 2),         # visuospatial
    "slums_q11_name_score": (0, 2),       # story recall
    "slums_q11_work_score": (0, 2),
    "slums_q11_when_score": (0, 2),
    "slums_q11_state_score": (0, 2),
}

# (lower bound for normal, lower bound for mild); anything below mild is dementia
CUTOFFS: Dict[str, tuple[int, int]] = {
    HIGH_SCHOOL: (27, 21),
    LESS_THAN_HIGH_SCHOOL: (25, 20),
}


@dataclass
class CognitiveScore:
    total: int
    max_score: int
    interpretation: str
    education_level: Optional[str]
    items: Dict[str, int] = field(default_factory=dict)
    invalid_items: List[str] = field(default_factory=list)


# -------------------------
# Band helpers (raw answer -> points)
# -------------------------
def fluency_points(animal_count: int) -> int:
    if animal_count >= 15:
        return 3
    if animal_count >= 10:
        return 2
    if animal_count >= 5:
        return 1
    return 0


def recall_points(objects_recalled: int) -> int:
    return max(0, min(5, int(objects_recalled)))


def digit_span_points(first_correct: bool, second_correct: bool) -> int:
    """
    649 read back as 946 is worth 1; 8537 as 7358 is worth 2 more, but only
    on top of the first. Second-only is 0, so 2 never occurs.
    """
    if first_correct and second_correct:
        return 3
    if first_correct:
        return 1
    return 0


def visuospatial_points(correct_count: int) -> int:
    return max(0, min(2, int(correct_count)))


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        return None
    if not as_float.is_integer():
        return None
    return int(as_float)


def _education(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# -------------------------
# Raw answers -> points
# -------------------------
def _fluency_from_answers(data: Mapping[str, Any]) -> Optional[int]:
    count = _as_int(data.get("slums_q6_animals_count"))
    return None if count is None else fluency_points(count)


def _recall_from_answers(data: Mapping[str, Any]) -> Optional[int]:
    recalled = data.get("slums_q7_objects_recalled")
    if isinstance(recalled, list):
        named = [o for o in recalled if isinstance(o, str) and o.strip()]
        return recall_points(len(named))
    count = _as_int(recalled)
    return None if count is None else recall_points(count)


def _digit_span_from_answers(data: Mapping[str, Any]) -> Optional[int]:
    first = data.get("slums_q8_649_correct")
    second = data.get("slums_q8_8537_correct")
    if not isinstance(first, bool) and not isinstance(second, bool):
        return None
    return digit_span_points(first is True, second is True)


def _visuospatial_from_answers(data: Mapping[str, Any]) -> Optional[int]:
    marks = [data.get("slums_q10_x_correct"), data.get("slums_q10_largest_correct")]
    if not any(isinstance(m, bool) for m in marks):
        return None
    return visuospatial_points(sum(1 for m in marks if m is True))


DERIVED_ITEMS = {
    "slums_q6_score": _fluency_from_answers,
    "slums_q7_score": _recall_from_answers,
    "slums_q8_score": _digit_span_from_answers,
    "slums_q10_score": _visuospatial_from_answers,
}


# -------------------------
# Scoring
# -------------------------
def interpret_cognitive(total: int, education_level: Optional[str]) -> str:
    """Pure function of (total, education level). No guessing when the level is unset."""
    cut = CUTOFFS.get(_education(education_level) or "")
    if cut is None:
        return UNDETERMINED
    normal_from, mild_from = cut
    if total >= normal_from:
        return NORMAL
    if total >= mild_from:
        return MILD
    return DEMENTIA


def score_cognitive(data: Mapping[str, Any]) -> CognitiveScore:
    """
    Items with raw answers on file (animal count, recalled objects, digit
    span and triangle marks) are scored from those answers; a recorded
    sub-score that disagrees with them is listed in ``invalid_items``.
    """
    items: Dict[str, int] = {}
    invalid: List[str] = []

    for name, allowed in ITEM_POINTS.items():
        raw = data.get(name)
        value = _as_int(raw)
        derive = DERIVED_ITEMS.get(name)
        derived = derive(data) if derive else None

        if derived is not None:
            if raw not in (None, "") and value != derived:
                invalid.append(name)
            items[name] = derived
            continue

        if value is None:
            if raw not in (None, ""):
                invalid.append(name)
            items[name] = 0
            continue
        if value not in allowed:
            invalid.append(name)
            items[name] = 0
            continue
        items[name] = value

    total = sum(items.values())
    education = _education(data.get(EDUCATION_FIELD))
    return CognitiveScore(
        total=total,
        max_score=MAX_SCORE,
        interpretation=interpret_cognitive(total, education),
        education_level=education,
        items=items,
        invalid_items=invalid,
    )
